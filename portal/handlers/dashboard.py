from aiogram import Router, F
from aiogram.types import CallbackQuery
from aiogram.fsm.context import FSMContext

from portal.keyboards.main_menu import home_keyboard
from portal.services.progress_tracker import format_dashboard

router = Router()


@router.callback_query(F.data == "dashboard")
async def show_dashboard(callback: CallbackQuery, state: FSMContext):
    await state.clear()

    text = await format_dashboard(callback.from_user.id)

    await callback.message.answer(text, reply_markup=home_keyboard())
    await callback.answer()
