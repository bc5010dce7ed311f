import logging

from aiogram import Router, F
from aiogram.filters import CommandStart
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from portal.config import DEFAULT_GRADE
from portal.db.queries import get_profile, upsert_profile
from portal.keyboards.main_menu import main_menu_keyboard
from portal.states.registration import SignIn

logger = logging.getLogger(__name__)

router = Router()

WELCOME_TEXT = (
    "👋 أهلاً وسهلاً! أنا بوابة تعلم البرمجة بلغة بايثون.\n\n"
    "اختر ما تريد القيام به:"
)
ADMIN_WELCOME_TEXT = "👑 مرحباً مدير النظام! تم تسجيل الدخول كمدير.\n\nاختر ما تريد القيام به:"
ASK_STUDENT_ID = "🔐 تسجيل الدخول\n\nأدخل رقمك الأكاديمي:"


def _is_admin(profile: dict | None) -> bool:
    return bool(profile) and profile.get("role") == "admin"


async def _greet(message: Message, profile: dict | None):
    text = ADMIN_WELCOME_TEXT if _is_admin(profile) else WELCOME_TEXT
    await message.answer(text, reply_markup=main_menu_keyboard(_is_admin(profile)))


@router.message(CommandStart())
async def cmd_start(message: Message, state: FSMContext):
    await state.clear()
    profile = await get_profile(message.from_user.id)

    if profile is None or not profile.get("student_id"):
        await state.set_state(SignIn.entering_student_id)
        await message.answer(ASK_STUDENT_ID)
        return

    await _greet(message, profile)


@router.message(SignIn.entering_student_id)
async def student_id_entered(message: Message, state: FSMContext):
    student_id = (message.text or "").strip()
    if len(student_id) < 3 or not student_id.isalnum():
        await message.answer("رقم غير صحيح. أدخل رقمك الأكاديمي (أحرف وأرقام فقط):")
        return

    user_id = message.from_user.id
    full_name = message.from_user.full_name or student_id
    await upsert_profile(user_id, student_id, full_name, DEFAULT_GRADE)
    logger.info("Profile ready for user %s (student %s)", user_id, student_id)

    await state.clear()
    await message.answer("✅ تم تسجيل الدخول بنجاح")
    await _greet(message, await get_profile(user_id))


@router.callback_query(F.data == "go_home")
async def go_home(callback: CallbackQuery, state: FSMContext):
    await state.clear()
    profile = await get_profile(callback.from_user.id)
    text = ADMIN_WELCOME_TEXT if _is_admin(profile) else WELCOME_TEXT
    await callback.message.edit_text(text, reply_markup=main_menu_keyboard(_is_admin(profile)))
    await callback.answer()
