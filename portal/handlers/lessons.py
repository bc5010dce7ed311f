from aiogram import Router, F
from aiogram.types import CallbackQuery

from portal.db.queries import get_attempt_counts
from portal.keyboards.lessons_kb import lessons_keyboard, lesson_detail_keyboard
from portal.services.catalog import format_lesson_detail, is_unlocked, list_lessons

router = Router()


@router.callback_query(F.data == "lessons")
async def show_lessons(callback: CallbackQuery):
    lessons = await list_lessons(callback.from_user.id)
    if not lessons:
        await callback.message.edit_text("لا توجد دروس حالياً.")
        await callback.answer()
        return

    done = sum(1 for lesson in lessons if lesson["attempts"] > 0)
    await callback.message.edit_text(
        f"📚 الدروس ({done}/{len(lessons)} مكتملة)\n\nاختر درساً:",
        reply_markup=lessons_keyboard(lessons),
    )
    await callback.answer()


@router.callback_query(F.data.startswith("lesson:"))
async def show_lesson(callback: CallbackQuery):
    lesson_id = int(callback.data.split(":")[1])

    counts = await get_attempt_counts(callback.from_user.id)
    if not is_unlocked(lesson_id, counts):
        await callback.answer("🔒 أكمل اختبار الدرس السابق أولاً.", show_alert=True)
        return

    text = await format_lesson_detail(lesson_id)
    if text is None:
        await callback.answer("الدرس غير موجود", show_alert=True)
        return

    await callback.message.edit_text(text, reply_markup=lesson_detail_keyboard(lesson_id))
    await callback.answer()
