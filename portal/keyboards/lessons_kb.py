from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton


def lessons_keyboard(lessons: list[dict]) -> InlineKeyboardMarkup:
    buttons = []
    for lesson in lessons:
        lock = "" if lesson["unlocked"] else "🔒 "
        buttons.append([InlineKeyboardButton(
            text=f"{lock}{lesson['lesson_number']}. {lesson['lesson_title']} ({lesson['difficulty']})",
            callback_data=f"lesson:{lesson['id']}",
        )])
    buttons.append([InlineKeyboardButton(text="🏠 رجوع", callback_data="go_home")])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def lesson_detail_keyboard(lesson_id: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="📝 اختبر نفسك في هذا الدرس", callback_data=f"quiz_lesson:{lesson_id}")],
        [InlineKeyboardButton(text="🔙 قائمة الدروس", callback_data="lessons")],
    ])
