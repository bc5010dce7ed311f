from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from portal.config import DEFAULT_QUESTION_COUNT, MAX_ATTEMPTS, QUESTION_COUNTS


def lesson_choice_keyboard(lessons: list[dict]) -> InlineKeyboardMarkup:
    buttons = []
    for lesson in lessons:
        buttons.append([InlineKeyboardButton(
            text=f"الدرس {lesson['lesson_number']}: {lesson['lesson_title']} "
                 f"({lesson['attempts']}/{MAX_ATTEMPTS})",
            callback_data=f"quiz_lesson:{lesson['id']}",
        )])
    buttons.append([InlineKeyboardButton(text="🏠 رجوع", callback_data="go_home")])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def question_count_keyboard() -> InlineKeyboardMarkup:
    buttons = []
    for count in QUESTION_COUNTS:
        buttons.append([InlineKeyboardButton(
            text=f"{count} أسئلة" + (" ⭐" if count == DEFAULT_QUESTION_COUNT else ""),
            callback_data=f"count:{count}",
        )])
    buttons.append([InlineKeyboardButton(text="🔙 اختيار درس آخر", callback_data="start_quiz")])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def question_keyboard(options: list[str], selected: int, index: int, has_hint: bool) -> InlineKeyboardMarkup:
    buttons = []
    for i, option in enumerate(options):
        mark = "🔘 " if i == selected else ""
        buttons.append([InlineKeyboardButton(text=f"{mark}{option}", callback_data=f"ans:{i}")])

    nav = []
    if index > 0:
        nav.append(InlineKeyboardButton(text="⬅️ السابق", callback_data="quiz_prev"))
    if has_hint:
        nav.append(InlineKeyboardButton(text="💡 تلميح", callback_data="quiz_hint"))
    if nav:
        buttons.append(nav)
    buttons.append([InlineKeyboardButton(text="❌ إلغاء الاختبار", callback_data="cancel_quiz")])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def results_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🔁 إعادة الاختبار", callback_data="quiz_retake")],
        [InlineKeyboardButton(text="📈 لوحة التقدم", callback_data="dashboard")],
        [InlineKeyboardButton(text="🏠 القائمة الرئيسية", callback_data="go_home")],
    ])
