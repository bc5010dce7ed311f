from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton


def main_menu_keyboard(is_admin: bool = False) -> InlineKeyboardMarkup:
    buttons = [
        [InlineKeyboardButton(text="📚 الدروس", callback_data="lessons")],
        [InlineKeyboardButton(text="📝 اختبرني", callback_data="start_quiz")],
        [InlineKeyboardButton(text="📈 لوحة التقدم", callback_data="dashboard")],
        [InlineKeyboardButton(text="🤖 المساعد الذكي", callback_data="chat")],
    ]
    if is_admin:
        buttons.append([InlineKeyboardButton(text="👑 لوحة المدير", callback_data="admin")])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def home_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🏠 القائمة الرئيسية", callback_data="go_home")],
    ])
