from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton


def chat_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [
            InlineKeyboardButton(text="➕ محادثة جديدة", callback_data="chat_new"),
            InlineKeyboardButton(text="🗑 مسح المحادثة", callback_data="chat_clear"),
        ],
        [InlineKeyboardButton(text="🏠 القائمة الرئيسية", callback_data="go_home")],
    ])


def continue_keyboard(cursor: int) -> InlineKeyboardMarkup:
    """Shown under a chunk when the reply has more text after `cursor`."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="⬇️ تابع الإجابة", callback_data=f"chat_more:{cursor}")],
    ])
