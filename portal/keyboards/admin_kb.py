from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton


def students_keyboard(rows: list[dict]) -> InlineKeyboardMarkup:
    buttons = []
    for row in rows:
        name = row["full_name"] or row["student_id"] or str(row["user_id"])
        buttons.append([InlineKeyboardButton(
            text=f"{name} — {row['average_score']}%",
            callback_data=f"admin_user:{row['user_id']}",
        )])
    buttons.append([InlineKeyboardButton(text="🏠 رجوع", callback_data="go_home")])
    return InlineKeyboardMarkup(inline_keyboard=buttons)
