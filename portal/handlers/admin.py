from aiogram import Router, F
from aiogram.filters import Command
from aiogram.types import Message, CallbackQuery

from portal.config import settings
from portal.db.queries import is_user_allowed, set_user_access, block_user, get_all_users_list
from portal.keyboards.admin_kb import students_keyboard
from portal.services.admin_overview import format_overview, format_student_details, student_overview

router = Router()

VALID_ROLES = {"student", "admin"}

ALLOW_USAGE = "الصيغة: /allow <user_id> [student|admin]\nمثال: /allow 123456789"
BLOCK_USAGE = "الصيغة: /block <user_id>\nمثال: /block 123456789"


async def _is_admin(user_id: int) -> bool:
    allowed, role = await is_user_allowed(user_id)
    return allowed and role == "admin"


async def _check_admin(message: Message) -> bool:
    """Check that sender is admin and chat is private. Returns True if OK."""
    if message.chat.type != "private":
        await message.answer("⚠️ هذا الأمر متاح في المحادثات الخاصة فقط.")
        return False
    return await _is_admin(message.from_user.id)


async def _target_id(message: Message, usage: str) -> int | None:
    """Numeric user id from the first command argument, or None after replying with usage."""
    parts = message.text.split()
    if len(parts) < 2 or not parts[1].isdigit():
        await message.answer(usage)
        return None
    return int(parts[1])


@router.message(Command("allow"))
async def cmd_allow(message: Message):
    if not await _check_admin(message):
        return

    target_id = await _target_id(message, ALLOW_USAGE)
    if target_id is None:
        return

    parts = message.text.split()
    role = parts[2].lower() if len(parts) >= 3 else "student"
    if role not in VALID_ROLES:
        await message.answer(f"دور غير معروف: {role}\nالأدوار المتاحة: student, admin")
        return

    await set_user_access(target_id, role)
    await message.answer(f"✅ تمت إضافة المستخدم {target_id} (الدور: {role})")


@router.message(Command("block"))
async def cmd_block(message: Message):
    if not await _check_admin(message):
        return

    target_id = await _target_id(message, BLOCK_USAGE)
    if target_id is None:
        return

    if target_id == message.from_user.id:
        await message.answer("❌ لا يمكنك حظر نفسك.")
        return

    if settings.ADMIN_ID is not None and target_id == settings.ADMIN_ID:
        await message.answer("❌ لا يمكن حظر المدير الرئيسي.")
        return

    allowed, role = await is_user_allowed(target_id)
    if role is not None and not allowed:
        await message.answer("المستخدم محظور بالفعل.")
        return

    if not await block_user(target_id):
        await message.answer("المستخدم غير موجود في قاعدة البيانات.")
        return

    await message.answer(f"🚫 تم حظر المستخدم {target_id}.")


@router.message(Command("users"))
async def cmd_users(message: Message):
    if not await _check_admin(message):
        return

    users = await get_all_users_list()
    if not users:
        await message.answer("قائمة المستخدمين فارغة.")
        return

    lines = ["👥 قائمة المستخدمين:\n"]
    for u in users:
        name = u["full_name"] or u["student_id"] or str(u["user_id"])
        status = "🚫 محظور" if u["is_blocked"] else "✅ نشط"
        role_label = "👑 admin" if u["role"] == "admin" else "📚 student"
        lines.append(f"• {name} (ID: {u['user_id']}) — {role_label}, {status}")

    await message.answer("\n".join(lines))


@router.message(Command("overview"))
async def cmd_overview(message: Message):
    if not await _check_admin(message):
        return

    rows = await student_overview()
    await message.answer(format_overview(rows), reply_markup=students_keyboard(rows))


@router.callback_query(F.data == "admin")
async def show_overview(callback: CallbackQuery):
    if not await _is_admin(callback.from_user.id):
        await callback.answer()
        return

    rows = await student_overview()
    await callback.message.answer(format_overview(rows), reply_markup=students_keyboard(rows))
    await callback.answer()


@router.callback_query(F.data.startswith("admin_user:"))
async def show_student(callback: CallbackQuery):
    if not await _is_admin(callback.from_user.id):
        await callback.answer()
        return

    user_id = int(callback.data.split(":")[1])
    await callback.message.answer(await format_student_details(user_id))
    await callback.answer()
