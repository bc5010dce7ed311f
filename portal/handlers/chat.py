import logging

from aiogram import Router, F
from aiogram.enums import ChatAction
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from portal.chat.session import ChatSession
from portal.db.models import ROLE_USER
from portal.keyboards.chat_kb import chat_keyboard, continue_keyboard
from portal.states.chat_states import ChatFlow

logger = logging.getLogger(__name__)

router = Router()

# One conversation per student, kept for the life of the process
_sessions: dict[int, ChatSession] = {}

INTRO_TEXT = (
    "🤖 مساعد البرمجة الذكي\n\n"
    "اكتب سؤالك عن دروس بايثون وسأساعدك."
)
HISTORY_PREVIEW = 6
PREVIEW_CHARS = 300


def get_session(user_id: int) -> ChatSession:
    session = _sessions.get(user_id)
    if session is None:
        session = ChatSession(user_id)
        _sessions[user_id] = session
    return session


def clean_reply(text: str) -> str:
    """Drop asterisks the model uses for emphasis."""
    return text.replace("*", "")


def _preview(session: ChatSession) -> str:
    lines = []
    for turn in session.messages[-HISTORY_PREVIEW:]:
        who = "👤" if turn.role == ROLE_USER else "🤖"
        text = clean_reply(turn.text)
        if len(text) > PREVIEW_CHARS:
            text = text[:PREVIEW_CHARS] + "…"
        lines.append(f"{who} {text}")
    return "\n\n".join(lines)


@router.callback_query(F.data == "chat")
async def open_chat(callback: CallbackQuery, state: FSMContext):
    await state.set_state(ChatFlow.chatting)
    session = get_session(callback.from_user.id)
    await session.load_threads()
    await session.load_history()

    text = INTRO_TEXT
    preview = _preview(session)
    if preview:
        text += "\n\n— آخر الرسائل —\n\n" + preview
    await callback.message.edit_text(text, reply_markup=chat_keyboard())
    await callback.answer()


@router.callback_query(F.data == "chat_new")
async def new_thread(callback: CallbackQuery, state: FSMContext):
    await state.set_state(ChatFlow.chatting)
    session = get_session(callback.from_user.id)
    session.cancel_reconciliation()
    thread = await session.new_thread()
    await callback.message.edit_text(
        f"🆕 {thread['title']}\n\nاكتب سؤالك:",
        reply_markup=chat_keyboard(),
    )
    await callback.answer()


@router.callback_query(F.data == "chat_clear")
async def clear_chat(callback: CallbackQuery):
    session = get_session(callback.from_user.id)
    session.cancel_reconciliation()
    try:
        await session.clear()
    except Exception:
        logger.exception("Failed to clear chat for user %s", callback.from_user.id)
        await callback.answer("حدث خطأ أثناء مسح المحادثة", show_alert=True)
        return
    await callback.message.edit_text("🗑 تم مسح المحادثة.\n\nاكتب سؤالك:", reply_markup=chat_keyboard())
    await callback.answer()


@router.message(ChatFlow.chatting, F.text)
async def chat_message(message: Message):
    session = get_session(message.from_user.id)
    if session.busy:
        return

    await message.bot.send_chat_action(message.chat.id, ChatAction.TYPING)
    response = await session.send(message.text)
    if response is None:
        return

    if not response.success:
        await message.answer(clean_reply(response.response) or "حدث خطأ أثناء إرسال الرسالة")
        return

    keyboard = continue_keyboard(response.cursor) if response.truncated else None
    sent = await message.answer(clean_reply(response.response), reply_markup=keyboard)

    if not response.truncated:
        async def on_update(text: str) -> None:
            await sent.edit_text(clean_reply(text))

        session.start_reconciliation(on_update)


@router.callback_query(F.data.startswith("chat_more:"))
async def continue_reply(callback: CallbackQuery):
    cursor = int(callback.data.split(":")[1])
    session = get_session(callback.from_user.id)
    await callback.answer()

    response = await session.continue_reply(cursor)
    if response is None:
        return
    if not response.success:
        await callback.message.answer("لا توجد إجابة سابقة لمتابعتها.")
        return

    await callback.message.edit_reply_markup(reply_markup=None)
    if response.response:
        keyboard = continue_keyboard(response.cursor) if response.truncated else None
        await callback.message.answer(clean_reply(response.response), reply_markup=keyboard)
