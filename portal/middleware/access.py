import logging
from typing import Any, Awaitable, Callable

from aiogram import BaseMiddleware
from aiogram.types import Message, CallbackQuery, TelegramObject

from portal.config import settings
from portal.db.queries import is_user_allowed
from portal.states.quiz_states import QuizFlow

logger = logging.getLogger(__name__)

BLOCKED_MSG = "❗ الوصول مقيد. تواصل مع مدير النظام."

QUIZ_STATES = {
    QuizFlow.answering_question.state,
    QuizFlow.viewing_results.state,
}

QUIZ_CALLBACKS = ("ans:", "quiz_prev", "quiz_hint")


class AccessControlMiddleware(BaseMiddleware):
    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        user = getattr(event, "from_user", None)
        if user is None:
            return  # no user info (channel posts)

        user_id = user.id

        # Short-circuit: primary admin always allowed
        if settings.ADMIN_ID is not None and user_id == settings.ADMIN_ID:
            return await handler(event, data)

        # DB lookup with fail-closed
        try:
            allowed, role = await is_user_allowed(user_id)
        except Exception:
            logger.exception("Access check failed for user %s, denying", user_id)
            await self._deny(event)
            return

        if allowed:
            return await handler(event, data)

        # Blocked mid-quiz: let the student finish the quiz in progress
        if role is not None:
            state = data.get("state")
            if state:
                current_state = await state.get_state()
                if current_state in QUIZ_STATES and self._is_quiz_action(event):
                    return await handler(event, data)

        await self._deny(event)

    def _is_quiz_action(self, event: TelegramObject) -> bool:
        if isinstance(event, CallbackQuery):
            return event.data is not None and event.data.startswith(QUIZ_CALLBACKS)
        return False

    async def _deny(self, event: TelegramObject) -> None:
        """Send denial message and dismiss callback spinner if needed."""
        if isinstance(event, CallbackQuery):
            try:
                await event.answer(BLOCKED_MSG, show_alert=True)
            except Exception:
                logger.debug("Could not answer denied callback", exc_info=True)
        elif isinstance(event, Message):
            try:
                await event.answer(BLOCKED_MSG)
            except Exception:
                logger.debug("Could not answer denied message", exc_info=True)
