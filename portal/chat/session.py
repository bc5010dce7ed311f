import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from portal.chat.chunking import ends_cleanly
from portal.chat.protocol import handle_completion
from portal.config import POLL_ATTEMPTS, POLL_INTERVAL, HISTORY_LIMIT
from portal.db.models import ChatTurn, CompletionRequest, CompletionResponse, ROLE_ASSISTANT, ROLE_USER
from portal.db.queries import clear_chat, create_thread, get_chat_history, get_last_assistant_turn, get_threads

logger = logging.getLogger(__name__)

OnUpdate = Callable[[str], Awaitable[None]]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ChatSession:
    """Client-side state of one student's conversation.

    Holds the cached turns, the current thread, the single in-flight send guard
    and the background reconciliation task. One instance per student.
    """

    def __init__(self, user_id: int, thread_id: Optional[int] = None):
        self.user_id = user_id
        self.thread_id = thread_id
        self.messages: list[ChatTurn] = []
        self._sending = False
        self._reconcile_task: Optional[asyncio.Task] = None

    @property
    def busy(self) -> bool:
        return self._sending

    async def load_threads(self) -> list[dict]:
        """Fetch the student's threads and select the newest one if none is selected."""
        threads = await get_threads(self.user_id)
        if self.thread_id is None and threads:
            self.thread_id = threads[0]["id"]
        return threads

    async def new_thread(self, title: Optional[str] = None) -> dict:
        title = title or f"محادثة {datetime.now().strftime('%Y-%m-%d %H:%M')}"
        thread = await create_thread(self.user_id, title)
        self.thread_id = thread["id"]
        self.messages = []
        return thread

    async def load_history(self) -> list[ChatTurn]:
        rows = await get_chat_history(self.user_id, self.thread_id, HISTORY_LIMIT)
        self.messages = [ChatTurn.from_row(row) for row in rows]
        return self.messages

    async def clear(self) -> int:
        """Delete the current thread's turns (all turns when no thread is selected)."""
        deleted = await clear_chat(self.user_id, self.thread_id)
        self.messages = []
        return deleted

    async def send(self, text: str) -> Optional[CompletionResponse]:
        """Send one message. Returns None when empty or another send is in flight."""
        text = text.strip()
        if not text or self._sending:
            return None

        self.cancel_reconciliation()
        self._sending = True
        user_turn = ChatTurn(ROLE_USER, text, _now())
        self.messages.append(user_turn)
        try:
            response = await handle_completion(
                CompletionRequest(message=text, user_id=self.user_id, thread_id=self.thread_id)
            )
        finally:
            self._sending = False

        if response.success:
            self.messages.append(ChatTurn(ROLE_ASSISTANT, response.response, _now()))
        else:
            # nothing was stored for a failed request
            self.messages = [t for t in self.messages if t is not user_turn]
        return response

    async def continue_reply(self, cursor: int) -> Optional[CompletionResponse]:
        """Fetch the next chunk of the last reply and append it to the cached turn."""
        if self._sending:
            return None

        self._sending = True
        try:
            response = await handle_completion(
                CompletionRequest(
                    message="", user_id=self.user_id, is_continue=True,
                    cursor=cursor, thread_id=self.thread_id,
                )
            )
        finally:
            self._sending = False

        if response.success and response.response:
            last = self._last_assistant()
            if last is not None:
                last.text += response.response
        return response

    async def reconcile(self, on_update: Optional[OnUpdate] = None) -> Optional[str]:
        """Poll the store for the latest reply and adopt it when it is longer than ours.

        Stops after POLL_ATTEMPTS reads or as soon as the stored reply ends cleanly.
        Returns the text the cache ends up with.
        """
        last = self._last_assistant()
        current = last.text if last is not None else ""

        for _ in range(POLL_ATTEMPTS):
            await asyncio.sleep(POLL_INTERVAL)
            row = await get_last_assistant_turn(self.user_id, self.thread_id)
            if row is None:
                continue
            persisted = row.get("response") or row.get("message") or ""
            if len(persisted) > len(current):
                current = persisted
                if last is not None:
                    last.text = persisted
                if on_update is not None:
                    await on_update(persisted)
            if ends_cleanly(persisted):
                break

        return current

    def start_reconciliation(self, on_update: Optional[OnUpdate] = None) -> asyncio.Task:
        """Run `reconcile` in the background, replacing any poll still running."""
        self.cancel_reconciliation()
        self._reconcile_task = asyncio.create_task(self.reconcile(on_update))
        self._reconcile_task.add_done_callback(self._log_task_failure)
        return self._reconcile_task

    def cancel_reconciliation(self) -> None:
        if self._reconcile_task is not None and not self._reconcile_task.done():
            self._reconcile_task.cancel()
        self._reconcile_task = None

    def _last_assistant(self) -> Optional[ChatTurn]:
        for turn in reversed(self.messages):
            if turn.role == ROLE_ASSISTANT:
                return turn
        return None

    @staticmethod
    def _log_task_failure(task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error("Chat reconciliation failed: %s", task.exception())
