"""Tests for the client-side chat session."""
import asyncio
from unittest.mock import AsyncMock, patch

from portal.chat.session import ChatSession
from portal.db.models import ChatTurn, CompletionResponse, ROLE_ASSISTANT, ROLE_USER


def _bot_row(text):
    return {"id": 1, "message": text, "response": text, "message_type": "bot", "created_at": "2026-03-01T10:00:00"}


class TestSend:
    """Sending messages through the session."""

    @patch("portal.chat.session.handle_completion", new_callable=AsyncMock)
    async def test_success_appends_both_turns(self, mock_handle):
        mock_handle.return_value = CompletionResponse("الجواب.", cursor=7)
        session = ChatSession(5, thread_id=2)

        resp = await session.send("  سؤال  ")

        assert resp.success is True
        assert [t.role for t in session.messages] == [ROLE_USER, ROLE_ASSISTANT]
        assert session.messages[0].text == "سؤال"
        assert session.messages[1].text == "الجواب."
        request = mock_handle.await_args.args[0]
        assert request.message == "سؤال"
        assert request.user_id == 5
        assert request.thread_id == 2
        assert request.is_continue is False

    @patch("portal.chat.session.handle_completion", new_callable=AsyncMock)
    async def test_failure_drops_unsent_turn(self, mock_handle):
        """A failed request leaves the cache as it was before the send."""
        mock_handle.return_value = CompletionResponse("خطأ", success=False, error="boom")
        session = ChatSession(5)

        resp = await session.send("سؤال")

        assert resp.success is False
        assert session.messages == []
        assert session.busy is False

    @patch("portal.chat.session.handle_completion", new_callable=AsyncMock)
    async def test_empty_message_ignored(self, mock_handle):
        session = ChatSession(5)

        assert await session.send("   ") is None
        mock_handle.assert_not_awaited()

    async def test_second_send_while_in_flight_is_ignored(self):
        """Only one request is in flight per session."""
        release = asyncio.Event()

        async def slow_handle(request):
            await release.wait()
            return CompletionResponse("تم.")

        session = ChatSession(5)
        with patch("portal.chat.session.handle_completion", side_effect=slow_handle) as mock_handle:
            first = asyncio.create_task(session.send("أول"))
            await asyncio.sleep(0)
            assert session.busy is True

            assert await session.send("ثاني") is None

            release.set()
            await first

        assert mock_handle.call_count == 1
        assert session.busy is False


class TestContinueReply:
    @patch("portal.chat.session.handle_completion", new_callable=AsyncMock)
    async def test_appends_chunk_to_last_reply(self, mock_handle):
        mock_handle.return_value = CompletionResponse(" بقية النص.", cursor=20)
        session = ChatSession(5)
        session.messages = [ChatTurn(ROLE_USER, "س", "t1"), ChatTurn(ROLE_ASSISTANT, "بداية.", "t2")]

        resp = await session.continue_reply(8)

        assert resp.cursor == 20
        assert session.messages[-1].text == "بداية. بقية النص."
        request = mock_handle.await_args.args[0]
        assert request.is_continue is True
        assert request.cursor == 8


class TestReconcile:
    """Polling the store for a longer persisted reply."""

    @patch("portal.chat.session.asyncio.sleep", new_callable=AsyncMock)
    @patch("portal.chat.session.get_last_assistant_turn", new_callable=AsyncMock)
    async def test_adopts_longer_reply(self, mock_last, mock_sleep):
        mock_last.return_value = _bot_row("بداية الجواب وبقيته.")
        on_update = AsyncMock()
        session = ChatSession(5)
        session.messages = [ChatTurn(ROLE_ASSISTANT, "بداية الجواب", "t1")]

        text = await session.reconcile(on_update)

        assert text == "بداية الجواب وبقيته."
        assert session.messages[0].text == "بداية الجواب وبقيته."
        on_update.assert_awaited_once_with("بداية الجواب وبقيته.")
        assert mock_last.await_count == 1

    @patch("portal.chat.session.asyncio.sleep", new_callable=AsyncMock)
    @patch("portal.chat.session.get_last_assistant_turn", new_callable=AsyncMock)
    async def test_polls_until_attempts_run_out(self, mock_last, mock_sleep):
        """A stored reply that never ends cleanly is polled four times."""
        mock_last.return_value = _bot_row("نص غير مكتمل")
        on_update = AsyncMock()
        session = ChatSession(5)
        session.messages = [ChatTurn(ROLE_ASSISTANT, "نص غير مكتمل", "t1")]

        text = await session.reconcile(on_update)

        assert text == "نص غير مكتمل"
        assert mock_last.await_count == 4
        assert mock_sleep.await_count == 4
        on_update.assert_not_awaited()

    @patch("portal.chat.session.asyncio.sleep", new_callable=AsyncMock)
    @patch("portal.chat.session.get_last_assistant_turn", new_callable=AsyncMock)
    async def test_shorter_reply_ignored(self, mock_last, mock_sleep):
        mock_last.return_value = _bot_row("قصير.")
        session = ChatSession(5)
        session.messages = [ChatTurn(ROLE_ASSISTANT, "نص أطول بكثير من المخزن.", "t1")]

        text = await session.reconcile()

        assert text == "نص أطول بكثير من المخزن."

    @patch("portal.chat.session.asyncio.sleep", new_callable=AsyncMock)
    @patch("portal.chat.session.get_last_assistant_turn", new_callable=AsyncMock)
    async def test_background_task_replaced(self, mock_last, mock_sleep):
        mock_last.return_value = None
        session = ChatSession(5)

        first = session.start_reconciliation()
        second = session.start_reconciliation()
        await asyncio.sleep(0)
        await second

        assert first.cancelled() or first.done()
        assert second.done()
        session.cancel_reconciliation()
