"""Completion endpoint for the chat assistant.

One call handles one request in the wire shape
``{message, userId, continue?, cursor?, threadId?}`` and answers
``{response, truncated, cursor, success, error?}``:

* a normal request assembles the last turns as context, asks the model, extends a
  reply that stops mid-sentence, stores the reply once, and returns its first
  sentence-bounded chunk;
* a ``continue`` request returns the next chunk of the last stored reply, starting
  at ``cursor``.

The handler never raises. A failed primary request yields the fixed error reply
with ``success = False`` and stores nothing.
"""
import asyncio
import logging

import aiosqlite

from portal.chat.chunking import cut_at_sentence, ends_cleanly
from portal.config import settings, CONTEXT_TURNS, MAX_CONTINUATIONS, CONTINUATION_BACKOFF
from portal.db.models import CompletionRequest, CompletionResponse, STORED_BOT, STORED_USER
from portal.db.queries import add_chat_turn, get_last_assistant_turn, get_recent_turns
from portal.exceptions import GenerationError, PortalError
from portal.llm.client import chat_completion
from portal.llm.prompts import (
    ERROR_REPLY, FALLBACK_REPLY,
    build_chat_prompt, build_continuation_prompt, render_context,
)

logger = logging.getLogger(__name__)


async def handle_completion(request: CompletionRequest) -> CompletionResponse:
    logger.info(
        "Chat request: user=%s continue=%s cursor=%s thread=%s",
        request.user_id, request.is_continue, request.cursor, request.thread_id,
    )
    if not request.user_id:
        return CompletionResponse(ERROR_REPLY, success=False, error="userId is required")

    try:
        if request.is_continue:
            return await _next_chunk(request)
        return await _answer(request)
    except GenerationError as e:
        logger.error("Generation failed for user %s: %s", request.user_id, e)
        return CompletionResponse(ERROR_REPLY, success=False, error=str(e))
    except (PortalError, aiosqlite.Error) as e:
        logger.exception("Chat request failed for user %s", request.user_id)
        return CompletionResponse(ERROR_REPLY, success=False, error=str(e))


async def _answer(request: CompletionRequest) -> CompletionResponse:
    rows = await get_recent_turns(request.user_id, CONTEXT_TURNS, request.thread_id)
    rows.reverse()
    context = render_context(rows)

    answer = await chat_completion(
        build_chat_prompt(context, request.message),
        max_tokens=settings.LLM_MAX_TOKENS,
    )
    if not answer:
        answer = FALLBACK_REPLY

    answer = await _extend_truncated(answer, context, request.message)
    await _persist(request, answer)

    head, tail = cut_at_sentence(answer)
    return CompletionResponse(head, truncated=bool(tail), cursor=len(head))


async def _extend_truncated(answer: str, context: str, message: str) -> str:
    """Ask the model to finish a reply cut off mid-sentence, at most MAX_CONTINUATIONS times."""
    attempts = 0
    while not ends_cleanly(answer) and attempts < MAX_CONTINUATIONS:
        attempts += 1
        try:
            more = await chat_completion(
                build_continuation_prompt(context, message, answer),
                max_tokens=settings.LLM_CONTINUATION_MAX_TOKENS,
            )
        except GenerationError as e:
            logger.warning("Continuation %d failed, keeping partial answer: %s", attempts, e)
            break

        if not more:
            break
        answer = f"{answer}\n{more}"

        if not ends_cleanly(answer) and attempts < MAX_CONTINUATIONS:
            await asyncio.sleep(CONTINUATION_BACKOFF)

    return answer


async def _persist(request: CompletionRequest, answer: str) -> None:
    """Store the user turn, then the reply unless the last stored reply is identical.

    The check is read before the user turn is written. Check and insert are not atomic.
    """
    last = await get_last_assistant_turn(request.user_id, request.thread_id)

    if request.message:
        await add_chat_turn(request.user_id, STORED_USER, request.message, request.thread_id)

    if last is not None and (last.get("response") or last.get("message") or "") == answer:
        logger.info("Skipping duplicate assistant insert for user %s", request.user_id)
        return
    await add_chat_turn(request.user_id, STORED_BOT, answer, request.thread_id)


async def _next_chunk(request: CompletionRequest) -> CompletionResponse:
    last = await get_last_assistant_turn(request.user_id, request.thread_id)
    if last is None:
        return CompletionResponse("", success=False, error="No previous bot response")

    full_text = last.get("response") or last.get("message") or ""
    start = min(max(0, request.cursor), len(full_text))
    head, _ = cut_at_sentence(full_text[start:])
    cursor = start + len(head)
    return CompletionResponse(head, truncated=cursor < len(full_text), cursor=cursor)
