import logging

from openai import AsyncOpenAI, APIError, APIStatusError

from portal.config import settings
from portal.exceptions import GenerationError

logger = logging.getLogger(__name__)

_client: AsyncOpenAI | None = None


def _get_client() -> AsyncOpenAI:
    global _client
    if _client is None:
        _client = AsyncOpenAI(
            base_url=settings.LLM_BASE_URL,
            api_key=settings.LLM_API_KEY or "not-needed",
        )
    return _client


async def chat_completion(prompt: str, temperature: float | None = None, max_tokens: int | None = None) -> str:
    """Send a prompt to the completion service and return its text.

    Text parts of every returned choice are joined with newlines; an empty string
    means the service answered without text. Raises GenerationError on a
    non-success status or a transport failure.
    """
    try:
        response = await _get_client().chat.completions.create(
            model=settings.LLM_MODEL,
            messages=[{"role": "user", "content": prompt}],
            temperature=settings.LLM_TEMPERATURE if temperature is None else temperature,
            max_tokens=max_tokens or settings.LLM_MAX_TOKENS,
        )
    except APIStatusError as e:
        logger.error(f"LLM request failed with status {e.status_code}: {e.message}")
        raise GenerationError(f"Completion service error: {e.status_code}", status_code=e.status_code) from e
    except APIError as e:
        logger.error(f"LLM request failed: {e}")
        raise GenerationError(f"Completion request failed: {e}") from e

    parts = [
        choice.message.content
        for choice in (response.choices or [])
        if choice.message is not None and choice.message.content
    ]
    return "\n".join(parts)
