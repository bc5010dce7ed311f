from portal.config import CHUNK_SIZE, TERMINAL_MARKS


def ends_cleanly(text: str) -> bool:
    """True when the text (ignoring trailing whitespace) ends with a terminal mark."""
    stripped = text.rstrip()
    return bool(stripped) and stripped[-1] in TERMINAL_MARKS


def cut_at_sentence(text: str, max_len: int = CHUNK_SIZE) -> tuple[str, str]:
    """Split `text` into (head, tail) with len(head) <= max_len and head + tail == text.

    Cut points, first that exists inside the window wins:
    after the last sentence-ending mark, after the last newline, before the last
    space, and finally a hard cut at `max_len`. A mark only ends a sentence when
    whitespace or the end of the text follows it, so "math.sqrt" is never split.
    """
    if not text:
        return "", ""
    if len(text) <= max_len:
        return text, ""

    window = text[:max_len]

    for idx in range(len(window) - 1, -1, -1):
        if window[idx] in TERMINAL_MARKS and (idx + 1 == len(text) or text[idx + 1].isspace()):
            return text[:idx + 1], text[idx + 1:]

    newline = window.rfind("\n")
    if newline > 0:
        return text[:newline + 1], text[newline + 1:]

    space = window.rfind(" ")
    if space > 0:
        return text[:space], text[space:]

    return window, text[max_len:]
