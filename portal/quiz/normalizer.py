"""Bring question-bank records of every supported shape to one canonical form.

Three source shapes are understood, checked in this order:

1. ``answerOptions``: a list of option objects, each with ``text`` and an
   ``isCorrect`` / ``is_correct`` flag.
2. ``answer_data``: a block with ``options`` and a ``correct_answer`` that is
   either a boolean (true/false question) or the text of the right option.
3. Flat fields: ``options`` (or ``options_list``) with ``correct_answer`` /
   ``correct``. A question counts as true/false when it is tagged so or when its
   two options are exactly the canonical true/false labels.

Normalization never raises. When the correct answer cannot be resolved the
question keeps ``correct_index = 0`` and ``answer_resolved = False``, and a
warning is logged so broken bank entries can be found.
"""
import logging
from typing import Any

from portal.config import BOOLEAN_OPTIONS, TRUE_TOKEN, FALSE_TOKEN
from portal.db.models import NormalizedQuestion, KIND_BOOLEAN, KIND_MULTIPLE

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("question_text", "question", "text")


def normalize_questions(raw: Any) -> list[NormalizedQuestion]:
    """Normalize a whole bank. Anything that is not a list yields no questions."""
    if not isinstance(raw, list):
        return []
    return [normalize_question(item, idx) for idx, item in enumerate(raw) if isinstance(item, dict)]


def normalize_question(item: dict, position: int = 0) -> NormalizedQuestion:
    """Normalize one source record. `position` is the fallback id."""
    tagged_boolean = item.get("question_type") == "true_false" or item.get("type") == KIND_BOOLEAN

    answer_options = item.get("answerOptions")
    answer_data = item.get("answer_data")

    if isinstance(answer_options, list):
        options, correct, is_boolean = _from_answer_options(answer_options)
    elif isinstance(answer_data, dict):
        options, correct, is_boolean = _from_answer_data(answer_data)
    else:
        options, correct, is_boolean = _from_flat(item, tagged_boolean)

    question = NormalizedQuestion(
        id=_question_id(item, position),
        question_text=_question_text(item),
        options=options,
        correct_index=correct if correct is not None else 0,
        kind=KIND_BOOLEAN if (tagged_boolean or is_boolean) else KIND_MULTIPLE,
        raw=item,
        answer_resolved=correct is not None,
    )
    if correct is None:
        logger.warning(
            "Question %r: correct answer could not be resolved, defaulting to option 0",
            question.id,
        )
    return question


def _question_id(item: dict, position: int):
    for key in ("id", "questionNumber"):
        value = item.get(key)
        if value is not None:
            return value
    return position


def _question_text(item: dict) -> str:
    for key in TEXT_FIELDS:
        value = item.get(key)
        if value:
            return str(value)
    return ""


def _option_text(option: Any) -> str:
    if isinstance(option, dict):
        text = option.get("text")
        return str(text) if text is not None else ""
    return str(option)


def _from_answer_options(answer_options: list) -> tuple[list[str], int | None, bool]:
    options = [_option_text(ao) for ao in answer_options]
    correct = None
    for idx, ao in enumerate(answer_options):
        if isinstance(ao, dict) and (ao.get("isCorrect") is True or ao.get("is_correct") is True):
            correct = idx
            break
    is_boolean = len(answer_options) == 2 and all(
        isinstance(ao, dict)
        and isinstance(ao.get("text"), str)
        and (TRUE_TOKEN in ao["text"] or FALSE_TOKEN in ao["text"])
        for ao in answer_options
    )
    return options, correct, is_boolean


def _from_answer_data(answer_data: dict) -> tuple[list[str], int | None, bool]:
    raw_options = answer_data.get("options")
    options = [str(o) for o in raw_options] if isinstance(raw_options, list) else []
    correct_answer = answer_data.get("correct_answer")

    if isinstance(correct_answer, bool):
        return list(BOOLEAN_OPTIONS), 0 if correct_answer else 1, True

    correct = None
    if isinstance(correct_answer, str):
        correct = _index_of(options, correct_answer)
    return options, correct, False


def _from_flat(item: dict, tagged: bool) -> tuple[list[str], int | None, bool]:
    raw_options = item.get("options")
    if raw_options is None:
        raw_options = item.get("options_list")
    options = [str(o) for o in raw_options] if isinstance(raw_options, list) else []
    looks_boolean = len(options) == 2 and set(options) == set(BOOLEAN_OPTIONS)

    if tagged or looks_boolean:
        return list(BOOLEAN_OPTIONS), _boolean_index(item), True

    correct_value = item.get("correct_answer")
    if correct_value is None:
        correct_value = item.get("correct")

    correct = None
    if correct_value is not None:
        correct = _index_of(options, str(correct_value))
    if correct is None:
        legacy = item.get("correct")
        if isinstance(legacy, int) and not isinstance(legacy, bool) and 0 <= legacy < len(options):
            correct = legacy
    return options, correct, False


def _boolean_index(item: dict) -> int | None:
    """0 for true, 1 for false, None when no correctness field says either."""
    for key in ("correct_answer", "correct"):
        value = item.get(key)
        if isinstance(value, bool):
            return 0 if value else 1
        if value == TRUE_TOKEN or value == 0:
            return 0
        if value == FALSE_TOKEN or value == 1:
            return 1
    return None


def _index_of(options: list[str], text: str) -> int | None:
    try:
        return options.index(text)
    except ValueError:
        return None
