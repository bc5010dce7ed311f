"""Where a lesson's raw question records come from."""
import json
import logging
from pathlib import Path

from portal.config import LOCAL_BANK_LESSONS
from portal.db.queries import get_lesson
from portal.exceptions import PortalError

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent.parent / "data"


def load_local_bank(lesson_id: int) -> list[dict]:
    """Read `lesson<N>_questions.json` ({unit_title, questions: [...]}) shipped with the package."""
    path = DATA_DIR / f"lesson{lesson_id}_questions.json"
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        return data.get("questions") or []
    return data if isinstance(data, list) else []


async def load_lesson_questions(lesson_id: int) -> list[dict]:
    """Raw question records for a lesson: local bank first, else the lesson row."""
    if lesson_id in LOCAL_BANK_LESSONS:
        try:
            return load_local_bank(lesson_id)
        except (OSError, json.JSONDecodeError) as e:
            raise PortalError(f"Question bank for lesson {lesson_id} is unreadable: {e}") from e

    lesson = await get_lesson(lesson_id)
    if lesson is None:
        raise PortalError(f"Lesson {lesson_id} not found")
    return lesson.get("questions") or []
