from portal.db.queries import get_lessons, get_lesson, get_attempt_counts


def difficulty_label(lesson_number: int) -> str:
    if lesson_number <= 3:
        return "مبتدئ"
    if lesson_number <= 6:
        return "متوسط"
    return "متقدم"


def is_unlocked(lesson_id: int, attempt_counts: dict[int, int]) -> bool:
    """Lesson N > 1 opens once the previous lesson has at least one result."""
    if lesson_id <= 1:
        return True
    return attempt_counts.get(lesson_id - 1, 0) > 0


async def list_lessons(user_id: int) -> list[dict]:
    """Catalog rows with unlock state and attempts used, ordered by lesson number."""
    lessons = await get_lessons()
    counts = await get_attempt_counts(user_id)
    return [
        {
            "id": lesson["id"],
            "lesson_number": lesson["lesson_number"],
            "lesson_title": lesson["lesson_title"],
            "difficulty": difficulty_label(lesson["lesson_number"]),
            "unlocked": is_unlocked(lesson["id"], counts),
            "attempts": counts.get(lesson["id"], 0),
        }
        for lesson in lessons
    ]


async def format_lesson_detail(lesson_id: int) -> str | None:
    """Lesson page text, or None when the lesson does not exist."""
    lesson = await get_lesson(lesson_id)
    if lesson is None:
        return None

    number = lesson["lesson_number"]
    description = lesson.get("lesson_description") or f"الدرس رقم {number} - تعلم أساسيات البرمجة"
    return (
        f"📘 {lesson['lesson_title']}\n"
        f"الدرس {number} · {difficulty_label(number)}\n\n"
        f"{description}"
    )
