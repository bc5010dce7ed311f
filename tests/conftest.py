"""Shared fixtures for the learning portal tests."""
import pytest

from portal.config import settings
from portal.db import database
from portal.db.models import NormalizedQuestion, KIND_BOOLEAN


@pytest.fixture
async def db(tmp_path, monkeypatch):
    """Fresh SQLite store in a temporary directory, seeded with the six lessons."""
    monkeypatch.setattr(settings, "DB_PATH", str(tmp_path / "portal.db"))
    monkeypatch.setattr(settings, "ADMIN_ID", 1000)
    conn = await database.get_db()
    yield conn
    await database.close_db()


@pytest.fixture
def sample_questions():
    """One multiple-choice and one true/false question."""
    return [
        NormalizedQuestion(
            id=1,
            question_text="ما ناتج 2 + 2؟",
            options=["3", "4", "5"],
            correct_index=1,
        ),
        NormalizedQuestion(
            id=2,
            question_text="بايثون لغة برمجة.",
            options=["صح", "خطأ"],
            correct_index=0,
            kind=KIND_BOOLEAN,
        ),
    ]


@pytest.fixture
def sample_results():
    """Stored result rows of one student, newest first."""
    return [
        {
            "id": 3,
            "user_id": 12345,
            "lesson_id": 2,
            "lesson_name": "Lesson 2",
            "total_questions": 10,
            "correct_answers": 9,
            "score_percentage": 90,
            "questions_data": [],
            "completed_at": "2026-03-03T10:00:00+00:00",
        },
        {
            "id": 2,
            "user_id": 12345,
            "lesson_id": 1,
            "lesson_name": "Lesson 1",
            "total_questions": 5,
            "correct_answers": 4,
            "score_percentage": 80,
            "questions_data": [],
            "completed_at": "2026-03-02T10:00:00+00:00",
        },
        {
            "id": 1,
            "user_id": 12345,
            "lesson_id": 1,
            "lesson_name": None,
            "total_questions": 5,
            "correct_answers": 2,
            "score_percentage": 40,
            "questions_data": [],
            "completed_at": "2026-03-01T10:00:00+00:00",
        },
    ]
