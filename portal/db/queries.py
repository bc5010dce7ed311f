import json
import logging
from datetime import datetime, timezone
from typing import Optional

import aiosqlite

from portal.db.database import get_db
from portal.db.models import LessonRow, QuizResultRow, STORED_BOT
from portal.exceptions import StoreError

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _thread_clause(thread_id: Optional[int]) -> tuple[str, tuple]:
    if thread_id is None:
        return "", ()
    return " AND thread_id = ?", (thread_id,)


# ============================================================================
# PROFILES / ACCESS
# ============================================================================

async def upsert_profile(user_id: int, student_id: str, full_name: str, grade: str) -> None:
    """Create or update a student profile."""
    db = await get_db()
    await db.execute(
        """INSERT INTO profiles (user_id, student_id, full_name, grade)
           VALUES (?, ?, ?, ?)
           ON CONFLICT(user_id) DO UPDATE SET
               student_id = excluded.student_id,
               full_name = excluded.full_name,
               grade = excluded.grade""",
        (user_id, student_id, full_name, grade),
    )
    await db.commit()


async def get_profile(user_id: int) -> Optional[dict]:
    db = await get_db()
    cursor = await db.execute(
        "SELECT user_id, student_id, full_name, grade, role, is_blocked FROM profiles WHERE user_id = ?",
        (user_id,),
    )
    row = await cursor.fetchone()
    return dict(row) if row else None


async def get_all_profiles() -> list[dict]:
    """Profiles of everyone who signed in (have a student ID)."""
    db = await get_db()
    cursor = await db.execute(
        """SELECT user_id, full_name, student_id, grade, role
           FROM profiles
           WHERE student_id IS NOT NULL
           ORDER BY user_id""",
    )
    rows = await cursor.fetchall()
    return [dict(row) for row in rows]


async def is_user_allowed(user_id: int) -> tuple[bool, str | None]:
    """Check if user is in whitelist and not blocked. Returns (is_allowed, role)."""
    db = await get_db()
    cursor = await db.execute(
        "SELECT role, is_blocked FROM profiles WHERE user_id = ?",
        (user_id,),
    )
    row = await cursor.fetchone()
    if row is None:
        return (False, None)
    if row["is_blocked"]:
        return (False, row["role"])
    return (True, row["role"])


async def set_user_access(user_id: int, role: str = "student") -> None:
    """Add or update a user with given role. Also unblocks if was blocked."""
    db = await get_db()
    await db.execute(
        """INSERT INTO profiles (user_id, role, is_blocked)
           VALUES (?, ?, 0)
           ON CONFLICT(user_id) DO UPDATE SET
               role = excluded.role,
               is_blocked = 0""",
        (user_id, role),
    )
    await db.commit()


async def block_user(user_id: int) -> bool:
    """Block a user. Returns True if user existed, False otherwise."""
    db = await get_db()
    cursor = await db.execute(
        "UPDATE profiles SET is_blocked = 1 WHERE user_id = ?",
        (user_id,),
    )
    await db.commit()
    return cursor.rowcount > 0


async def get_all_users_list() -> list[dict]:
    """Get all users with their roles and block status."""
    db = await get_db()
    cursor = await db.execute(
        "SELECT user_id, full_name, student_id, role, is_blocked FROM profiles ORDER BY user_id",
    )
    rows = await cursor.fetchall()
    return [dict(row) for row in rows]


# ============================================================================
# LESSONS
# ============================================================================

def _lesson_from_row(row: aiosqlite.Row) -> dict:
    lesson = dict(row)
    try:
        lesson["questions"] = json.loads(lesson.get("questions") or "[]")
    except json.JSONDecodeError:
        logger.warning("Lesson %s has malformed questions JSON", lesson.get("id"))
        lesson["questions"] = []
    return lesson


async def get_lessons() -> list[LessonRow]:
    """All lessons ordered by lesson number."""
    db = await get_db()
    cursor = await db.execute(
        """SELECT id, lesson_number, lesson_title, lesson_description, questions
           FROM lessons
           ORDER BY lesson_number""",
    )
    rows = await cursor.fetchall()
    return [_lesson_from_row(row) for row in rows]


async def get_lesson(lesson_id: int) -> Optional[LessonRow]:
    db = await get_db()
    cursor = await db.execute(
        """SELECT id, lesson_number, lesson_title, lesson_description, questions
           FROM lessons WHERE id = ?""",
        (lesson_id,),
    )
    row = await cursor.fetchone()
    return _lesson_from_row(row) if row else None


# ============================================================================
# QUIZ RESULTS
# ============================================================================

async def count_attempts(user_id: int, lesson_id: int) -> int:
    """Number of stored results for (user, lesson)."""
    try:
        db = await get_db()
        cursor = await db.execute(
            "SELECT COUNT(*) AS n FROM quiz_results WHERE user_id = ? AND lesson_id = ?",
            (user_id, lesson_id),
        )
        row = await cursor.fetchone()
    except aiosqlite.Error as e:
        raise StoreError(f"Could not count attempts: {e}") from e
    return row["n"] if row else 0


async def get_attempt_counts(user_id: int) -> dict[int, int]:
    """Attempts used per lesson id."""
    db = await get_db()
    cursor = await db.execute(
        """SELECT lesson_id, COUNT(*) AS n
           FROM quiz_results
           WHERE user_id = ?
           GROUP BY lesson_id""",
        (user_id,),
    )
    rows = await cursor.fetchall()
    return {row["lesson_id"]: row["n"] for row in rows}


async def save_quiz_result(
    user_id: int,
    lesson_id: int,
    lesson_name: str,
    total: int,
    correct: int,
    percentage: int,
    questions_data: list[dict],
) -> int:
    """Insert one quiz result record. Returns the new row id."""
    try:
        db = await get_db()
        cursor = await db.execute(
            """INSERT INTO quiz_results
               (user_id, lesson_id, lesson_name, total_questions, correct_answers,
                score_percentage, questions_data, completed_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                user_id,
                lesson_id,
                lesson_name,
                total,
                correct,
                percentage,
                json.dumps(questions_data, ensure_ascii=False),
                _now(),
            ),
        )
        await db.commit()
    except aiosqlite.Error as e:
        raise StoreError(f"Could not save quiz result: {e}") from e
    return cursor.lastrowid


def _result_from_row(row: aiosqlite.Row) -> dict:
    result = dict(row)
    if "questions_data" in result:
        result["questions_data"] = json.loads(result["questions_data"] or "[]")
    return result


async def get_user_results(user_id: int, limit: Optional[int] = None) -> list[QuizResultRow]:
    """Quiz results of one user, newest first."""
    db = await get_db()
    query = """SELECT id, user_id, lesson_id, lesson_name, total_questions, correct_answers,
                      score_percentage, questions_data, completed_at
               FROM quiz_results
               WHERE user_id = ?
               ORDER BY completed_at DESC, id DESC"""
    params: tuple = (user_id,)
    if limit is not None:
        query += " LIMIT ?"
        params += (limit,)
    cursor = await db.execute(query, params)
    rows = await cursor.fetchall()
    return [_result_from_row(row) for row in rows]


async def get_results_for_users(user_ids: list[int]) -> list[dict]:
    """Summary columns of every result belonging to any of the given users."""
    if not user_ids:
        return []
    db = await get_db()
    placeholders = ", ".join("?" for _ in user_ids)
    cursor = await db.execute(
        f"""SELECT user_id, score_percentage, lesson_id, completed_at
            FROM quiz_results
            WHERE user_id IN ({placeholders})""",
        tuple(user_ids),
    )
    rows = await cursor.fetchall()
    return [dict(row) for row in rows]


# ============================================================================
# CHAT
# ============================================================================

async def add_chat_turn(
    user_id: int,
    message_type: str,
    text: str,
    thread_id: Optional[int] = None,
) -> int:
    """Persist one turn. Assistant turns keep the text in both columns."""
    db = await get_db()
    response = text if message_type == STORED_BOT else None
    cursor = await db.execute(
        """INSERT INTO chat_history (user_id, thread_id, message, response, message_type, created_at)
           VALUES (?, ?, ?, ?, ?, ?)""",
        (user_id, thread_id, text, response, message_type, _now()),
    )
    await db.commit()
    return cursor.lastrowid


async def get_recent_turns(
    user_id: int, limit: int, thread_id: Optional[int] = None
) -> list[dict]:
    """Most recent turns, newest first."""
    db = await get_db()
    clause, params = _thread_clause(thread_id)
    cursor = await db.execute(
        f"""SELECT id, message, response, message_type, created_at
            FROM chat_history
            WHERE user_id = ?{clause}
            ORDER BY created_at DESC, id DESC
            LIMIT ?""",
        (user_id, *params, limit),
    )
    rows = await cursor.fetchall()
    return [dict(row) for row in rows]


async def get_last_assistant_turn(
    user_id: int, thread_id: Optional[int] = None
) -> Optional[dict]:
    db = await get_db()
    clause, params = _thread_clause(thread_id)
    cursor = await db.execute(
        f"""SELECT id, message, response, message_type, created_at
            FROM chat_history
            WHERE user_id = ? AND message_type = ?{clause}
            ORDER BY created_at DESC, id DESC
            LIMIT 1""",
        (user_id, STORED_BOT, *params),
    )
    row = await cursor.fetchone()
    return dict(row) if row else None


async def get_chat_history(
    user_id: int, thread_id: Optional[int] = None, limit: int = 100
) -> list[dict]:
    """Last `limit` turns in chronological order."""
    rows = await get_recent_turns(user_id, limit, thread_id)
    rows.reverse()
    return rows


async def clear_chat(user_id: int, thread_id: Optional[int] = None) -> int:
    """Delete a thread's turns, or all of the user's turns. Returns rows deleted."""
    db = await get_db()
    clause, params = _thread_clause(thread_id)
    cursor = await db.execute(
        f"DELETE FROM chat_history WHERE user_id = ?{clause}",
        (user_id, *params),
    )
    await db.commit()
    return cursor.rowcount


async def create_thread(user_id: int, title: str) -> dict:
    db = await get_db()
    created_at = _now()
    cursor = await db.execute(
        "INSERT INTO chat_threads (user_id, title, created_at) VALUES (?, ?, ?)",
        (user_id, title, created_at),
    )
    await db.commit()
    return {"id": cursor.lastrowid, "user_id": user_id, "title": title, "created_at": created_at}


async def get_threads(user_id: int) -> list[dict]:
    """Threads of a user, newest first."""
    db = await get_db()
    cursor = await db.execute(
        """SELECT id, title, created_at FROM chat_threads
           WHERE user_id = ?
           ORDER BY created_at DESC, id DESC""",
        (user_id,),
    )
    rows = await cursor.fetchall()
    return [dict(row) for row in rows]
