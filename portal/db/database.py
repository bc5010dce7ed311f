import json
import logging
import os

import aiosqlite

from portal.config import settings, LESSONS

logger = logging.getLogger(__name__)

_db: aiosqlite.Connection | None = None


async def get_db() -> aiosqlite.Connection:
    """Get or create the database connection."""
    global _db
    if _db is None:
        db_dir = os.path.dirname(settings.DB_PATH)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        _db = await aiosqlite.connect(settings.DB_PATH)
        _db.row_factory = aiosqlite.Row
        await _create_tables(_db)
        await _run_migrations(_db)
        await _seed_lessons(_db)
    return _db


async def close_db():
    """Close the database connection."""
    global _db
    if _db:
        await _db.close()
        _db = None


async def _create_tables(db: aiosqlite.Connection):
    await db.executescript("""
        CREATE TABLE IF NOT EXISTS profiles (
            user_id       INTEGER PRIMARY KEY,
            student_id    TEXT,
            full_name     TEXT,
            grade         TEXT,
            created_at    TEXT DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS lessons (
            id                  INTEGER PRIMARY KEY AUTOINCREMENT,
            lesson_number       INTEGER NOT NULL UNIQUE,
            lesson_title        TEXT NOT NULL,
            lesson_description  TEXT,
            questions           TEXT
        );

        CREATE TABLE IF NOT EXISTS quiz_results (
            id                INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id           INTEGER NOT NULL,
            lesson_id         INTEGER NOT NULL,
            lesson_name       TEXT,
            total_questions   INTEGER NOT NULL,
            correct_answers   INTEGER NOT NULL,
            score_percentage  INTEGER NOT NULL,
            questions_data    TEXT,
            completed_at      TEXT NOT NULL,
            FOREIGN KEY (user_id) REFERENCES profiles(user_id)
        );

        CREATE TABLE IF NOT EXISTS chat_threads (
            id          INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id     INTEGER NOT NULL,
            title       TEXT,
            created_at  TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS chat_history (
            id            INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id       INTEGER NOT NULL,
            thread_id     INTEGER,
            message       TEXT,
            response      TEXT,
            message_type  TEXT NOT NULL,
            created_at    TEXT NOT NULL,
            FOREIGN KEY (thread_id) REFERENCES chat_threads(id)
        );

        CREATE INDEX IF NOT EXISTS idx_quiz_results_user_lesson
            ON quiz_results (user_id, lesson_id);
        CREATE INDEX IF NOT EXISTS idx_chat_history_user_created
            ON chat_history (user_id, created_at);
    """)
    await db.commit()


async def _run_migrations(db: aiosqlite.Connection):
    """Add access-control columns to profiles table (idempotent)."""
    cursor = await db.execute("PRAGMA table_info(profiles)")
    columns = {row[1] for row in await cursor.fetchall()}

    if "role" not in columns:
        await db.execute("ALTER TABLE profiles ADD COLUMN role TEXT DEFAULT 'student'")
    if "is_blocked" not in columns:
        await db.execute("ALTER TABLE profiles ADD COLUMN is_blocked INTEGER DEFAULT 0")

    if settings.ADMIN_ID is not None:
        await db.execute(
            "INSERT OR IGNORE INTO profiles (user_id, role, is_blocked) VALUES (?, 'admin', 0)",
            (settings.ADMIN_ID,),
        )
        await db.execute(
            "UPDATE profiles SET role = 'admin', is_blocked = 0 WHERE user_id = ?",
            (settings.ADMIN_ID,),
        )

    await db.commit()


async def _seed_lessons(db: aiosqlite.Connection):
    """Insert the curriculum lessons once; existing rows are left untouched."""
    for lesson in LESSONS:
        await db.execute(
            """INSERT OR IGNORE INTO lessons (lesson_number, lesson_title, lesson_description, questions)
               VALUES (?, ?, ?, ?)""",
            (
                lesson["lesson_number"],
                lesson["lesson_title"],
                lesson["lesson_description"],
                json.dumps(lesson.get("questions", []), ensure_ascii=False),
            ),
        )
    await db.commit()
    logger.info("Lesson catalog ready (%d seeded lessons)", len(LESSONS))
