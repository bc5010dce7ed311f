"""Tests for the SQLite store, run against a temporary database."""
from portal.db import queries
from portal.db.database import get_db, _seed_lessons


class TestSchema:
    async def test_lessons_seeded_once(self, db):
        lessons = await queries.get_lessons()

        assert [lesson["lesson_number"] for lesson in lessons] == [1, 2, 3, 4, 5, 6]
        assert lessons[0]["lesson_title"]

        await _seed_lessons(await get_db())
        assert len(await queries.get_lessons()) == 6

    async def test_primary_admin_whitelisted(self, db):
        allowed, role = await queries.is_user_allowed(1000)

        assert allowed is True
        assert role == "admin"

    async def test_missing_lesson(self, db):
        assert await queries.get_lesson(99) is None


class TestProfiles:
    """Sign-in profiles and the access whitelist."""

    async def test_upsert_updates_existing(self, db):
        await queries.upsert_profile(5, "S100", "أحمد", "الثالث المتوسط")
        await queries.upsert_profile(5, "S200", "أحمد علي", "الثالث المتوسط")

        profile = await queries.get_profile(5)
        assert profile["student_id"] == "S200"
        assert profile["full_name"] == "أحمد علي"

    async def test_unknown_user_not_allowed(self, db):
        assert await queries.is_user_allowed(42) == (False, None)

    async def test_allow_then_block(self, db):
        await queries.set_user_access(42, "student")
        assert await queries.is_user_allowed(42) == (True, "student")

        assert await queries.block_user(42) is True
        assert await queries.is_user_allowed(42) == (False, "student")

        await queries.set_user_access(42, "student")
        assert await queries.is_user_allowed(42) == (True, "student")

    async def test_block_unknown_user(self, db):
        assert await queries.block_user(777) is False

    async def test_all_profiles_only_signed_in(self, db):
        await queries.set_user_access(42, "student")
        await queries.upsert_profile(5, "S100", "أحمد", "الثالث المتوسط")

        profiles = await queries.get_all_profiles()

        assert [p["user_id"] for p in profiles] == [5]


class TestQuizResults:
    async def _save(self, user_id, lesson_id, percentage=80):
        return await queries.save_quiz_result(
            user_id, lesson_id, f"Lesson {lesson_id}", 5, 4, percentage,
            [{"id": 1, "question": "س", "options": ["a"], "correct": 0, "type": "multiple", "selected": 0}],
        )

    async def test_save_and_read_back(self, db):
        row_id = await self._save(5, 1)

        results = await queries.get_user_results(5)
        assert len(results) == 1
        assert results[0]["id"] == row_id
        assert results[0]["lesson_name"] == "Lesson 1"
        assert results[0]["questions_data"][0]["question"] == "س"

    async def test_newest_first_and_limit(self, db):
        first = await self._save(5, 1, 40)
        second = await self._save(5, 1, 60)
        third = await self._save(5, 2, 90)

        results = await queries.get_user_results(5)
        assert [r["id"] for r in results] == [third, second, first]
        assert len(await queries.get_user_results(5, limit=2)) == 2

    async def test_attempt_counts(self, db):
        await self._save(5, 1)
        await self._save(5, 1)
        await self._save(5, 2)
        await self._save(6, 1)

        assert await queries.count_attempts(5, 1) == 2
        assert await queries.count_attempts(5, 3) == 0
        assert await queries.get_attempt_counts(5) == {1: 2, 2: 1}

    async def test_results_for_users(self, db):
        await self._save(5, 1)
        await self._save(6, 1)
        await self._save(7, 1)

        rows = await queries.get_results_for_users([5, 6])
        assert sorted(r["user_id"] for r in rows) == [5, 6]
        assert await queries.get_results_for_users([]) == []


class TestChatHistory:
    """Chat turns, threads and clearing."""

    async def test_turn_columns(self, db):
        await queries.add_chat_turn(5, "user", "سؤال")
        await queries.add_chat_turn(5, "bot", "جواب.")

        history = await queries.get_chat_history(5)
        assert [(h["message_type"], h["message"], h["response"]) for h in history] == [
            ("user", "سؤال", None),
            ("bot", "جواب.", "جواب."),
        ]

    async def test_recent_turns_newest_first(self, db):
        for i in range(12):
            await queries.add_chat_turn(5, "user", f"m{i}")

        recent = await queries.get_recent_turns(5, 10)
        assert len(recent) == 10
        assert recent[0]["message"] == "m11"
        assert recent[-1]["message"] == "m2"

    async def test_last_assistant_turn(self, db):
        assert await queries.get_last_assistant_turn(5) is None

        await queries.add_chat_turn(5, "bot", "أول.")
        await queries.add_chat_turn(5, "bot", "ثاني.")
        await queries.add_chat_turn(5, "user", "سؤال")

        last = await queries.get_last_assistant_turn(5)
        assert last["response"] == "ثاني."

    async def test_threads_scope_history(self, db):
        t1 = await queries.create_thread(5, "أولى")
        t2 = await queries.create_thread(5, "ثانية")
        await queries.add_chat_turn(5, "bot", "في الأولى.", t1["id"])
        await queries.add_chat_turn(5, "bot", "في الثانية.", t2["id"])

        assert (await queries.get_last_assistant_turn(5, t1["id"]))["response"] == "في الأولى."
        assert [t["id"] for t in await queries.get_threads(5)] == [t2["id"], t1["id"]]

        assert await queries.clear_chat(5, t1["id"]) == 1
        assert await queries.get_chat_history(5, t1["id"]) == []
        assert len(await queries.get_chat_history(5, t2["id"])) == 1

    async def test_clear_all(self, db):
        await queries.add_chat_turn(5, "user", "a")
        await queries.add_chat_turn(5, "bot", "b.")
        await queries.add_chat_turn(6, "user", "c")

        assert await queries.clear_chat(5) == 2
        assert await queries.get_chat_history(5) == []
        assert len(await queries.get_chat_history(6)) == 1
