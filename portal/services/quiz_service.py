import logging
from dataclasses import dataclass
from typing import Optional

from portal.config import MAX_ATTEMPTS
from portal.db.models import AnsweredQuestion, NormalizedQuestion, QuizAttemptResult
from portal.db.queries import count_attempts, save_quiz_result
from portal.exceptions import StoreError
from portal.quiz.banks import load_lesson_questions
from portal.quiz.normalizer import normalize_questions
from portal.quiz.sampler import sample_questions

logger = logging.getLogger(__name__)

DENY_PREVIOUS_LESSON = "previous_lesson"
DENY_ATTEMPTS_EXHAUSTED = "attempts_exhausted"

SAVE_OK = "saved"
SAVE_LIMIT_REACHED = "limit_reached"
SAVE_FAILED = "failed"


@dataclass
class AccessDecision:
    allowed: bool
    attempts: Optional[int] = None
    reason: Optional[str] = None


async def check_quiz_access(user_id: int, lesson_id: int) -> AccessDecision:
    """Apply the unlock rule and the attempt limit before a quiz starts.

    A store failure never blocks the quiz: it is logged and access is granted.
    """
    try:
        if lesson_id > 1 and await count_attempts(user_id, lesson_id - 1) == 0:
            return AccessDecision(allowed=False, reason=DENY_PREVIOUS_LESSON)

        attempts = await count_attempts(user_id, lesson_id)
    except StoreError:
        logger.warning("Attempt lookup failed for user %s lesson %s, allowing quiz", user_id, lesson_id)
        return AccessDecision(allowed=True)

    if attempts >= MAX_ATTEMPTS:
        return AccessDecision(allowed=False, attempts=attempts, reason=DENY_ATTEMPTS_EXHAUSTED)
    return AccessDecision(allowed=True, attempts=attempts)


async def prepare_quiz(lesson_id: int, count: int) -> list[NormalizedQuestion]:
    """Load, normalize and sample the questions of one attempt."""
    raw = await load_lesson_questions(lesson_id)
    questions = normalize_questions(raw)
    selected = sample_questions(questions, count)
    logger.info("Lesson %s: %d of %d questions selected", lesson_id, len(selected), len(questions))
    return selected


def build_attempt_result(questions: list[NormalizedQuestion], selections: list[int]) -> QuizAttemptResult:
    """Pair each question with the index the student picked."""
    return QuizAttemptResult(
        answers=[AnsweredQuestion(q, sel) for q, sel in zip(questions, selections)]
    )


async def save_attempt(user_id: int, lesson_id: int, result: QuizAttemptResult) -> str:
    """Best-effort save of a finished attempt.

    The attempt count is read again right before the insert; when the limit was
    reached in the meantime nothing is stored. The result shown to the student is
    unaffected either way.
    """
    try:
        attempts = await count_attempts(user_id, lesson_id)
        if attempts >= MAX_ATTEMPTS:
            logger.warning(
                "Not saving result for user %s lesson %s: %d attempts already stored",
                user_id, lesson_id, attempts,
            )
            return SAVE_LIMIT_REACHED

        await save_quiz_result(
            user_id,
            lesson_id,
            f"Lesson {lesson_id}",
            result.total,
            result.correct_count,
            result.percentage,
            result.questions_data(),
        )
    except StoreError as e:
        logger.error("Failed to save quiz result for user %s: %s", user_id, e)
        return SAVE_FAILED

    return SAVE_OK
