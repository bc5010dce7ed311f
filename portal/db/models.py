"""Records exchanged between the quiz engine, the chat protocol and the store."""
from dataclasses import dataclass, field, asdict
from typing import Any, Optional, TypedDict, Union


# ============================================================================
# QUIZ
# ============================================================================

KIND_BOOLEAN = "boolean"
KIND_MULTIPLE = "multiple"


@dataclass
class NormalizedQuestion:
    """One question in canonical form, whatever shape its source record had."""
    id: Union[int, str]
    question_text: str
    options: list[str]
    correct_index: int
    kind: str = KIND_MULTIPLE
    raw: dict = field(default_factory=dict, compare=False, repr=False)
    answer_resolved: bool = True

    @property
    def correct_text(self) -> Optional[str]:
        if 0 <= self.correct_index < len(self.options):
            return self.options[self.correct_index]
        return None

    @property
    def hint(self) -> Optional[str]:
        """Hint or rationale text carried by the source record, if any."""
        hint = self.raw.get("hint")
        if hint:
            return str(hint)
        rationale = self.raw.get("rationale")
        if isinstance(rationale, dict):
            return "\n".join(f"{key}: {value}" for key, value in rationale.items())
        if rationale:
            return str(rationale)
        return None


@dataclass
class AnsweredQuestion:
    question: NormalizedQuestion
    selected_index: int

    @property
    def is_correct(self) -> bool:
        return self.selected_index == self.question.correct_index


@dataclass
class QuizAttemptResult:
    """Outcome of one finished quiz, held by the client until it navigates away."""
    answers: list[AnsweredQuestion]

    @property
    def total(self) -> int:
        return len(self.answers)

    @property
    def correct_count(self) -> int:
        return sum(1 for a in self.answers if a.is_correct)

    @property
    def percentage(self) -> int:
        if not self.total:
            return 0
        return round(self.correct_count / self.total * 100)

    def questions_data(self) -> list[dict]:
        """Per-question snapshot stored with the result record."""
        return [
            {
                "id": a.question.id,
                "question": a.question.question_text,
                "options": list(a.question.options),
                "correct": a.question.correct_index,
                "type": a.question.kind,
                "selected": a.selected_index,
            }
            for a in self.answers
        ]


class QuizResultRow(TypedDict):
    id: int
    user_id: int
    lesson_id: int
    lesson_name: str
    total_questions: int
    correct_answers: int
    score_percentage: int
    questions_data: list
    completed_at: str


class LessonRow(TypedDict):
    id: int
    lesson_number: int
    lesson_title: str
    lesson_description: Optional[str]
    questions: list


# ============================================================================
# CHAT
# ============================================================================

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"

# message_type values as stored
STORED_USER = "user"
STORED_BOT = "bot"


@dataclass
class ChatTurn:
    role: str
    text: str
    created_at: str
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: dict) -> "ChatTurn":
        if row["message_type"] == STORED_USER:
            return cls(ROLE_USER, row.get("message") or "", row["created_at"], row.get("id"))
        text = row.get("response") or row.get("message") or ""
        return cls(ROLE_ASSISTANT, text, row["created_at"], row.get("id"))


@dataclass
class CompletionRequest:
    message: str
    user_id: Optional[Union[int, str]]
    is_continue: bool = False
    cursor: int = 0
    thread_id: Optional[int] = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "CompletionRequest":
        """Build a request from its wire form ({message, userId, continue?, cursor?, threadId?})."""
        cursor = payload.get("cursor")
        if isinstance(cursor, bool) or not isinstance(cursor, int):
            cursor = 0
        return cls(
            message=payload.get("message") or "",
            user_id=payload.get("userId"),
            is_continue=bool(payload.get("continue")),
            cursor=cursor,
            thread_id=payload.get("threadId"),
        )


@dataclass
class CompletionResponse:
    response: str
    success: bool = True
    truncated: bool = False
    cursor: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.error is None:
            del data["error"]
        return data
