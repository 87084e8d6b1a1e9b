"""Quiz entities and their flat JSON records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional

__all__ = [
    "Difficulty",
    "EMOJI_TO_INDEX",
    "OPTION_COUNT",
    "OPTION_LABELS",
    "QuestionType",
    "Quiz",
    "QuizInvariantError",
    "QuizPost",
    "QuizStats",
    "REACTION_EMOJIS",
    "ReactionStats",
]

OPTION_COUNT = 4
OPTION_LABELS: tuple[str, ...] = ("a", "b", "c", "d")
REACTION_EMOJIS: tuple[str, ...] = ("🅰️", "🅱️", "🇨", "🇩")
EMOJI_TO_INDEX: Dict[str, int] = {
    emoji: index for index, emoji in enumerate(REACTION_EMOJIS)
}


class QuizInvariantError(ValueError):
    """Raised when a quiz record breaks one of its structural invariants."""


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def from_value(cls, value: str) -> "Difficulty":
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise QuizInvariantError(
            f"Unknown difficulty '{value}'. Expected one of: {expected}."
        )


class QuestionType(str, Enum):
    CONCEPT = "concept"
    BEST_PRACTICE = "best-practice"
    TROUBLESHOOTING = "troubleshooting"

    @classmethod
    def from_value(cls, value: str) -> "QuestionType":
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise QuizInvariantError(
            f"Unknown question type '{value}'. Expected one of: {expected}."
        )


@dataclass(frozen=True)
class Quiz:
    """A generated multiple-choice question bound to one curriculum topic."""

    id: str
    exam_code: str
    domain: str
    section: str
    topic: str
    difficulty: Difficulty
    question: str
    options: tuple[str, ...]
    correct: int
    explanation: str
    question_type: Optional[QuestionType] = None

    def __post_init__(self) -> None:
        if not isinstance(self.difficulty, Difficulty):
            object.__setattr__(
                self, "difficulty", Difficulty.from_value(self.difficulty)
            )
        if self.question_type is not None and not isinstance(
            self.question_type, QuestionType
        ):
            object.__setattr__(
                self,
                "question_type",
                QuestionType.from_value(self.question_type),
            )
        object.__setattr__(self, "options", tuple(self.options))
        if not self.id:
            raise QuizInvariantError("quiz id must be non-empty")
        if len(self.options) != OPTION_COUNT:
            raise QuizInvariantError(
                f"quiz must have exactly {OPTION_COUNT} options, "
                f"got {len(self.options)}"
            )
        if not all(isinstance(o, str) and o.strip() for o in self.options):
            raise QuizInvariantError("every option must be a non-empty string")
        if (
            isinstance(self.correct, bool)
            or not isinstance(self.correct, int)
            or not 0 <= self.correct < OPTION_COUNT
        ):
            raise QuizInvariantError(
                f"correct index must be an int in [0, {OPTION_COUNT - 1}], "
                f"got {self.correct!r}"
            )
        if not self.question.strip():
            raise QuizInvariantError("question must be non-empty")
        if not self.explanation.strip():
            raise QuizInvariantError("explanation must be non-empty")

    @property
    def correct_option(self) -> str:
        return self.options[self.correct]

    @property
    def correct_emoji(self) -> str:
        return REACTION_EMOJIS[self.correct]

    def to_dict(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "id": self.id,
            "exam_code": self.exam_code,
            "domain": self.domain,
            "section": self.section,
            "topic": self.topic,
            "difficulty": self.difficulty.value,
            "question": self.question,
            "options": list(self.options),
            "correct": self.correct,
            "explanation": self.explanation,
        }
        if self.question_type is not None:
            record["question_type"] = self.question_type.value
        return record

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Quiz":
        options = data.get("options")
        if options is not None and not isinstance(options, (list, tuple)):
            raise QuizInvariantError(
                f"quiz options must be a list, got {type(options).__name__}"
            )
        try:
            return cls(
                id=str(data["id"]),
                exam_code=str(data["exam_code"]),
                domain=str(data["domain"]),
                section=str(data["section"]),
                topic=str(data["topic"]),
                difficulty=data["difficulty"],
                question=str(data["question"]),
                options=tuple(data["options"]),
                correct=data["correct"],
                explanation=str(data["explanation"]),
                question_type=data.get("question_type"),
            )
        except KeyError as exc:
            raise QuizInvariantError(
                f"quiz record is missing field {exc.args[0]!r}"
            ) from exc
        except TypeError as exc:
            raise QuizInvariantError(f"quiz record is malformed: {exc}") from exc


@dataclass(frozen=True)
class QuizPost:
    """A quiz after delivery, with the message it was posted as."""

    quiz: Quiz
    message_id: str
    channel_id: str
    posted_at: str

    def __post_init__(self) -> None:
        if not self.message_id or not self.channel_id:
            raise QuizInvariantError("message_id and channel_id are required")
        try:
            datetime.fromisoformat(self.posted_at.replace("Z", "+00:00"))
        except (AttributeError, ValueError) as exc:
            raise QuizInvariantError(
                f"posted_at must be an ISO-8601 timestamp, got {self.posted_at!r}"
            ) from exc

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quiz": self.quiz.to_dict(),
            "message_id": self.message_id,
            "channel_id": self.channel_id,
            "posted_at": self.posted_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QuizPost":
        quiz_data = data.get("quiz")
        if not isinstance(quiz_data, Mapping):
            raise QuizInvariantError("post record is missing the 'quiz' object")
        return cls(
            quiz=Quiz.from_dict(quiz_data),
            message_id=str(data.get("message_id") or ""),
            channel_id=str(data.get("channel_id") or ""),
            posted_at=str(data.get("posted_at") or ""),
        )


@dataclass(frozen=True)
class ReactionStats:
    """Audience votes per option, net of the bot's own seed reaction."""

    a: int = 0
    b: int = 0
    c: int = 0
    d: int = 0

    def __post_init__(self) -> None:
        for label in OPTION_LABELS:
            value = getattr(self, label)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise QuizInvariantError(
                    f"reaction count '{label}' must be a non-negative int, "
                    f"got {value!r}"
                )

    @property
    def counts(self) -> tuple[int, int, int, int]:
        return (self.a, self.b, self.c, self.d)

    @property
    def total(self) -> int:
        return sum(self.counts)

    def count_for(self, index: int) -> int:
        return self.counts[index]

    def to_dict(self) -> Dict[str, int]:
        return dict(zip(OPTION_LABELS, self.counts))


@dataclass(frozen=True)
class QuizStats:
    quiz_post: QuizPost
    reactions: ReactionStats
    total_answers: int
    correct_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quiz_post": self.quiz_post.to_dict(),
            "reactions": self.reactions.to_dict(),
            "total_answers": self.total_answers,
            "correct_rate": self.correct_rate,
        }
