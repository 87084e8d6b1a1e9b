"""Timestamp-driven topic, difficulty, and question-type rotation.

Everything here is a pure function of a ``datetime``: re-running a job for
the same logical slot picks the same topic and produces the same quiz id, so
no "last selected" state has to be stored anywhere.

All calendar math happens on the UTC clock. Naive datetimes are taken to be
UTC already. The three daily slots (hour < 4, hour < 9, later) line up with
the 09:00, 13:00 and 18:00 JST posting times.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional, Protocol, Sequence

from .curriculum import FlattenedTopic
from .quiz.models import Difficulty, QuestionType

__all__ = [
    "EmptyTopicSetError",
    "QUESTION_TYPES",
    "ROTATION_STRATEGIES",
    "RotationPlan",
    "SLOTS_PER_DAY",
    "day_of_year",
    "generate_quiz_id",
    "plan_rotation",
    "question_type",
    "select_difficulty",
    "select_topic_by_date",
    "select_topic_weighted",
    "time_slot",
]

SLOTS_PER_DAY = 3
# Indexed by time slot.
QUESTION_TYPES: tuple[QuestionType, ...] = (
    QuestionType.CONCEPT,
    QuestionType.BEST_PRACTICE,
    QuestionType.TROUBLESHOOTING,
)
ROTATION_STRATEGIES: tuple[str, ...] = ("date", "weighted")

_SLUG_RE = re.compile(r"[^a-z0-9]+")
_SLUG_LENGTH = 20


class EmptyTopicSetError(ValueError):
    """Raised when a selection is asked to pick from zero topics."""


class RandomSource(Protocol):
    def random(self) -> float: ...


def _as_utc(when: datetime) -> datetime:
    if when.tzinfo is None:
        return when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc)


def day_of_year(when: datetime) -> int:
    """Return the 1-based day of the year for ``when``."""

    current = _as_utc(when).date()
    return (current - date(current.year, 1, 1)).days + 1


def time_slot(when: datetime) -> int:
    hour = _as_utc(when).hour
    if hour >= 9:
        return 2
    if hour >= 4:
        return 1
    return 0


def question_type(when: datetime) -> QuestionType:
    return QUESTION_TYPES[time_slot(when)]


def select_difficulty(when: datetime) -> Difficulty:
    """Mon-Wed easy, Thu-Fri medium, weekends hard."""

    weekday = _as_utc(when).weekday()
    if weekday <= 2:
        return Difficulty.EASY
    if weekday <= 4:
        return Difficulty.MEDIUM
    return Difficulty.HARD


def select_topic_by_date(
    topics: Sequence[FlattenedTopic], when: datetime
) -> FlattenedTopic:
    """Pick ``topics[(day_of_year * 3 + slot) % len(topics)]``."""

    if not topics:
        raise EmptyTopicSetError("Cannot select a topic from an empty list.")
    index = (day_of_year(when) * SLOTS_PER_DAY + time_slot(when)) % len(topics)
    return topics[index]


def select_topic_weighted(
    topics: Sequence[FlattenedTopic],
    *,
    seed: Optional[int] = None,
    rng: Optional[RandomSource] = None,
) -> FlattenedTopic:
    """Draw one topic with probability proportional to its weight.

    ``rng`` wins over ``seed``; with neither, the draw uses fresh entropy.
    If rounding leaves the threshold positive after the walk, the last topic
    is returned.
    """

    if not topics:
        raise EmptyTopicSetError("Cannot select a topic from an empty list.")
    source = rng if rng is not None else random.Random(seed)
    total = sum(topic.weight for topic in topics)
    threshold = source.random() * total
    for topic in topics:
        threshold -= topic.weight
        if threshold <= 0:
            return topic
    return topics[-1]


def _slugify(name: str) -> str:
    return _SLUG_RE.sub("-", name.lower()).strip("-")[:_SLUG_LENGTH]


def generate_quiz_id(topic: FlattenedTopic, when: datetime) -> str:
    """Build ``<exam>-<YYYYMMDD>-<topic slug>``, the quiz's idempotency key."""

    stamp = _as_utc(when).strftime("%Y%m%d")
    return f"{topic.exam_code.lower()}-{stamp}-{_slugify(topic.topic)}"


@dataclass(frozen=True)
class RotationPlan:
    """Everything a run needs to know before calling the generator."""

    when: datetime
    topic: FlattenedTopic
    difficulty: Difficulty
    question_type: QuestionType
    slot: int
    quiz_id: str
    strategy: str = "date"


def plan_rotation(
    topics: Sequence[FlattenedTopic],
    when: datetime,
    *,
    strategy: str = "date",
    seed: Optional[int] = None,
    rng: Optional[RandomSource] = None,
) -> RotationPlan:
    if strategy == "date":
        topic = select_topic_by_date(topics, when)
    elif strategy == "weighted":
        topic = select_topic_weighted(topics, seed=seed, rng=rng)
    else:
        expected = ", ".join(ROTATION_STRATEGIES)
        raise ValueError(
            f"Unknown rotation strategy '{strategy}'. Expected one of: "
            f"{expected}."
        )
    return RotationPlan(
        when=when,
        topic=topic,
        difficulty=select_difficulty(when),
        question_type=question_type(when),
        slot=time_slot(when),
        quiz_id=generate_quiz_id(topic, when),
        strategy=strategy,
    )
