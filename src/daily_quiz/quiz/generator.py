"""Quiz generation: prompt, single model call, normalization, assembly."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Tuple

from ..curriculum import FlattenedTopic
from .models import Difficulty, QuestionType, Quiz
from .parser import RawAnswer, parse_quiz_response

if TYPE_CHECKING:  # pragma: no cover
    from ..config import AISettings
    from ..rotation import RotationPlan

__all__ = [
    "GenerationError",
    "build_messages",
    "build_quiz",
    "debias_shuffle",
    "generate_quiz",
    "request_completion",
]


class GenerationError(RuntimeError):
    """Raised when the text-generation service call fails or returns nothing."""


class IndexSource(Protocol):
    def randrange(self, stop: int) -> int: ...


_SYSTEM_PROMPT = (
    "You are an experienced certification exam item writer. You write one "
    "realistic multiple-choice question at a time, with exactly one correct "
    "answer and three plausible distractors. You reply with JSON only."
)

_QUESTION_STYLES: Dict[QuestionType, str] = {
    QuestionType.CONCEPT: (
        "Test understanding of a core concept: what a service or feature is "
        "for and how it behaves."
    ),
    QuestionType.BEST_PRACTICE: (
        "Present a short design scenario and ask for the option that follows "
        "recommended best practice."
    ),
    QuestionType.TROUBLESHOOTING: (
        "Describe a symptom or failure and ask for the most likely cause or "
        "the best next step to fix it."
    ),
}

_DIFFICULTY_HINTS: Dict[Difficulty, str] = {
    Difficulty.EASY: "Keep it approachable; a single fact should suffice.",
    Difficulty.MEDIUM: "Require applying knowledge to a concrete situation.",
    Difficulty.HARD: (
        "Require weighing trade-offs between options that all look viable."
    ),
}

_SCHEMA_LINE = (
    '{"question": str, "options": [str, str, str, str], '
    '"correct": int (0-3), "explanation": str}'
)


def build_messages(
    topic: FlattenedTopic,
    difficulty: Difficulty,
    question_type: QuestionType,
    *,
    extra_instructions: Optional[str] = None,
) -> List[Dict[str, str]]:
    """Return the system and user chat messages for one question."""

    lines = [
        f"Exam: {topic.exam_code}",
        f"Domain: {topic.domain}",
        f"Section: {topic.section}",
        f"Topic: {topic.topic}",
        f"Difficulty: {difficulty.value}. {_DIFFICULTY_HINTS[difficulty]}",
        f"Question type: {question_type.value}. "
        f"{_QUESTION_STYLES[question_type]}",
        "",
        "Respond with a single JSON object matching this schema:",
        _SCHEMA_LINE,
        "The explanation should say why the correct option is right and why "
        "the others are not.",
    ]
    extra = (extra_instructions or "").strip()
    if extra:
        lines.extend(["", extra])
    return [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {"role": "user", "content": "\n".join(lines)},
    ]


def request_completion(
    client: Any,
    messages: List[Dict[str, str]],
    *,
    model: str,
    temperature: float,
    max_tokens: int,
) -> str:
    """Make one chat completion call and return its text content."""

    params: Dict[str, Any] = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
    }
    if "gpt-5" in model:
        params["max_completion_tokens"] = max_tokens
    else:
        params["max_tokens"] = max_tokens

    try:
        resp = client.chat.completions.create(**params)
        content = resp.choices[0].message.content
    except Exception as exc:
        raise GenerationError(f"Generation request failed: {exc}") from exc
    text = (content or "").strip()
    if not text:
        raise GenerationError(
            "AI returned empty content; check API key/model and prompt"
        )
    return text


def debias_shuffle(
    answer: RawAnswer, *, rng: Optional[IndexSource] = None
) -> Tuple[tuple[str, ...], int]:
    """Shuffle the options uniformly and track where the correct one lands.

    Models tend to put the right answer first; shuffling keeps audience
    statistics from rewarding a positional guess.
    """

    source = rng if rng is not None else random.Random()
    order = list(range(len(answer.options)))
    for i in range(len(order) - 1, 0, -1):
        j = source.randrange(i + 1)
        order[i], order[j] = order[j], order[i]
    options = tuple(answer.options[k] for k in order)
    return options, order.index(answer.correct)


def build_quiz(
    topic: FlattenedTopic,
    difficulty: Difficulty,
    quiz_id: str,
    answer: RawAnswer,
    *,
    options: Optional[tuple[str, ...]] = None,
    correct: Optional[int] = None,
    question_type: Optional[QuestionType] = None,
) -> Quiz:
    """Assemble a :class:`Quiz`; ``options``/``correct`` override the answer's."""

    return Quiz(
        id=quiz_id,
        exam_code=topic.exam_code,
        domain=topic.domain,
        section=topic.section,
        topic=topic.topic,
        difficulty=difficulty,
        question=answer.question,
        options=options if options is not None else answer.options,
        correct=correct if correct is not None else answer.correct,
        explanation=answer.explanation,
        question_type=question_type,
    )


def generate_quiz(
    plan: "RotationPlan",
    *,
    client: Any,
    settings: "AISettings",
    rng: Optional[IndexSource] = None,
) -> Quiz:
    """Generate, validate, and (optionally) de-bias the quiz for ``plan``."""

    messages = build_messages(
        plan.topic,
        plan.difficulty,
        plan.question_type,
        extra_instructions=settings.extra_instructions,
    )
    text = request_completion(
        client,
        messages,
        model=settings.model,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
    )
    answer = parse_quiz_response(text)
    options: Optional[tuple[str, ...]] = None
    correct: Optional[int] = None
    if settings.shuffle_options:
        options, correct = debias_shuffle(answer, rng=rng)
    return build_quiz(
        plan.topic,
        plan.difficulty,
        plan.quiz_id,
        answer,
        options=options,
        correct=correct,
        question_type=plan.question_type,
    )
