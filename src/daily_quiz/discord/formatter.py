"""Discord embed payloads for quiz questions and answer reveals."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..quiz.models import REACTION_EMOJIS, Difficulty, Quiz, ReactionStats
from ..quiz.reactions import correct_rate

__all__ = [
    "ANSWER_COLOR",
    "DIFFICULTY_COLORS",
    "DIFFICULTY_LABELS",
    "format_answer_embed",
    "format_answer_embed_with_stats",
    "format_quiz_embed",
]

DIFFICULTY_COLORS: Dict[Difficulty, int] = {
    Difficulty.EASY: 0x00FF00,
    Difficulty.MEDIUM: 0xFFFF00,
    Difficulty.HARD: 0xFF0000,
}
DIFFICULTY_LABELS: Dict[Difficulty, str] = {
    Difficulty.EASY: "🟢 Easy",
    Difficulty.MEDIUM: "🟡 Medium",
    Difficulty.HARD: "🔴 Hard",
}
ANSWER_COLOR = 0x5865F2

Embed = Dict[str, Any]


def _timestamp(now: Optional[datetime]) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def _footer(quiz: Quiz) -> Dict[str, str]:
    return {"text": f"Quiz ID: {quiz.id}"}


def format_quiz_embed(quiz: Quiz, *, now: Optional[datetime] = None) -> Embed:
    options = "\n\n".join(
        f"{REACTION_EMOJIS[i]} {text}" for i, text in enumerate(quiz.options)
    )
    fields: List[Dict[str, Any]] = [
        {"name": "Options", "value": options},
        {
            "name": "Topic",
            "value": f"{quiz.domain} > {quiz.section}",
            "inline": True,
        },
        {
            "name": "Difficulty",
            "value": DIFFICULTY_LABELS[quiz.difficulty],
            "inline": True,
        },
    ]
    return {
        "title": f"📝 {quiz.exam_code} Daily Quiz",
        "description": quiz.question,
        "color": DIFFICULTY_COLORS[quiz.difficulty],
        "fields": fields,
        "footer": _footer(quiz),
        "timestamp": _timestamp(now),
    }


def _answer_header(quiz: Quiz) -> str:
    return f"**The answer is {quiz.correct_emoji}!**\n\n{quiz.correct_option}"


def _answer_tail(quiz: Quiz) -> List[Dict[str, Any]]:
    return [
        {"name": "📚 Explanation", "value": quiz.explanation},
        {
            "name": "Topic",
            "value": f"{quiz.domain} > {quiz.section} > {quiz.topic}",
        },
    ]


def format_answer_embed(quiz: Quiz, *, now: Optional[datetime] = None) -> Embed:
    return {
        "title": f"✅ Answer: {quiz.exam_code} Daily Quiz",
        "description": _answer_header(quiz),
        "color": ANSWER_COLOR,
        "fields": _answer_tail(quiz),
        "footer": _footer(quiz),
        "timestamp": _timestamp(now),
    }


def format_answer_embed_with_stats(
    quiz: Quiz,
    stats: ReactionStats,
    *,
    now: Optional[datetime] = None,
) -> Embed:
    lines = []
    for i, count in enumerate(stats.counts):
        mark = " ✓" if i == quiz.correct else ""
        lines.append(f"{REACTION_EMOJIS[i]}: {count} vote(s){mark}")
    rate = correct_rate(stats, quiz.correct) * 100
    summary = (
        f"**Correct rate: {rate:.1f}%** "
        f"({stats.count_for(quiz.correct)}/{stats.total})"
    )
    fields = [
        {"name": "📊 Results", "value": "\n".join(lines) + "\n\n" + summary}
    ]
    fields.extend(_answer_tail(quiz))
    return {
        "title": f"✅ Answer: {quiz.exam_code} Daily Quiz",
        "description": _answer_header(quiz),
        "color": ANSWER_COLOR,
        "fields": fields,
        "footer": _footer(quiz),
        "timestamp": _timestamp(now),
    }
