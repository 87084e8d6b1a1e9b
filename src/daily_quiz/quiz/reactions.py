"""Audience reaction tallying."""

from __future__ import annotations

from typing import Iterable, Mapping, Tuple, Union

from .models import (
    EMOJI_TO_INDEX,
    OPTION_COUNT,
    QuizPost,
    QuizStats,
    ReactionStats,
)

__all__ = [
    "EMPTY_STATS",
    "build_stats",
    "correct_rate",
    "has_any_responses",
    "tally",
]

EMPTY_STATS = ReactionStats()

RawCounts = Union[Mapping[str, int], Iterable[Tuple[str, int]]]

_VARIATION_SELECTOR = "\ufe0f"


def _normalize_emoji(emoji: str) -> str:
    # Discord reports some glyphs with and some without U+FE0F.
    return emoji.replace(_VARIATION_SELECTOR, "")


def tally(
    raw_counts: RawCounts,
    emoji_to_index: Mapping[str, int] = EMOJI_TO_INDEX,
) -> ReactionStats:
    """Turn raw per-emoji counts into per-option votes.

    Each mapped count loses one for the bot's own seed reaction and never
    goes below zero. Emojis outside ``emoji_to_index`` are ignored.
    """

    lookup = {_normalize_emoji(k): v for k, v in emoji_to_index.items()}
    pairs = raw_counts.items() if isinstance(raw_counts, Mapping) else raw_counts
    counts = [0] * OPTION_COUNT
    for emoji, raw in pairs:
        index = lookup.get(_normalize_emoji(str(emoji)))
        if index is None:
            continue
        counts[index] = max(0, int(raw) - 1)
    return ReactionStats(*counts)


def has_any_responses(stats: ReactionStats) -> bool:
    return any(count > 0 for count in stats.counts)


def correct_rate(stats: ReactionStats, correct_index: int) -> float:
    """Share of votes on the correct option; 0.0 when nobody voted."""

    total = stats.total
    if total == 0:
        return 0.0
    return stats.count_for(correct_index) / total


def build_stats(post: QuizPost, stats: ReactionStats) -> QuizStats:
    return QuizStats(
        quiz_post=post,
        reactions=stats,
        total_answers=stats.total,
        correct_rate=correct_rate(stats, post.quiz.correct),
    )
