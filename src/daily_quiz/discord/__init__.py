from .client import (
    DiscordPublisher,
    PostResult,
    PublisherError,
    ReactionFetchUnavailable,
)
from .formatter import (
    format_answer_embed,
    format_answer_embed_with_stats,
    format_quiz_embed,
)

__all__ = [
    "DiscordPublisher",
    "PostResult",
    "PublisherError",
    "ReactionFetchUnavailable",
    "format_answer_embed",
    "format_answer_embed_with_stats",
    "format_quiz_embed",
]
