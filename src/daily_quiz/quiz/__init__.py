from .models import (
    EMOJI_TO_INDEX,
    REACTION_EMOJIS,
    Difficulty,
    QuestionType,
    Quiz,
    QuizInvariantError,
    QuizPost,
    QuizStats,
    ReactionStats,
)
from .parser import (
    ParseError,
    ParseStage,
    RawAnswer,
    ValidationResult,
    extract_payload,
    parse_quiz_response,
    validate_answer,
)
from .reactions import (
    EMPTY_STATS,
    build_stats,
    correct_rate,
    has_any_responses,
    tally,
)
from .generator import (
    GenerationError,
    build_messages,
    build_quiz,
    debias_shuffle,
    generate_quiz,
)

__all__ = [
    "EMOJI_TO_INDEX",
    "REACTION_EMOJIS",
    "Difficulty",
    "QuestionType",
    "Quiz",
    "QuizInvariantError",
    "QuizPost",
    "QuizStats",
    "ReactionStats",
    "ParseError",
    "ParseStage",
    "RawAnswer",
    "ValidationResult",
    "extract_payload",
    "parse_quiz_response",
    "validate_answer",
    "EMPTY_STATS",
    "build_stats",
    "correct_rate",
    "has_any_responses",
    "tally",
    "GenerationError",
    "build_messages",
    "build_quiz",
    "debias_shuffle",
    "generate_quiz",
]
