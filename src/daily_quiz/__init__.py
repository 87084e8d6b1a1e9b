"""Scheduled exam-prep quizzes generated with OpenAI and posted to Discord."""

from .curriculum import ExamCurriculum, FlattenedTopic
from .quiz import Difficulty, QuestionType, Quiz, QuizPost, QuizStats, ReactionStats
from .rotation import RotationPlan, plan_rotation

__all__ = [
    "Difficulty",
    "ExamCurriculum",
    "FlattenedTopic",
    "QuestionType",
    "Quiz",
    "QuizPost",
    "QuizStats",
    "ReactionStats",
    "RotationPlan",
    "plan_rotation",
]
