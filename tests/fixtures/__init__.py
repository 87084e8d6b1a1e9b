"""Fakes and builders shared by the daily_quiz test suite."""

from .discord import FakeResponse, FakeSession  # noqa: F401
from .openai import FakeOpenAIClient  # noqa: F401
from .workspace import WorkspaceBuilder  # noqa: F401

__all__ = [
    "FakeOpenAIClient",
    "FakeResponse",
    "FakeSession",
    "WorkspaceBuilder",
]
