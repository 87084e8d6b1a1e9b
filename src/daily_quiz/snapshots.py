"""Flat JSON snapshots handed between the question run and the answer run."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from .quiz.models import Quiz, QuizInvariantError, QuizPost, QuizStats

__all__ = [
    "POST_FILENAME",
    "QUIZ_FILENAME",
    "STATS_FILENAME",
    "SnapshotError",
    "load_post",
    "load_quiz",
    "save_post",
    "save_quiz",
    "save_stats",
]

QUIZ_FILENAME = "quiz.json"
POST_FILENAME = "post.json"
STATS_FILENAME = "stats.json"


class SnapshotError(RuntimeError):
    """Raised when a snapshot file is missing or does not hold a valid record."""


def _write_json(path: Path, record: Mapping[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(record, ensure_ascii=False, indent=2) + "\n",
        encoding="utf-8",
    )
    return path


def _read_json(path: Path) -> Mapping[str, Any]:
    if not path.exists():
        raise SnapshotError(f"Snapshot not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"Snapshot {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise SnapshotError(f"Snapshot {path} must contain a JSON object.")
    return data


def save_quiz(directory: Path, quiz: Quiz) -> Path:
    return _write_json(Path(directory) / QUIZ_FILENAME, quiz.to_dict())


def save_post(directory: Path, post: QuizPost) -> Path:
    return _write_json(Path(directory) / POST_FILENAME, post.to_dict())


def save_stats(directory: Path, stats: QuizStats) -> Path:
    return _write_json(Path(directory) / STATS_FILENAME, stats.to_dict())


def load_quiz(directory: Path) -> Quiz:
    path = Path(directory) / QUIZ_FILENAME
    try:
        return Quiz.from_dict(_read_json(path))
    except QuizInvariantError as exc:
        raise SnapshotError(f"Invalid quiz snapshot {path}: {exc}") from exc


def load_post(directory: Path) -> QuizPost:
    path = Path(directory) / POST_FILENAME
    try:
        return QuizPost.from_dict(_read_json(path))
    except QuizInvariantError as exc:
        raise SnapshotError(f"Invalid post snapshot {path}: {exc}") from exc
