from __future__ import annotations

import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import WorkspaceBuilder  # noqa: E402

_ENV_VARS = (
    "DAILY_QUIZ_HOME",
    "DAILY_QUIZ_CONFIG",
    "DAILY_QUIZ_EXAM",
    "DAILY_QUIZ_MODEL",
    "DAILY_QUIZ_LOG_LEVEL",
    "DAILY_QUIZ_SNAPSHOT_DIR",
    "DAILY_QUIZ_ROTATION_STRATEGY",
    "DAILY_QUIZ_CURRICULUM_DIR",
    "DISCORD_WEBHOOK_URL",
    "DISCORD_BOT_TOKEN",
    "OPENAI_API_KEY",
)


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the host's environment and any local ``.env`` out of tests."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> WorkspaceBuilder:
    """A workspace root exported through ``DAILY_QUIZ_HOME``."""

    builder = WorkspaceBuilder(tmp_path / "home")
    monkeypatch.setenv("DAILY_QUIZ_HOME", str(builder.root))
    return builder
