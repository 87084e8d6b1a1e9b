from __future__ import annotations

import re
from pathlib import Path

import pytest

from daily_quiz.config import (
    ConfigError,
    ConfigOverrides,
    load_config,
)


def _load(tmp_path, *, env=None, **kwargs):
    env = {"DAILY_QUIZ_HOME": str(tmp_path / "home"), **(env or {})}
    return load_config(env=env, **kwargs)


def _write_config(tmp_path, content):
    path = tmp_path / "home" / "config" / "daily_quiz.toml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_defaults_without_config_file(tmp_path):
    result = _load(tmp_path)
    config = result.config
    home = (tmp_path / "home").absolute()

    assert result.config_path is None
    assert result.layout.home == home
    assert config.exam.code == "PDE"
    assert config.exam.curriculum_dirs == (home / "curricula",)
    assert config.rotation.strategy == "date"
    assert config.rotation.seed is None
    assert config.ai.model == "gpt-4o-mini"
    assert config.ai.shuffle_options is True
    assert config.ai.extra_instructions is None
    assert config.ai.base_url is None
    assert config.discord.webhook_url is None
    assert config.discord.bot_token is None
    assert config.discord.seed_reactions is True
    assert config.logging.level == "INFO"
    assert config.snapshot_dir == home / "current"


def test_config_file_values_are_applied(tmp_path):
    path = _write_config(
        tmp_path,
        """
[exam]
code = "ace"
curriculum_dir = "custom-curricula"

[rotation]
strategy = "weighted"
seed = 11

[ai]
model = "gpt-5-mini"
max_tokens = 900
extra_instructions = "  Keep it short.  "

[discord]
seed_reactions = false

[paths]
snapshot_dir = "state"
""",
    )

    result = _load(tmp_path)
    config = result.config
    home = (tmp_path / "home").absolute()

    assert result.config_path == path
    assert config.exam.code == "ACE"
    assert config.exam.curriculum_dirs == (
        (home / "custom-curricula").resolve(),
        home / "curricula",
    )
    assert config.rotation.strategy == "weighted"
    assert config.rotation.seed == 11
    assert config.ai.model == "gpt-5-mini"
    assert config.ai.max_tokens == 900
    assert config.ai.extra_instructions == "Keep it short."
    assert config.discord.seed_reactions is False
    assert config.snapshot_dir == (home / "state").resolve()


def test_environment_beats_file_and_cli_beats_environment(tmp_path):
    _write_config(tmp_path, '[exam]\ncode = "PDE"\n[logging]\nlevel = "WARNING"\n')
    env = {
        "DAILY_QUIZ_EXAM": "ace",
        "DAILY_QUIZ_LOG_LEVEL": "debug",
        "DAILY_QUIZ_MODEL": "gpt-4o",
        "DAILY_QUIZ_ROTATION_STRATEGY": "weighted",
    }

    from_env = _load(tmp_path, env=env).config
    assert from_env.exam.code == "ACE"
    assert from_env.logging.level == "DEBUG"
    assert from_env.ai.model == "gpt-4o"
    assert from_env.rotation.strategy == "weighted"

    overrides = ConfigOverrides(
        exam_code="cdl",
        strategy="date",
        seed=5,
        shuffle_options=False,
        log_level="error",
        snapshot_dir=tmp_path / "snap",
    )
    from_cli = _load(tmp_path, env=env, overrides=overrides).config
    assert from_cli.exam.code == "CDL"
    assert from_cli.rotation.strategy == "date"
    assert from_cli.rotation.seed == 5
    assert from_cli.ai.shuffle_options is False
    assert from_cli.logging.level == "ERROR"
    assert from_cli.snapshot_dir == (tmp_path / "snap").resolve()


def test_secrets_come_from_named_environment_variables(tmp_path):
    _write_config(
        tmp_path,
        '[discord]\nwebhook_url_env = "QUIZ_HOOK"\nbot_token_env = "QUIZ_BOT"\n',
    )
    env = {
        "QUIZ_HOOK": "https://discord.test/hook",
        "QUIZ_BOT": "  secret  ",
        "DISCORD_WEBHOOK_URL": "https://ignored",
    }

    discord = _load(tmp_path, env=env).config.discord

    assert discord.webhook_url == "https://discord.test/hook"
    assert discord.bot_token == "secret"


def test_explicit_config_path_must_exist(tmp_path):
    with pytest.raises(ConfigError, match="Config file not found"):
        _load(tmp_path, config_path=tmp_path / "missing.toml")

    with pytest.raises(ConfigError, match="Config file not found"):
        _load(tmp_path, env={"DAILY_QUIZ_CONFIG": str(tmp_path / "nope.toml")})


def test_config_env_points_at_file(tmp_path):
    path = tmp_path / "elsewhere.toml"
    path.write_text('[exam]\ncode = "ace"\n', encoding="utf-8")

    result = _load(tmp_path, env={"DAILY_QUIZ_CONFIG": str(path)})

    assert result.config_path == path
    assert result.config.exam.code == "ACE"


@pytest.mark.parametrize(
    "content, message",
    [
        ("[ai]\nmodle = 'x'\n", "Unknown configuration key 'ai.modle'"),
        ("[rotation]\nstrategy = 'random'\n", "rotation.strategy must be one of"),
        ("[rotation]\nseed = 'abc'\n", "rotation.seed must be an integer"),
        ("[ai]\ntemperature = 3\n", "ai.temperature"),
        ("[ai]\nmax_tokens = 0\n", "ai.max_tokens must be positive"),
        ("[ai]\nshuffle_options = 'yes'\n", "ai.shuffle_options"),
        ("[discord]\ntimeout_seconds = -1\n", "discord.timeout_seconds"),
        ("[exam]\ncode = ''\n", "exam.code"),
        ("ai = 'flat'\n", "Expected table for 'ai'"),
        ("[ai\n", "Failed to parse TOML"),
    ],
)
def test_invalid_config_raises(tmp_path, content, message):
    _write_config(tmp_path, content)

    with pytest.raises(ConfigError, match=re.escape(message)):
        _load(tmp_path)


def test_workspace_override_wins(tmp_path):
    custom = tmp_path / "other"

    result = load_config(env={}, workspace_path=custom)

    assert result.layout.home == custom.absolute()
    assert result.config.snapshot_dir == custom.absolute() / "current"


def test_curriculum_dir_from_environment(tmp_path):
    target = tmp_path / "shared"

    config = _load(
        tmp_path, env={"DAILY_QUIZ_CURRICULUM_DIR": str(target)}
    ).config

    assert config.exam.curriculum_dirs[0] == target.resolve()


def test_snapshot_dir_from_environment(tmp_path):
    config = _load(
        tmp_path, env={"DAILY_QUIZ_SNAPSHOT_DIR": str(tmp_path / "snaps")}
    ).config

    assert config.snapshot_dir == Path(tmp_path / "snaps").resolve()
