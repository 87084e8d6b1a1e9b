"""Run configuration for post-quiz and post-answer.

Values resolve with the precedence CLI overrides > ``DAILY_QUIZ_*``
environment > ``daily_quiz.toml`` > built-in defaults. Secrets are looked up
by environment variable name here, at the edge, and travel inward only as
fields of the returned settings objects.
"""

from __future__ import annotations

import numbers
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

from dotenv import load_dotenv

from .core import config as core_config
from .core import workspace as workspace_mod
from .rotation import ROTATION_STRATEGIES

CONFIG_FILENAME = "daily_quiz.toml"
CONFIG_ENV = "DAILY_QUIZ_CONFIG"
ENV_PREFIX = "DAILY_QUIZ_"

_DEFAULT_EXAM = "PDE"
_DEFAULT_MODEL = "gpt-4o-mini"
_DEFAULT_LOG_LEVEL = "INFO"


class ConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class ExamSettings:
    code: str
    curriculum_dirs: tuple[Path, ...]


@dataclass(frozen=True)
class RotationSettings:
    strategy: str
    seed: Optional[int]


@dataclass(frozen=True)
class AISettings:
    model: str
    temperature: float
    max_tokens: int
    shuffle_options: bool
    extra_instructions: Optional[str]
    base_url: Optional[str]
    timeout_seconds: float


@dataclass(frozen=True)
class DiscordSettings:
    webhook_url: Optional[str]
    bot_token: Optional[str]
    timeout_seconds: float
    seed_reactions: bool


@dataclass(frozen=True)
class LoggingSettings:
    level: str


@dataclass(frozen=True)
class DailyQuizConfig:
    exam: ExamSettings
    rotation: RotationSettings
    ai: AISettings
    discord: DiscordSettings
    logging: LoggingSettings
    snapshot_dir: Path


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced values applied on top of file and environment options."""

    exam_code: Optional[str] = None
    strategy: Optional[str] = None
    seed: Optional[int] = None
    shuffle_options: Optional[bool] = None
    log_level: Optional[str] = None
    snapshot_dir: Optional[Path] = None


@dataclass(frozen=True)
class LoadResult:
    config: DailyQuizConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Resolve the full run configuration.

    When ``env`` is omitted, ``.env`` is loaded and ``os.environ`` is used.
    """

    overrides = overrides or ConfigOverrides()
    if env is None:
        load_dotenv()
        env = os.environ

    try:
        layout = workspace_mod.ensure_workspace(env=env, path=workspace_path)
    except workspace_mod.WorkspaceError as exc:
        raise ConfigError(str(exc)) from exc

    requested = _resolve_config_path(
        config_path=config_path,
        env_map=env,
        default_path=layout.path_for("config") / CONFIG_FILENAME,
    )

    table = _default_table()
    loaded_path: Optional[Path] = None
    if requested.exists():
        loaded_path = requested
        try:
            table = core_config.overlay_table(table, core_config.load_toml(requested))
        except core_config.TomlConfigError as exc:
            raise ConfigError(str(exc)) from exc
    elif config_path is not None or _env_string(env, CONFIG_ENV) is not None:
        raise ConfigError(f"Config file not found: {requested}")

    exam = _build_exam(table["exam"], env, overrides, layout)
    rotation = _build_rotation(table["rotation"], env, overrides)
    ai = _build_ai(table["ai"], env, overrides)
    discord = _build_discord(table["discord"], env)
    log_level = _require_str(
        _pick_first(
            overrides.log_level,
            _env_string(env, f"{ENV_PREFIX}LOG_LEVEL"),
            table["logging"]["level"],
        ),
        "logging.level",
    ).upper()
    snapshot_dir = _resolve_dir(
        _pick_first(
            overrides.snapshot_dir,
            _env_string(env, f"{ENV_PREFIX}SNAPSHOT_DIR"),
            table["paths"]["snapshot_dir"],
        ),
        layout=layout,
        default=layout.path_for("current"),
        key="paths.snapshot_dir",
    )

    config = DailyQuizConfig(
        exam=exam,
        rotation=rotation,
        ai=ai,
        discord=discord,
        logging=LoggingSettings(level=log_level),
        snapshot_dir=snapshot_dir,
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def _default_table() -> MutableMapping[str, MutableMapping[str, Any]]:
    return {
        "exam": {"code": _DEFAULT_EXAM, "curriculum_dir": ""},
        "rotation": {"strategy": "date", "seed": None},
        "ai": {
            "model": _DEFAULT_MODEL,
            "temperature": 0.7,
            "max_tokens": 2048,
            "shuffle_options": True,
            "extra_instructions": "",
            "base_url": "",
            "timeout_seconds": 60,
        },
        "discord": {
            "webhook_url_env": "DISCORD_WEBHOOK_URL",
            "bot_token_env": "DISCORD_BOT_TOKEN",
            "timeout_seconds": 30,
            "seed_reactions": True,
        },
        "paths": {"snapshot_dir": ""},
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _build_exam(
    table: Mapping[str, Any],
    env: Mapping[str, str],
    overrides: ConfigOverrides,
    layout: workspace_mod.WorkspaceLayout,
) -> ExamSettings:
    code = _require_str(
        _pick_first(
            overrides.exam_code,
            _env_string(env, f"{ENV_PREFIX}EXAM"),
            table["code"],
        ),
        "exam.code",
    )
    dirs = [layout.path_for("curricula")]
    extra = _pick_first(
        _env_string(env, f"{ENV_PREFIX}CURRICULUM_DIR"),
        table["curriculum_dir"],
    )
    if extra:
        custom = _resolve_dir(
            extra,
            layout=layout,
            default=layout.path_for("curricula"),
            key="exam.curriculum_dir",
        )
        dirs.insert(0, custom)
    return ExamSettings(code=code.upper(), curriculum_dirs=tuple(dirs))


def _build_rotation(
    table: Mapping[str, Any],
    env: Mapping[str, str],
    overrides: ConfigOverrides,
) -> RotationSettings:
    strategy = _require_str(
        _pick_first(
            overrides.strategy,
            _env_string(env, f"{ENV_PREFIX}ROTATION_STRATEGY"),
            table["strategy"],
        ),
        "rotation.strategy",
    ).lower()
    if strategy not in ROTATION_STRATEGIES:
        expected = ", ".join(ROTATION_STRATEGIES)
        raise ConfigError(
            f"rotation.strategy must be one of: {expected}; got '{strategy}'."
        )
    seed = _pick_first(overrides.seed, table["seed"])
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        raise ConfigError("rotation.seed must be an integer when provided.")
    return RotationSettings(strategy=strategy, seed=seed)


def _build_ai(
    table: Mapping[str, Any],
    env: Mapping[str, str],
    overrides: ConfigOverrides,
) -> AISettings:
    model = _require_str(
        _pick_first(_env_string(env, f"{ENV_PREFIX}MODEL"), table["model"]),
        "ai.model",
    )
    temperature = _require_number(table["temperature"], "ai.temperature")
    if not 0 <= temperature <= 2:
        raise ConfigError("ai.temperature must be between 0 and 2.")
    max_tokens = table["max_tokens"]
    if isinstance(max_tokens, bool) or not isinstance(max_tokens, int):
        raise ConfigError("ai.max_tokens must be an integer.")
    if max_tokens <= 0:
        raise ConfigError("ai.max_tokens must be positive.")
    shuffle = _pick_first(overrides.shuffle_options, table["shuffle_options"])
    if not isinstance(shuffle, bool):
        raise ConfigError("ai.shuffle_options must be true or false.")
    extra = table["extra_instructions"]
    if not isinstance(extra, str):
        raise ConfigError("ai.extra_instructions must be a string.")
    base_url = table["base_url"]
    if not isinstance(base_url, str):
        raise ConfigError("ai.base_url must be a string.")
    return AISettings(
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
        shuffle_options=shuffle,
        extra_instructions=extra.strip() or None,
        base_url=base_url.strip() or None,
        timeout_seconds=_require_positive(
            table["timeout_seconds"], "ai.timeout_seconds"
        ),
    )


def _build_discord(
    table: Mapping[str, Any], env: Mapping[str, str]
) -> DiscordSettings:
    webhook_env = _require_str(table["webhook_url_env"], "discord.webhook_url_env")
    token_env = _require_str(table["bot_token_env"], "discord.bot_token_env")
    seed_reactions = table["seed_reactions"]
    if not isinstance(seed_reactions, bool):
        raise ConfigError("discord.seed_reactions must be true or false.")
    return DiscordSettings(
        webhook_url=_env_string(env, webhook_env),
        bot_token=_env_string(env, token_env),
        timeout_seconds=_require_positive(
            table["timeout_seconds"], "discord.timeout_seconds"
        ),
        seed_reactions=seed_reactions,
    )


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return Path(config_path).expanduser()
    env_candidate = _env_string(env_map, CONFIG_ENV)
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _resolve_dir(
    value: object,
    *,
    layout: workspace_mod.WorkspaceLayout,
    default: Path,
    key: str,
) -> Path:
    if value is None or value == "":
        return default
    if not isinstance(value, (str, Path)):
        raise ConfigError(f"{key} must be a string path.")
    candidate = Path(value).expanduser()
    if not candidate.is_absolute():
        candidate = layout.home / candidate
    return candidate.resolve()


def _require_str(value: object, key: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{key} must be a non-empty string.")
    return value.strip()


def _require_number(value: object, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigError(f"{key} must be a number.")
    return float(value)


def _require_positive(value: object, key: str) -> float:
    number = _require_number(value, key)
    if number <= 0:
        raise ConfigError(f"{key} must be positive.")
    return number


def _env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(key)
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _pick_first(*candidates: object) -> Any:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
