"""Starter files shipped inside the package and written by ``daily-quiz init``."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Tuple

from .config import TomlConfigError, write_template

__all__ = [
    "ConfigTemplate",
    "ConfigTemplateError",
    "get_template",
    "iter_templates",
]


class ConfigTemplateError(RuntimeError):
    pass


@dataclass(frozen=True)
class ConfigTemplate:
    name: str
    resource: str
    description: str

    def read_text(self) -> str:
        source = resources.files("daily_quiz") / self.resource
        if not source.is_file():
            raise ConfigTemplateError(f"Template '{self.name}' resource not found.")
        return source.read_text(encoding="utf-8")

    def write(
        self, path: Path, *, overwrite: bool = False, mode: int = 0o600
    ) -> Path:
        try:
            return write_template(
                path, self.read_text(), overwrite=overwrite, mode=mode
            )
        except TomlConfigError as exc:
            raise ConfigTemplateError(str(exc)) from exc


_REGISTRY: Tuple[ConfigTemplate, ...] = (
    ConfigTemplate(
        "config",
        "daily_quiz.toml",
        "Run configuration for post-quiz and post-answer.",
    ),
    ConfigTemplate(
        "curriculum",
        "example_curriculum.toml",
        "Sample exam curriculum with weighted topics.",
    ),
)


def get_template(name: str) -> ConfigTemplate:
    for template in _REGISTRY:
        if template.name == name:
            return template
    raise ConfigTemplateError(f"Unknown config template '{name}'.")


def iter_templates() -> Tuple[ConfigTemplate, ...]:
    return _REGISTRY
