"""TOML reading and layering for config files and curricula."""

from __future__ import annotations

import copy
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping

__all__ = [
    "TomlConfigError",
    "load_toml",
    "overlay_table",
    "write_template",
]


class TomlConfigError(RuntimeError):
    """A TOML file is missing, malformed, or carries keys we don't know."""


def load_toml(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        raise TomlConfigError(f"TOML file not found: {path}")
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        raise TomlConfigError(f"Failed to parse TOML {path}: {exc}") from exc


def overlay_table(
    defaults: Mapping[str, Any],
    values: Mapping[str, Any],
    *,
    prefix: str = "",
) -> Dict[str, Any]:
    """Return ``defaults`` with ``values`` laid over it.

    ``defaults`` is left untouched. Keys absent from ``defaults`` are
    rejected and reported by their dotted name, and a table may only be
    replaced by another table.
    """

    merged = copy.deepcopy(dict(defaults))
    for key, value in values.items():
        name = prefix + key
        if key not in merged:
            raise TomlConfigError(f"Unknown configuration key '{name}'.")
        if isinstance(merged[key], Mapping):
            if not isinstance(value, Mapping):
                kind = type(value).__name__
                raise TomlConfigError(f"Expected table for '{name}', found {kind}.")
            merged[key] = overlay_table(merged[key], value, prefix=f"{name}.")
        else:
            merged[key] = value
    return merged


def write_template(
    path: Path, text: str, *, overwrite: bool = False, mode: int = 0o600
) -> Path:
    """Write ``text`` to ``path``, refusing to clobber unless ``overwrite``."""

    if path.exists() and not overwrite:
        raise TomlConfigError(f"File already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    # chmod is refused on some mounted shares.
    try:
        path.chmod(mode)
    except PermissionError:
        pass
    return path
