"""The daily-quiz home directory and the folders inside it."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

WORKSPACE_ENV = "DAILY_QUIZ_HOME"
DEFAULT_WORKSPACE = Path.home() / ".daily-quiz"

# ``current`` carries quiz.json/post.json/stats.json between runs.
SUBDIRECTORIES: Tuple[str, ...] = ("config", "logs", "curricula", "current")


class WorkspaceError(RuntimeError):
    pass


@dataclass(frozen=True)
class WorkspaceLayout:
    home: Path
    directories: Mapping[str, Path] = field(default_factory=dict)
    created: Mapping[str, bool] = field(default_factory=dict)

    def path_for(self, key: str) -> Path:
        if key not in self.directories:
            raise KeyError(f"Unknown workspace directory '{key}'.")
        return self.directories[key]

    def items(self) -> Tuple[Tuple[str, Path], ...]:
        return tuple(self.directories.items())


def ensure_workspace(
    *,
    env: Optional[Mapping[str, str]] = None,
    path: Optional[Path] = None,
    create: bool = True,
) -> WorkspaceLayout:
    """Return the workspace layout, creating directories unless ``create`` is off.

    ``path`` wins over ``DAILY_QUIZ_HOME``, which wins over ``~/.daily-quiz``.
    When neither was given and the home directory is read-only, a
    ``daily-quiz`` folder under the system temp directory is used instead.
    """

    env = os.environ if env is None else env
    from_env = (env.get(WORKSPACE_ENV) or "").strip()
    chosen = path if path is not None else (Path(from_env) if from_env else None)
    home = (chosen or DEFAULT_WORKSPACE).expanduser().absolute()

    if not create:
        return _layout(home, create=False)
    try:
        return _layout(home, create=True)
    except PermissionError as exc:
        fallback = Path(tempfile.gettempdir()) / "daily-quiz"
        if chosen is None and fallback != home:
            try:
                return _layout(fallback, create=True)
            except PermissionError:
                pass
        raise WorkspaceError(f"Unable to prepare workspace at {home}") from exc


def _layout(home: Path, *, create: bool) -> WorkspaceLayout:
    if home.exists() and not home.is_dir():
        raise WorkspaceError(
            f"Configured workspace exists and is not a directory: {home}"
        )
    directories = {name: home / name for name in SUBDIRECTORIES}
    created: Dict[str, bool]
    if not create:
        for name, directory in directories.items():
            if directory.exists() and not directory.is_dir():
                raise WorkspaceError(
                    f"Expected workspace directory for '{name}' but found a "
                    f"file: {directory}"
                )
        created = dict.fromkeys(["home", *directories], False)
    else:
        created = {"home": _ensure_dir(home)}
        for name, directory in directories.items():
            created[name] = _ensure_dir(directory)
    return WorkspaceLayout(home=home, directories=directories, created=created)


def _ensure_dir(path: Path) -> bool:
    """Create ``path`` (mode 0700) and report whether it was new."""

    if path.is_dir():
        return False
    if path.exists():
        raise WorkspaceError(
            f"Expected directory but found a non-directory entry: {path}"
        )
    path.mkdir(parents=True, mode=0o700, exist_ok=True)
    return True
