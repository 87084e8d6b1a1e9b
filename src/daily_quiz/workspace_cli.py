"""``daily-quiz init``: create the workspace and seed its config files."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Mapping, Sequence

from .config import CONFIG_FILENAME
from .core import config_templates
from .core import workspace as workspace_mod

_CURRICULUM_FILENAME = "pde.toml"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="daily-quiz init",
        description=(
            "Bootstrap the daily-quiz workspace, then write a starter "
            "configuration and sample curriculum."
        ),
    )
    parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Override the workspace root (defaults to DAILY_QUIZ_HOME or "
            "~/.daily-quiz)."
        ),
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite existing config and curriculum files.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational output on success.",
    )
    return parser


def _format_created(created: Mapping[str, bool], key: str) -> str:
    return "created" if created.get(key, False) else "exists"


def _seed_file(name: str, target: Path, *, force: bool) -> str:
    if target.exists() and not force:
        return "kept"
    config_templates.get_template(name).write(target, overwrite=force)
    return "written"


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        layout = workspace_mod.ensure_workspace(path=args.path)
        targets = (
            ("config", layout.path_for("config") / CONFIG_FILENAME),
            ("curriculum", layout.path_for("curricula") / _CURRICULUM_FILENAME),
        )
        files = [
            (path, _seed_file(name, path, force=args.force))
            for name, path in targets
        ]
    except (
        workspace_mod.WorkspaceError,
        config_templates.ConfigTemplateError,
    ) as exc:
        sys.stderr.write(f"{exc}\n")
        return 1

    if args.quiet:
        return 0

    created = layout.created
    home_status = _format_created(created, "home")
    lines = [f"Workspace ready at {layout.home} ({home_status})"]

    if layout.directories:
        lines.append("Subdirectories:")
        width = max(len(name) for name in layout.directories)
        for name, directory in layout.items():
            status = _format_created(created, name)
            lines.append(f"  {name.ljust(width)}  {directory} ({status})")

    lines.append("Files:")
    for path, status in files:
        lines.append(f"  {path} ({status})")

    sys.stdout.write("\n".join(lines) + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
