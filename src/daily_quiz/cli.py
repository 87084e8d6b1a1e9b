"""``daily-quiz`` entry point.

Subcommands live in their own modules and are imported only when invoked, so
``daily-quiz list`` never pays for the OpenAI or HTTP imports.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Callable, Dict, Optional, Sequence

PROG = "daily-quiz"
DIST_NAME = "daily-quiz"


@dataclass(frozen=True)
class CommandSpec:
    """Where a subcommand's ``main(argv) -> int`` lives."""

    name: str
    summary: str
    module: str
    func: str = "main"

    @property
    def prog(self) -> str:
        return f"{PROG} {self.name}"


COMMANDS: Dict[str, CommandSpec] = {
    spec.name: spec
    for spec in (
        CommandSpec(
            "init",
            "Bootstrap the workspace with a config and sample curriculum.",
            "daily_quiz.workspace_cli",
        ),
        CommandSpec(
            "post-quiz",
            "Generate the quiz for the current slot and post it.",
            "daily_quiz.post_quiz",
        ),
        CommandSpec(
            "post-answer",
            "Reveal the answer to the last posted quiz.",
            "daily_quiz.post_answer",
        ),
        CommandSpec(
            "topic",
            "Show which topic a timestamp rotates to.",
            "daily_quiz.post_quiz",
            func="topic_main",
        ),
    )
}


def format_command_table() -> str:
    width = max(len(name) for name in COMMANDS)
    rows = [
        f"  {spec.name.ljust(width)}  {spec.summary}" for spec in COMMANDS.values()
    ]
    return "\n".join(["Available commands:", *rows])


def format_usage() -> str:
    return "\n".join(
        [
            f"Usage: {PROG} <command> [args...]",
            f"Run `{PROG} list` for commands or `{PROG} help <name>` for details.",
            "",
            format_command_table(),
        ]
    )


def _out(text: str) -> None:
    sys.stdout.write(text + "\n")


def _err(text: str) -> None:
    sys.stderr.write(text + "\n")


def _version() -> str:
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return "unknown"


def _unknown(name: str) -> int:
    _err(f"Unknown command '{name}'.")
    _err(format_command_table())
    return 2


def _help(argv: Sequence[str]) -> int:
    if not argv:
        _out(format_usage())
        return 0
    spec = COMMANDS.get(argv[0])
    if spec is None:
        return _unknown(argv[0])
    _out(f"{spec.name}: {spec.summary}")
    _out(f"Run `{spec.prog} --help` for CLI-specific options.")
    return 0


def _list(_argv: Sequence[str]) -> int:
    _out(format_command_table())
    return 0


def _show_version(_argv: Sequence[str]) -> int:
    _out(_version())
    return 0


_BUILTINS: Dict[str, Callable[[Sequence[str]], int]] = {
    "help": _help,
    "list": _list,
    "version": _show_version,
    "--version": _show_version,
    "-V": _show_version,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        _out(format_usage())
        return 2

    head, rest = args[0], args[1:]
    if head in ("-h", "--help"):
        return _help([])
    builtin = _BUILTINS.get(head)
    if builtin is not None:
        return builtin(rest)

    spec = COMMANDS.get(head)
    if spec is None:
        return _unknown(head)
    return run_command(spec, rest)


def run_command(spec: CommandSpec, argv: Sequence[str]) -> int:
    """Call ``spec``'s entry point with ``sys.argv[0]`` set to its prog name.

    ``SystemExit`` raised by argparse is turned back into an exit code so the
    dispatcher always returns one.
    """

    entry = getattr(import_module(spec.module), spec.func)
    saved = sys.argv
    sys.argv = [spec.prog, *argv]
    try:
        result = entry(list(argv))
    except SystemExit as exc:
        return _exit_code(exc.code)
    finally:
        sys.argv = saved
    return result if isinstance(result, int) else 0


def _exit_code(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    _err(str(code))
    return 1


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
