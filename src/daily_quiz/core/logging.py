"""JSON-lines logging for daily-quiz runs.

Each command logs to ``<workspace>/logs/<command>.log`` through a rotating
handler. ``--verbose`` mirrors records to stderr in plain text.
"""

from __future__ import annotations

import json
import logging
import sys
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

__all__ = [
    "JsonLogFormatter",
    "configure_logger",
]

_FILE_MARKER = "_daily_quiz_file"
_CONSOLE_MARKER = "_daily_quiz_console"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_STANDARD_ATTRS = frozenset(
    vars(logging.makeLogRecord({})).keys()
) | {"message", "asctime", "taskName"}


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(item) for item in value]
    return repr(value)


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        when = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": when.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra = {
            key: _jsonable(value)
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS
        }
        if extra:
            entry["extra"] = extra
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack"] = record.stack_info
        return json.dumps(entry, ensure_ascii=False)


def configure_logger(
    name: str,
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    max_bytes: int = 2 * 1024 * 1024,
    backup_count: int = 5,
    filename: Optional[str] = None,
) -> tuple[logging.Logger, Path]:
    """Attach the JSON file handler (and optional stderr mirror) to ``name``.

    Safe to call repeatedly: the handlers this function installed earlier are
    found by marker attribute and reused. Returns the logger and the path the
    file handler actually writes to, which is a temp directory when
    ``log_dir`` is not writable.
    """

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    wanted = log_dir / (filename or name.rsplit(".", 1)[-1] + ".log")
    file_handler = _marked(logger, _FILE_MARKER)
    if file_handler is not None and Path(file_handler.baseFilename) != wanted:
        logger.removeHandler(file_handler)
        file_handler.close()
        file_handler = None
    if file_handler is None:
        file_handler = _open_log(
            wanted, max_bytes=max_bytes, backup_count=backup_count
        )
        file_handler.setFormatter(JsonLogFormatter())
        setattr(file_handler, _FILE_MARKER, True)
        logger.addHandler(file_handler)
    file_handler.setLevel(logging.DEBUG if verbose else _coerce_level(level))

    console = _marked(logger, _CONSOLE_MARKER)
    if verbose and console is None:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        setattr(console, _CONSOLE_MARKER, True)
        logger.addHandler(console)
    elif not verbose and console is not None:
        logger.removeHandler(console)
        console.close()

    return logger, Path(file_handler.baseFilename)


def _marked(logger: logging.Logger, marker: str) -> Any:
    return next(
        (h for h in logger.handlers if getattr(h, marker, False)), None
    )


def _coerce_level(level: str) -> int:
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else logging.INFO


def _open_log(path: Path, *, max_bytes: int, backup_count: int) -> RotatingFileHandler:
    try:
        return _rotating(path, max_bytes, backup_count)
    except PermissionError:
        return _rotating(_fallback_dir() / path.name, max_bytes, backup_count)


def _rotating(path: Path, max_bytes: int, backup_count: int) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(mode=0o600, exist_ok=True)
    return RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )


def _fallback_dir() -> Path:
    return Path(tempfile.gettempdir()) / "daily-quiz-logs"
