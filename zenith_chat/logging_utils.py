"""Logging setup for zenith-chat.

Records carry an ``event`` name plus per-event fields passed through
``extra=``. With ``structured`` enabled each record becomes one JSON line,
event first, so a log file can be filtered by exchange phase.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping

APP_LOGGER_PREFIX = "zenith_chat"
DEFAULT_LOG_FILE = "~/.local/state/zenith-chat/app.log"
PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Libraries that would otherwise log every request at DEBUG.
_QUIET_LIBRARIES = ("httpx", "httpcore", "markdown_it", "asyncio")

_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """One JSON object per record: event, level, logger, message, then extras."""

    def format(self, record: logging.LogRecord) -> str:
        event = getattr(record, "event", None)
        data: dict[str, Any] = {} if event is None else {"event": event}
        data.update(
            ts=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
        )
        data.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and key not in data
        )
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False, separators=(",", ":"), default=str)


def parse_level(name: Any) -> int:
    """Map a level name to its number; unknown names mean INFO."""
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def _build_formatter(structured: bool) -> logging.Formatter:
    return JsonFormatter() if structured else logging.Formatter(PLAIN_FORMAT)


def _console_handler(level: int, formatter: logging.Formatter) -> logging.Handler:
    # The TUI owns the terminal; only this package's warnings reach stderr.
    handler = logging.StreamHandler()
    handler.setLevel(max(level, logging.WARNING))
    handler.setFormatter(formatter)
    handler.addFilter(logging.Filter(APP_LOGGER_PREFIX))
    return handler


def _file_handler(
    path: Path, level: int, formatter: logging.Formatter
) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    if os.name == "posix":
        try:
            path.chmod(0o600)
        except OSError:
            logging.getLogger(__name__).warning(
                "log.file.permissions",
                extra={"event": "log.file.permissions", "path": str(path)},
            )
    return handler


def configure_logging(logging_config: Mapping[str, Any]) -> None:
    """Install handlers on the root logger from the ``[logging]`` section."""
    level = parse_level(logging_config.get("level", "INFO"))
    formatter = _build_formatter(bool(logging_config.get("structured", True)))

    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(_console_handler(level, formatter))

    if logging_config.get("log_to_file", False):
        target = Path(str(logging_config.get("log_file_path", DEFAULT_LOG_FILE)))
        root.addHandler(_file_handler(target.expanduser(), level, formatter))
