"""
structlog setup shared by the parser and the cue-sheet CLI.

Events are rendered to JSON by structlog and handed to the stdlib root
logger, so console and file output go through ordinary logging handlers.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog

CONSOLE_HANDLER_NAME = "cue_sheet.console"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

_JSON_PROCESSORS = [
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.JSONRenderer(),
]


def _message_only() -> logging.Formatter:
    # structlog already rendered the whole event
    return logging.Formatter("%(message)s")


def setup_logging(level: int = logging.INFO) -> None:
    """
    Send JSON events at `level` and above to stderr.

    Calling it again swaps the console handler for a fresh one bound to the
    current stderr and applies the new level.
    """
    root = logging.getLogger()
    for h in [h for h in root.handlers if h.get_name() == CONSOLE_HANDLER_NAME]:
        root.removeHandler(h)

    console = logging.StreamHandler()
    console.set_name(CONSOLE_HANDLER_NAME)
    console.setFormatter(_message_only())
    root.addHandler(console)
    root.setLevel(level)

    structlog.configure(
        processors=_JSON_PROCESSORS,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def add_file_logging(log_file: Path, level: int = logging.INFO) -> RotatingFileHandler:
    """Also write JSON lines to `log_file`; the same path is only attached once."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    target = str(log_file.resolve())
    root = logging.getLogger()

    for h in root.handlers:
        if isinstance(h, RotatingFileHandler) and h.baseFilename == target:
            return h

    handler = RotatingFileHandler(
        target,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(_message_only())
    root.addHandler(handler)
    return handler


log = structlog.get_logger()
