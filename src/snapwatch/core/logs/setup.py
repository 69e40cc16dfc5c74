"""
Structured logging configuration.

structlog renders every event through the stdlib logging module so one
record can fan out to the console and to a size-rotated file.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog

MAIN_LOG_FILE = "main.log"
DEFAULT_MAX_BYTES = 300 * 1024 * 1024

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
]


def configure_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    console: bool = True,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = 1,
) -> None:
    """
    Configure structlog and the root stdlib logger.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional plain-text log file, rotated by size
        console: Whether to render colored output to stdout
        max_bytes: Rotation threshold of the log file
        backup_count: Rotated files to keep
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(numeric_level)

    if console:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
                foreign_pre_chain=_SHARED_PROCESSORS,
            )
        )
        root.addHandler(handler)

    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.format_exc_info,
                    structlog.dev.ConsoleRenderer(colors=False),
                ],
                foreign_pre_chain=_SHARED_PROCESSORS,
            )
        )
        root.addHandler(handler)

    if not root.handlers:
        root.addHandler(logging.NullHandler())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def create_stream_logger(
    path: Path | str,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = 1,
) -> logging.Logger:
    """
    Create a raw line sink for one process or container stream.

    Lines are written verbatim, without level or timestamp, and never reach
    the root logger.

    Args:
        path: Destination log file

    Returns:
        A dedicated non-propagating stdlib logger
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    sink = logging.getLogger(f"snapwatch.stream.{path.resolve()}")
    sink.setLevel(logging.INFO)
    sink.propagate = False

    for handler in list(sink.handlers):
        sink.removeHandler(handler)
        handler.close()

    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(message)s"))
    sink.addHandler(handler)
    return sink


def close_stream_logger(sink: logging.Logger) -> None:
    """Flush and detach every handler of a stream sink."""
    for handler in list(sink.handlers):
        sink.removeHandler(handler)
        handler.close()
