"""Logging configuration and output stream monitoring."""

from snapwatch.core.logs.monitor import FAILURE_SIGNATURES, FailureTail, LogMonitor, contains_failure
from snapwatch.core.logs.setup import close_stream_logger, configure_logging, create_stream_logger

__all__ = [
    "FAILURE_SIGNATURES",
    "FailureTail",
    "LogMonitor",
    "close_stream_logger",
    "configure_logging",
    "contains_failure",
    "create_stream_logger",
]
