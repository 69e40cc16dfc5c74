"""Tests for logging configuration and stream sinks."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
import structlog

from snapwatch.core.logs.setup import close_stream_logger, configure_logging, create_stream_logger


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_writes_structured_events_to_file(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "main.log"
        configure_logging("INFO", log_file=log_file, console=False)

        structlog.get_logger("snapwatch.test").info("Endpoint healthy", endpoint="https://api0.test")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text()
        assert "Endpoint healthy" in content
        assert "endpoint=https://api0.test" in content

    def test_level_filters_events(self, tmp_path: Path):
        log_file = tmp_path / "main.log"
        configure_logging("WARNING", log_file=log_file, console=False)

        logger = structlog.get_logger("snapwatch.test")
        logger.info("hidden")
        logger.warning("shown")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text()
        assert "shown" in content
        assert "hidden" not in content

    def test_reconfigure_replaces_handlers(self, tmp_path: Path):
        configure_logging("INFO", log_file=tmp_path / "a.log", console=True)
        configure_logging("INFO", log_file=tmp_path / "b.log", console=False)

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert Path(handlers[0].baseFilename).name == "b.log"


class TestStreamLogger:
    """Tests for raw stream sinks."""

    def test_writes_lines_verbatim(self, tmp_path: Path):
        path = tmp_path / "logs" / "visor-stdout.log"
        sink = create_stream_logger(path)

        sink.info("raw line from the node")
        close_stream_logger(sink)

        assert path.read_text() == "raw line from the node\n"
        assert sink.handlers == []

    def test_does_not_propagate(self, tmp_path: Path):
        sink = create_stream_logger(tmp_path / "psql-stdout.log")
        assert sink.propagate is False
        close_stream_logger(sink)
