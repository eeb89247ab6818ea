"""Unit tests for logging setup and formatters."""

import io
import json
import logging

import pytest

from jpulse_core.logging import ColoredFormatter, LogConfig, StructuredLogFormatter, setup_logging
from jpulse_core.types import LogFormat, LogLevel


@pytest.fixture
def restore_logger():
    """Undo setup_logging on the package logger after the test."""
    logger = logging.getLogger("jpulse_core")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate


def make_record(name: str = "jpulse_core.template.engine", msg: str = "expanded", **extra) -> logging.LogRecord:
    record = logging.LogRecord(name, logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Tests for output formatting."""

    def test_structured_fields(self) -> None:
        """JSON output carries component, message, request id and extras."""
        formatter = StructuredLogFormatter(request_id_provider=lambda: "req-1")

        data = json.loads(formatter.format(make_record(template="index.shtml")))

        assert data["level"] == "INFO"
        assert data["component"] == "template"
        assert data["message"] == "expanded"
        assert data["request_id"] == "req-1"
        assert data["template"] == "index.shtml"
        assert data["timestamp"].endswith("Z")

    def test_structured_without_request(self) -> None:
        """No request id outside a request."""
        data = json.loads(StructuredLogFormatter(lambda: None).format(make_record()))

        assert "request_id" not in data

    def test_colored_component_prefix(self) -> None:
        """Colored output is prefixed with the component name."""
        output = ColoredFormatter().format(make_record(name="jpulse_core.paths.resolver"))

        assert "[PATHS]" in output
        assert "expanded" in output

    def test_colored_truncates_extras(self) -> None:
        """Long extras are cut at truncate_at."""
        output = ColoredFormatter(truncate_at=10).format(make_record(payload="x" * 100))

        assert "..." in output
        assert "x" * 100 not in output


class TestSetupLogging:
    """Tests for handler installation."""

    def test_json_output(self, restore_logger) -> None:
        """Records from package modules reach the configured stream."""
        stream = io.StringIO()
        setup_logging(LogConfig(level=LogLevel.DEBUG, format=LogFormat.JSON, output=stream))

        logging.getLogger("jpulse_core.template.cache").debug("cache miss")

        assert json.loads(stream.getvalue())["message"] == "cache miss"

    def test_level_respected(self, restore_logger) -> None:
        """Records below the configured level are dropped."""
        stream = io.StringIO()
        setup_logging(LogConfig(level=LogLevel.WARN, output=stream))

        logging.getLogger("jpulse_core.paths").info("quiet")

        assert stream.getvalue() == ""

    def test_reconfigure_replaces_handler(self, restore_logger) -> None:
        """A second call does not stack handlers."""
        setup_logging(LogConfig(output=io.StringIO()))
        setup_logging(LogConfig(output=io.StringIO()))

        installed = [h for h in restore_logger.handlers if getattr(h, "_jpulse_handler", False)]
        assert len(installed) == 1

    def test_component_filter(self, restore_logger) -> None:
        """Components can be switched off."""
        stream = io.StringIO()
        setup_logging(LogConfig(format=LogFormat.JSON, components={"paths": False}, output=stream))

        logging.getLogger("jpulse_core.paths.resolver").info("hidden")
        logging.getLogger("jpulse_core.i18n.translator").info("shown")

        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert [line["message"] for line in lines] == ["shown"]
