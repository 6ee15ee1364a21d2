"""Tests for logging configuration."""

import json
import logging
import sys
from typing import Any
from unittest.mock import patch

from issuedigger.config import Environment, Settings
from issuedigger.logging_config import (
    DevFormatter,
    JSONFormatter,
    get_logger,
    setup_logging,
)


def _record(msg: str = "Webhook received", level: int = logging.INFO, **extra: Any) -> logging.LogRecord:
    record = logging.LogRecord(
        name="issuedigger.api.routes",
        level=level,
        pathname="/app/issuedigger/api/routes.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSON log formatter."""

    def test_basic_fields(self) -> None:
        """A record becomes one JSON object with the standard fields."""
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "issuedigger.api.routes"
        assert data["message"] == "Webhook received"
        assert data["file"] == "/app/issuedigger/api/routes.py:42"
        assert "timestamp" in data

    def test_extra_fields(self) -> None:
        """Fields passed via `extra=` are serialised under `extra`."""
        record = _record("Routed webhook event", event="issues", submitted=["index", "post_comment"])

        data = json.loads(JSONFormatter().format(record))

        assert data["extra"] == {"event": "issues", "submitted": ["index", "post_comment"]}

    def test_no_extra_key_without_context(self) -> None:
        """Records without context carry no `extra` key."""
        assert "extra" not in json.loads(JSONFormatter().format(_record()))

    def test_unserialisable_extra(self) -> None:
        """Values JSON cannot encode are rendered as strings."""
        data = json.loads(JSONFormatter().format(_record(repository=object())))
        assert data["extra"]["repository"].startswith("<object")

    def test_exception_included(self) -> None:
        """Exception info is included in output."""
        try:
            raise ValueError("dimension mismatch")
        except ValueError:
            record = _record("Failed to process index message", level=logging.ERROR)
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError: dimension mismatch" in data["exception"]


class TestDevFormatter:
    """Tests for development formatter."""

    def test_readable_line(self) -> None:
        """Development format carries level, logger and message."""
        output = DevFormatter().format(_record("Queue full", level=logging.WARNING))

        assert "WARNING" in output
        assert "issuedigger.api.routes" in output
        assert "Queue full" in output

    def test_appends_context(self) -> None:
        """Extra fields are appended as key=value pairs."""
        output = DevFormatter().format(_record(installation_id=7, event="issue_comment"))

        assert output.endswith("| installation_id=7 event=issue_comment")


class TestSetupLogging:
    """Tests for logging setup."""

    def test_returns_root_logger(self) -> None:
        """setup_logging configures and returns the root logger."""
        assert setup_logging(level="INFO", json_output=False) is logging.getLogger()

    def test_formatter_follows_environment(self) -> None:
        """JSON outside development, readable lines in development."""
        for environment, formatter in (
            (Environment.PRODUCTION, JSONFormatter),
            (Environment.STAGING, JSONFormatter),
            (Environment.DEVELOPMENT, DevFormatter),
        ):
            with patch("issuedigger.logging_config.get_settings", return_value=Settings(environment=environment)):
                setup_logging()

            root = logging.getLogger()
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, formatter)

    def test_overrides(self) -> None:
        """Level and output format can be forced."""
        with patch("issuedigger.logging_config.get_settings", return_value=Settings()):
            setup_logging(level="DEBUG", json_output=True)

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_unknown_level_falls_back(self) -> None:
        """An unknown level name means INFO."""
        setup_logging(level="CHATTY", json_output=False)
        assert logging.getLogger().level == logging.INFO

    def test_quiets_http_clients(self) -> None:
        """Per-request client logs are raised to WARNING."""
        setup_logging(level="DEBUG", json_output=False)

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING


class TestGetLogger:
    """Tests for named logger retrieval."""

    def test_named_logger_inherits_level(self) -> None:
        """Module loggers follow the root level."""
        setup_logging(level="WARNING", json_output=False)
        logger = get_logger("issuedigger.worker.dispatcher")

        assert logger.name == "issuedigger.worker.dispatcher"
        assert logger.getEffectiveLevel() == logging.WARNING
