"""Tests for logging configuration."""

import json
import logging

import pytest

from txparser.core.logging import ServiceJsonFormatter, configure_logging


@pytest.fixture
def root_logger():
    """Restore root logger handlers and level after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_installs_console_handler(self, root_logger):
        """Test console format uses a plain formatter."""
        handler = configure_logging(level="DEBUG", fmt="console")

        assert handler in root_logger.handlers
        assert root_logger.level == logging.DEBUG
        assert not isinstance(handler.formatter, ServiceJsonFormatter)

    def test_reconfigure_replaces_own_handler(self, root_logger):
        """Test calling twice leaves one installed handler."""
        first = configure_logging(fmt="console")
        second = configure_logging(fmt="json")

        assert first not in root_logger.handlers
        assert second in root_logger.handlers

    def test_keeps_foreign_handlers(self, root_logger):
        """Test handlers installed by others survive reconfiguration."""
        foreign = logging.NullHandler()
        root_logger.addHandler(foreign)

        configure_logging()
        configure_logging()

        assert foreign in root_logger.handlers
        root_logger.removeHandler(foreign)


class TestServiceJsonFormatter:
    """Tests for JSON log output."""

    def test_json_record_fields(self):
        """Test records carry service metadata."""
        formatter = ServiceJsonFormatter(service_name="tx-parser", environment="testing")
        record = logging.LogRecord(
            name="txparser.test",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Parsed block %d",
            args=(7,),
            exc_info=None,
        )

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "Parsed block 7"
        assert payload["service"] == "tx-parser"
        assert payload["environment"] == "testing"
        assert payload["level"] == "INFO"
        assert payload["name"] == "txparser.test"
