"""Logging setup for console and structured JSON output."""

import logging
import sys
from typing import Any, Literal

from pythonjsonlogger import jsonlogger

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Marks the handler installed by configure_logging so it can be replaced
_HANDLER_ATTR = "_txparser_handler"


class ServiceJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps every record with service metadata."""

    def __init__(self, service_name: str, environment: str):
        super().__init__(fmt=JSON_FORMAT)
        self.service_name = service_name
        self.environment = environment

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["service"] = self.service_name
        log_record["environment"] = self.environment
        log_record["level"] = record.levelname


def configure_logging(
    level: str = "INFO",
    fmt: Literal["json", "console"] = "console",
    service_name: str = "tx-parser",
    environment: str = "development",
) -> logging.Handler:
    """Install a single stdout handler on the root logger.

    Calling this again swaps out the handler from the previous call and
    leaves any other handlers (pytest's capture handler, for instance) alone.

    Args:
        level: Root log level name
        fmt: "console" for plain text, "json" for one JSON object per line
        service_name: Value of the ``service`` field in JSON output
        environment: Value of the ``environment`` field in JSON output

    Returns:
        The installed handler
    """
    root = logging.getLogger()

    for existing in list(root.handlers):
        if getattr(existing, _HANDLER_ATTR, False):
            root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(ServiceJsonFormatter(service_name, environment))
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    setattr(handler, _HANDLER_ATTR, True)

    root.addHandler(handler)
    root.setLevel(level.upper())
    return handler
