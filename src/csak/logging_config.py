"""
csak - Logging Configuration

Configures the ``csak`` logger hierarchy for the command-line tool:
- plain text or structured JSON records (python-json-logger)
- records go to stderr so command output on stdout stays machine readable
- key material, seeds and mnemonics are never passed to a logger

Usage:
    from csak.logging_config import setup_logging

    logger = setup_logging(level="DEBUG", json_format=True)
    logger.info("Account derived", extra={"event": "hd.account", "account": 0})
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from pythonjsonlogger import jsonlogger

PLAIN_FORMAT = "%(asctime)s [%(name)s] [%(levelname)s]: %(message)s"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter adding timestamp, level, service and source location.
    """

    def __init__(
        self,
        fmt: str = "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name: str = "csak",
    ):
        super().__init__(fmt=fmt)
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        """Add custom fields to log record."""
        super().add_fields(log_record, record, message_dict)

        if "timestamp" not in log_record:
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()

        if "level" not in log_record:
            log_record["level"] = record.levelname.lower()

        log_record["service"] = self.service_name
        log_record["source"] = {
            "function": record.funcName,
            "module": record.module,
            "line": record.lineno,
        }


def setup_logging(
    name: str = "csak",
    level: str = "WARNING",
    json_format: bool = False,
    stream: Optional[Any] = None,
) -> logging.Logger:
    """
    Configure the csak logger hierarchy.

    Args:
        name: Root logger name for the package
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Emit JSON records instead of plain text
        stream: Output stream (defaults to stderr)

    Returns:
        Configured logger instance

    Raises:
        ValueError: If the level name is unknown
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(numeric_level)
    if json_format:
        handler.setFormatter(CustomJsonFormatter(service_name=name.split(".")[0]))
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
