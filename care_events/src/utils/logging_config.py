"""
Logging for the care events service.

Three named loggers are configured once per process:
- api: HTTP requests, responses, exception handlers
- services: Event lifecycle operations (create, update, reconcile, expand)
- db: Database lifecycle and errors

Records can carry structured context (event and institution GUIDs, counts)
through ``extra=log_fields(...)``. In production (CARE_EVENTS_ENV=production)
each logger writes JSON lines to its own rotating file under
CARE_EVENTS_LOG_DIR; otherwise records go to stdout as text with the context
appended as key=value pairs.
"""

import json
import logging
import logging.handlers
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


LOGGER_NAMES = ("api", "services", "db")
LOGGER_NAMESPACE = "care_events"

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


def log_fields(**fields: Any) -> Dict[str, Dict[str, Any]]:
    """
    Build the ``extra`` mapping for a log call.

    None values are dropped so optional context can be passed unconditionally.

    Example:
        >>> logger.info("Deleted event", extra=log_fields(event_guid=guid))
    """
    return {"extra_fields": {k: v for k, v in fields.items() if v is not None}}


def _context_of(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, "extra_fields", None) or {}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with the record's context merged in."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in _context_of(record).items():
            entry.setdefault(key, value)

        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Text formatter for development.

    Example:
        [2026-10-19 10:30:45] INFO - care_events.services - Deleted event (event_guid=evt_...)
    """

    def __init__(self):
        super().__init__(
            fmt="[%(asctime)s] %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        context = _context_of(record)
        if not context:
            return text
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        head, newline, rest = text.partition("\n")
        return f"{head} ({pairs}){newline}{rest}"


@dataclass(frozen=True)
class LogOptions:
    """Logging options read from the environment."""

    level: int
    production: bool
    directory: Path

    @classmethod
    def from_env(cls) -> "LogOptions":
        level_name = os.environ.get("CARE_EVENTS_LOG_LEVEL", "INFO").upper()
        return cls(
            level=getattr(logging, level_name, logging.INFO),
            production=os.environ.get("CARE_EVENTS_ENV", "development").lower() == "production",
            directory=Path(os.environ.get("CARE_EVENTS_LOG_DIR", "logs")),
        )


def _handler_for(logger_name: str, options: LogOptions) -> logging.Handler:
    if options.production:
        options.directory.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            options.directory / f"{logger_name}.log",
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUPS,
            encoding="utf-8",
        )
        handler.setFormatter(JSONFormatter())
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ConsoleFormatter())
    handler.setLevel(options.level)
    return handler


def configure_logging(options: Optional[LogOptions] = None) -> Dict[str, logging.Logger]:
    """
    Attach a fresh handler to each service logger.

    Args:
        options: Logging options (defaults to LogOptions.from_env())

    Returns:
        Dictionary mapping short logger names to Logger instances
    """
    options = options or LogOptions.from_env()
    loggers = {}

    for name in LOGGER_NAMES:
        logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
        logger.setLevel(options.level)
        logger.propagate = False
        for old in list(logger.handlers):
            logger.removeHandler(old)
            old.close()
        logger.addHandler(_handler_for(name, options))
        loggers[name] = logger

    return loggers


_loggers: Optional[Dict[str, logging.Logger]] = None


def get_logger(name: str) -> logging.Logger:
    """
    Get one of the service loggers, configuring logging on first use.

    Raises:
        ValueError: If logger name is not one of LOGGER_NAMES
    """
    global _loggers

    if _loggers is None:
        _loggers = configure_logging()

    if name not in _loggers:
        raise ValueError(
            f"Unknown logger name: {name}. Valid names: {', '.join(LOGGER_NAMES)}"
        )

    return _loggers[name]


def init_logging() -> Dict[str, logging.Logger]:
    """Reconfigure logging from the environment (called on application startup)."""
    global _loggers
    _loggers = configure_logging()
    return _loggers
