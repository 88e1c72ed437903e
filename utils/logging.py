"""Structured logging for the travel knowledge API.

This module provides:
- JSON log lines for production
- A human-readable format for local development (DEBUG=true)
- Request context (request_id, user_id) carried in ContextVars and stamped
  on every record
"""

import json
import logging
import os
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)

# LogRecord attributes that are not user-supplied `extra` fields
_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return request_id_var.get()


def get_user_id() -> str | None:
    """Get the current user ID from context."""
    return user_id_var.get()


def set_request_context(request_id: str | None = None, user_id: str | None = None):
    """Set request context variables. None leaves a value untouched."""
    if request_id is not None:
        request_id_var.set(request_id)
    if user_id is not None:
        user_id_var.set(user_id)


def clear_request_context():
    """Clear all request context variables."""
    request_id_var.set(None)
    user_id_var.set(None)


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    {
        "timestamp": "2026-10-19T12:34:56.789+00:00",
        "level": "INFO",
        "logger": "services.extractor",
        "service": "travel-knowledge-api",
        "message": "...",
        "request_id": "abc-123",
        "user_id": "user-456",
        "extra": {...}
    }
    """

    def __init__(self, service_name: str = "travel-knowledge-api"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service_name,
            "message": record.getMessage(),
        }

        request_id = get_request_id()
        user_id = get_user_id()
        if request_id:
            log_data["request_id"] = request_id
        if user_id:
            log_data["user_id"] = user_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
            log_data["exception_type"] = (
                record.exc_info[0].__name__ if record.exc_info[0] else None
            )

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Development format.

    2026-10-19 12:34:56.789 | INFO     | services.extractor | [abc12345] message
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        level = record.levelname.ljust(8)

        request_id = get_request_id()
        prefix = f"[{request_id[:8]}] " if request_id else ""

        formatted = f"{timestamp} | {level} | {record.name} | {prefix}{record.getMessage()}"
        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"
        return formatted


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service_name: str = "travel-knowledge-api",
):
    """Configure the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Emit JSON lines. If None, JSON unless DEBUG is set in the environment.
        service_name: Service name stamped on JSON records
    """
    if json_format is None:
        debug_mode = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")
        json_format = not debug_mode

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if json_format:
        handler.setFormatter(JSONFormatter(service_name=service_name))
    else:
        handler.setFormatter(HumanReadableFormatter())
    root_logger.addHandler(handler)

    # Quiet chatty client libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("neo4j").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the module, configuring defaults on first use."""
    logger = logging.getLogger(name)
    if not logging.getLogger().handlers:
        configure_logging()
    return logger


class LogContext:
    """Context manager that scopes request context to a block.

    Usage:
        with LogContext(user_id="user-456"):
            logger.info("stamped with user_id")
    """

    def __init__(self, request_id: str | None = None, user_id: str | None = None):
        self.request_id = request_id
        self.user_id = user_id
        self._tokens: list[tuple[ContextVar, Token]] = []

    def __enter__(self):
        if self.request_id:
            self._tokens.append((request_id_var, request_id_var.set(self.request_id)))
        if self.user_id:
            self._tokens.append((user_id_var, user_id_var.set(self.user_id)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Restore previous values in reverse order of setting
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()
        return False

    async def __aenter__(self):
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return self.__exit__(exc_type, exc_val, exc_tb)
