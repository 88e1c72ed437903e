"""Shared utilities for the travel knowledge API."""

from utils.json_extraction import (
    extract_json_object,
    find_json_object_span,
)
from utils.logging import LogContext, configure_logging, get_logger

__all__ = [
    # JSON extraction
    "extract_json_object",
    "find_json_object_span",
    # Logging
    "LogContext",
    "configure_logging",
    "get_logger",
]
