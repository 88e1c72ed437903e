"""Middleware components for the travel knowledge API."""

from middleware.logging import LoggingMiddleware
from middleware.request_id import RequestIDMiddleware

__all__ = [
    "LoggingMiddleware",
    "RequestIDMiddleware",
]
