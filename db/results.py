"""Outcome type for graph operations.

Graph failures never propagate to callers, but callers still need to tell
"nothing matched" apart from "the query blew up" and from "the graph is not
configured at all".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class GraphStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"
    DISABLED = "disabled"


@dataclass(frozen=True)
class GraphResult(Generic[T]):
    """Result of one scoped graph operation."""

    status: GraphStatus
    operation: str
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, operation: str, value: T) -> "GraphResult[T]":
        return cls(GraphStatus.OK, operation, value=value)

    @classmethod
    def empty(cls, operation: str) -> "GraphResult[T]":
        return cls(GraphStatus.EMPTY, operation)

    @classmethod
    def failure(cls, operation: str, error: BaseException | str) -> "GraphResult[T]":
        if isinstance(error, BaseException):
            error = f"{type(error).__name__}: {error}"
        return cls(GraphStatus.FAILED, operation, error=error)

    @classmethod
    def disabled(cls, operation: str) -> "GraphResult[T]":
        return cls(GraphStatus.DISABLED, operation)

    @property
    def ok(self) -> bool:
        return self.status is GraphStatus.OK

    @property
    def failed(self) -> bool:
        return self.status is GraphStatus.FAILED
