from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class SourceStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    EMPTY = "empty"


@dataclass(frozen=True)
class SourceResult(Generic[T]):
    """What an adapter returned and whether it came fresh, from a fallback, or not at all."""

    status: SourceStatus
    value: T
    reason: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> "SourceResult[T]":
        return cls(SourceStatus.OK, value)

    @classmethod
    def degraded(cls, value: T, reason: str) -> "SourceResult[T]":
        return cls(SourceStatus.DEGRADED, value, reason)

    @classmethod
    def empty(cls, value: T, reason: Optional[str] = None) -> "SourceResult[T]":
        return cls(SourceStatus.EMPTY, value, reason)

    @property
    def is_degraded(self) -> bool:
        return self.status is SourceStatus.DEGRADED
