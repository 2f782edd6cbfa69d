"""Typed operation outcomes for the session resource handler."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class FailureKind(str, Enum):
    """Why an operation did not succeed."""

    NOT_FOUND = "not_found"
    STORE_ERROR = "store_error"


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Success carries a value; failure carries a kind and a caller-safe message."""

    ok: bool
    value: Optional[T] = None
    kind: Optional[FailureKind] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "OperationResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def not_found(cls, error: str) -> "OperationResult[T]":
        return cls(ok=False, kind=FailureKind.NOT_FOUND, error=error)

    @classmethod
    def store_error(cls, error: str) -> "OperationResult[T]":
        return cls(ok=False, kind=FailureKind.STORE_ERROR, error=error)
