"""
Result/Error value types.

Domain mutators and use cases return a ``Result`` instead of raising for
expected business-rule violations. Exceptions stay reserved for programming
errors and storage failures.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar


T = TypeVar("T")


class ErrorType(str, Enum):
    NONE = "none"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    FAILURE = "failure"
    SERVICE_UNAVAILABLE = "service_unavailable"


@dataclass(frozen=True)
class Error:
    code: str
    message: str
    type: ErrorType

    @classmethod
    def validation(cls, code: str, message: str) -> "Error":
        return cls(code, message, ErrorType.VALIDATION)

    @classmethod
    def not_found(cls, code: str, message: str) -> "Error":
        return cls(code, message, ErrorType.NOT_FOUND)

    @classmethod
    def conflict(cls, code: str, message: str) -> "Error":
        return cls(code, message, ErrorType.CONFLICT)

    @classmethod
    def unauthorized(cls, code: str, message: str) -> "Error":
        return cls(code, message, ErrorType.UNAUTHORIZED)

    @classmethod
    def forbidden(cls, code: str, message: str) -> "Error":
        return cls(code, message, ErrorType.FORBIDDEN)

    @classmethod
    def failure(cls, code: str, message: str) -> "Error":
        return cls(code, message, ErrorType.FAILURE)

    @classmethod
    def service_unavailable(cls, code: str, message: str) -> "Error":
        return cls(code, message, ErrorType.SERVICE_UNAVAILABLE)


NO_ERROR = Error("", "", ErrorType.NONE)


@dataclass(frozen=True)
class Result(Generic[T]):
    """Tagged success/failure value.

    A success never carries an error and a failure always carries one.
    """

    is_success: bool
    error: Error
    _value: Optional[T] = None

    def __post_init__(self) -> None:
        if self.is_success and self.error.type is not ErrorType.NONE:
            raise ValueError("Success result cannot have an error")
        if not self.is_success and self.error.type is ErrorType.NONE:
            raise ValueError("Failure result must have an error")

    @classmethod
    def ok(cls, value: T = None) -> "Result[T]":  # type: ignore[assignment]
        return cls(True, NO_ERROR, value)

    @classmethod
    def fail(cls, error: Error) -> "Result[T]":
        return cls(False, error, None)

    @property
    def is_failure(self) -> bool:
        return not self.is_success

    @property
    def value(self) -> T:
        if not self.is_success:
            raise ValueError(f"Cannot access the value of a failure result ({self.error.code})")
        return self._value  # type: ignore[return-value]
