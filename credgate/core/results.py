"""
Explicit outcome values for the credential core.

Core operations never raise for expected outcomes such as "email not found"
or "wrong code". They return a ``Result`` carrying either a value or an
``AuthError`` kind; the HTTP layer turns failures into exceptions with
``unwrap()``.
"""

from dataclasses import dataclass
from typing import Generic, Mapping, TypeVar

from credgate.core.enums import AuthError
from credgate.core.exceptions.types import exception_for

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a core operation.

    Attributes:
        value: The success value (may legitimately be None).
        error: The error kind, None on success.
        detail: Internal, human-readable reason. Logged, never shown to callers.
    """

    value: T | None = None
    error: AuthError | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: AuthError, detail: str | None = None) -> "Result[T]":
        return cls(error=error, detail=detail)

    def unwrap(self, messages: Mapping[AuthError, str] | None = None) -> T:
        """
        Return the value or raise the exception matching the error kind.

        Args:
            messages: Optional caller-facing messages per error kind, overriding
                the exception defaults.

        Raises:
            AppException: The subclass mapped to ``error`` by ``exception_for``.
        """
        if self.error is not None:
            raise exception_for(self.error, (messages or {}).get(self.error))
        return self.value  # type: ignore[return-value]


__all__ = ["Result"]
