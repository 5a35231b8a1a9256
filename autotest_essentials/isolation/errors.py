"""
================================================================================
Isolation Errors
================================================================================

Error types raised by the isolation scope manager, and the value object that
describes the result of unwinding one scope.

Taxonomy:
    - InvalidStateError: an operation is not allowed in the manager's current
      state (e.g. registering a cleanup action while cleanup is running)
    - A single failing cleanup action is re-raised as-is
    - CleanupAggregateError: two or more failures bundled together, each kept
      as the original exception object

================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple


class IsolationError(Exception):
    """Base class for errors raised by the isolation package."""
    pass


class InvalidStateError(IsolationError):
    """Raised when an operation is not allowed in the manager's current state."""
    pass


class CleanupAggregateError(IsolationError):
    """
    Raised when more than one failure happened while ending a scope.

    Attributes:
        exceptions: The original exceptions, in the order they were raised.
                    When a scope initializer failed, its exception comes first.
    """

    def __init__(self, message: str, exceptions: Iterable[BaseException]):
        self.exceptions: Tuple[BaseException, ...] = tuple(exceptions)
        super().__init__(message, self.exceptions)
        self.message = message

    def __str__(self) -> str:
        lines = [f"{self.message} ({len(self.exceptions)} errors)"]
        for index, error in enumerate(self.exceptions, start=1):
            lines.append(f"  [{index}] {type(error).__name__}: {error}")
        return "\n".join(lines)


@dataclass(frozen=True)
class CleanupOutcome:
    """
    Result of unwinding a scope: zero, one or many failures.

    The unwind itself never raises; the caller decides how the outcome is
    surfaced through :meth:`to_exception` or :meth:`raise_if_failed`.
    """
    scope_name: str
    errors: Tuple[BaseException, ...] = ()

    @property
    def succeeded(self) -> bool:
        return not self.errors

    def to_exception(self) -> Optional[BaseException]:
        """
        Convert the outcome into the exception that should be raised.

        Returns:
            None when nothing failed, the original exception when exactly one
            action failed, or a CleanupAggregateError for two or more.
        """
        if not self.errors:
            return None
        if len(self.errors) == 1:
            return self.errors[0]
        return CleanupAggregateError(
            f"Multiple exceptions occurred during cleanup of '{self.scope_name}'",
            self.errors,
        )

    def raise_if_failed(self) -> None:
        error = self.to_exception()
        if error is not None:
            raise error

    def merged_with_cause(self, cause: BaseException, message: Optional[str] = None) -> BaseException:
        """
        Combine an initializer failure with the failures of the unwind it triggered.

        Args:
            cause: The exception raised by the scope's initializer (or by the
                   block run inside the scope)
            message: Aggregate message. Defaults to an initialization failure.

        Returns:
            ``cause`` itself when the unwind succeeded, otherwise a
            CleanupAggregateError holding ``cause`` followed by every unwind error.
        """
        if not self.errors:
            return cause
        return CleanupAggregateError(
            message or f"Initialization of '{self.scope_name}' failed and its cleanup failed too",
            (cause,) + self.errors,
        )


__all__ = [
    "IsolationError",
    "InvalidStateError",
    "CleanupAggregateError",
    "CleanupOutcome",
]
