"""
================================================================================
Isolation Scope
================================================================================

One nesting level of test-resource lifetime (assembly, class or test) and the
cleanup actions registered against it.

================================================================================
"""

from __future__ import annotations

from typing import Callable, List, Protocol

from loguru import logger

from .errors import CleanupOutcome


CleanupAction = Callable[[], None]


class IsolationScope(Protocol):
    """
    The capability handed to scope initializers: registering cleanup actions.

    Actions are invoked in reverse order of registration when the scope ends.
    """

    def add_cleanup_action(self, action: CleanupAction) -> None:
        ...


class _IsolationLevel:
    """
    Ordered cleanup actions for a single scope.

    Only the ScopeManager creates and holds these; they never leak to callers.
    """

    def __init__(self, name: str):
        self.name = name
        self._cleanup_actions: List[CleanupAction] = []

    def __len__(self) -> int:
        return len(self._cleanup_actions)

    def add_cleanup_action(self, action: CleanupAction) -> None:
        self._cleanup_actions.append(action)

    def unwind(self) -> CleanupOutcome:
        """
        Run every pending action in LIFO order and drain the list.

        A failing action never stops the drain. Failures are collected in
        the order they were raised and returned, not raised.
        """
        errors = []
        while self._cleanup_actions:
            action = self._cleanup_actions.pop()
            try:
                action()
            except Exception as e:
                errors.append(e)
                logger.opt(exception=e).warning(
                    f"Exception occurred in cleanup of '{self.name}'. "
                    f"Resuming to additional cleanup actions if exist, though they may fail too."
                )
        return CleanupOutcome(scope_name=self.name, errors=tuple(errors))


__all__ = [
    "CleanupAction",
    "IsolationScope",
]
