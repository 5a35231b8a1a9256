"""
================================================================================
Isolation Scope Manager
================================================================================

Manages nestable scopes of isolation for tests. Each scope collects cleanup
actions during its lifetime; when the scope ends, they are called in reverse
order of registration.

Typical nesting:
    Assembly -> Class Initialize -> Test

Key Features:
    - Strict LIFO cleanup per scope
    - Best-effort drain: a failing action never prevents the others from running
    - Failed initializers are unwound immediately, leaving outer scopes untouched
    - Every failure is surfaced (single error as-is, several as an aggregate)
    - Registering cleanup actions from within cleanup is rejected

Usage:
    manager = ScopeManager("Assembly")
    manager.begin_scope("Test", lambda scope: scope.add_cleanup_action(db.close))
    manager.add_cleanup_action(lambda: client.delete_user(user_id))
    manager.end_scope()  # deletes the user, then closes the db

================================================================================
"""

from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from typing import Callable, Iterator, List, Optional

from loguru import logger

from ..common import get_config
from ..common.section_logger import SectionLogger, section_logger as default_section_logger
from .errors import CleanupOutcome, InvalidStateError
from .scope import CleanupAction, IsolationScope, _IsolationLevel


Initializer = Callable[[IsolationScope], None]

_BANNER = "*" * 29


def _no_initialization(scope: IsolationScope) -> None:
    pass


class ScopeState(str, Enum):
    """Lifecycle state of a ScopeManager."""
    INITIALIZING = "initializing"
    ACTIVE = "active"
    CLEANING = "cleaning"


class ScopeManager:
    """
    Stack of nested isolation scopes.

    The manager is created with one root scope and is the only object test
    code talks to. It is not thread-safe; use it from the thread that runs
    the tests.

    Example:
        manager = ScopeManager("Assembly")

        def init_class(scope):
            server = start_server()
            scope.add_cleanup_action(server.stop)

        manager.begin_scope("Class Initialize", init_class)
        manager.begin_scope("Test")
        manager.add_cleanup_action(lambda: print("test cleanup"))
        manager.end_scope()  # prints "test cleanup"
        manager.end_scope()  # stops the server
        manager.end_scope()  # ends "Assembly", stack is now empty
    """

    def __init__(
        self,
        name: str = "Assembly",
        initializer: Optional[Initializer] = None,
        section_logger: Optional[SectionLogger] = None,
        log_sections: Optional[bool] = None,
    ):
        """
        Initialize the manager with one (root) isolation scope.

        Args:
            name: Name of the root scope
            initializer: Called with the manager once the root scope is current.
                         If it raises, the cleanup actions it registered are
                         run and the error propagates out of the constructor.
            section_logger: Where scope banners are written. Defaults to the
                            shared section logger.
            log_sections: Whether to write banners at all. Defaults to the
                          ``isolation.log_sections`` configuration value.
        """
        self._scopes: List[_IsolationLevel] = []
        self._state = ScopeState.INITIALIZING
        self._log = section_logger or default_section_logger
        if log_sections is None:
            log_sections = bool(get_config("isolation.log_sections", True))
        self._log_sections = log_sections

        self.begin_scope(name, initializer)

    @property
    def state(self) -> ScopeState:
        return self._state

    @property
    def depth(self) -> int:
        """Number of scopes currently on the stack."""
        return len(self._scopes)

    @property
    def current_scope_name(self) -> Optional[str]:
        return self._scopes[-1].name if self._scopes else None

    def add_cleanup_action(self, action: CleanupAction) -> None:
        """
        Register an action to be called when the current scope ends.

        Args:
            action: Zero-argument callable

        Raises:
            TypeError: ``action`` is not callable
            InvalidStateError: Called from within cleanup, or no scope is active
        """
        if not callable(action):
            raise TypeError(f"Cleanup action must be callable, got {action!r}")

        if self._state is ScopeState.CLEANING:
            raise InvalidStateError("Adding cleanup actions from within cleanup is not supported")

        if not self._scopes:
            raise InvalidStateError("There is no active isolation scope to add the cleanup action to")

        self._scopes[-1].add_cleanup_action(action)

    def begin_scope(self, name: str, initializer: Optional[Initializer] = None) -> None:
        """
        Begin a new, nested isolation scope.

        Args:
            name: Name of the new scope (used in log banners and errors)
            initializer: Called with the manager while the new scope is current;
                         cleanup actions it registers belong to the new scope.

        Raises:
            ValueError: ``name`` is None
            InvalidStateError: Called from within cleanup
            CleanupAggregateError: The initializer failed and so did one or
                                   more of the cleanup actions it registered.
                                   The initializer's error comes first.
            Exception: Whatever the initializer raised, when the cleanup of
                       the half-initialized scope succeeded.
        """
        if name is None:
            raise ValueError("Scope name must not be None")

        if self._state is ScopeState.CLEANING:
            raise InvalidStateError("Beginning an isolation scope from within cleanup is not supported")

        initializer = initializer or _no_initialization
        previous_state = self._state
        depth_before = len(self._scopes)

        self._state = ScopeState.INITIALIZING
        self._scopes.append(_IsolationLevel(name))
        self._banner(f"Initializing {name}")

        try:
            initializer(self)
        except BaseException as e:
            logger.error(f"Initialization of '{name}' failed: {type(e).__name__}: {e}")
            try:
                outcome = self._unwind_above(depth_before, name)
            finally:
                self._state = previous_state
            error = outcome.merged_with_cause(e)
            if error is e:
                raise
            raise error from e

        self._banner(f"Initializing {name} completed successfully")
        self._state = ScopeState.ACTIVE

    def end_scope(self) -> None:
        """
        End the current scope, calling its cleanup actions in reverse order.

        The scope is popped even if some of its actions fail.

        Raises:
            InvalidStateError: No scope is active, or called from within cleanup
            Exception: The error of the only failing cleanup action
            CleanupAggregateError: Two or more cleanup actions failed
        """
        self._end_current_scope().raise_if_failed()

    @contextmanager
    def scope(self, name: str, initializer: Optional[Initializer] = None) -> Iterator["ScopeManager"]:
        """
        Run a block inside a nested scope, ending it when the block exits.

        If the block raises and cleanup fails too, a CleanupAggregateError
        holding the block's error first is raised instead.

        Example:
            with manager.scope("Test"):
                manager.add_cleanup_action(cleanup)
        """
        self.begin_scope(name, initializer)
        try:
            yield self
        except BaseException as e:
            outcome = self._end_current_scope()
            error = outcome.merged_with_cause(e, f"Scope '{name}' failed and its cleanup failed too")
            if error is e:
                raise
            raise error from e
        self.end_scope()

    def _end_current_scope(self) -> CleanupOutcome:
        if not self._scopes:
            raise InvalidStateError("There is no active isolation scope to end")

        if self._state is ScopeState.CLEANING:
            raise InvalidStateError("Ending an isolation scope from within cleanup is not supported")

        try:
            return self._cleanup(self._scopes[-1])
        finally:
            self._scopes.pop()
            self._state = ScopeState.ACTIVE

    def _cleanup(self, scope: _IsolationLevel) -> CleanupOutcome:
        self._state = ScopeState.CLEANING
        self._banner(f"Cleanup {scope.name}")
        return scope.unwind()

    def _unwind_above(self, depth: int, name: str) -> CleanupOutcome:
        """
        Unwind and drop every scope above ``depth``, innermost first.

        Scopes above the failed one exist only if its initializer began
        nested scopes of its own before failing.
        """
        errors = []
        try:
            while len(self._scopes) > depth:
                errors.extend(self._cleanup(self._scopes[-1]).errors)
                self._scopes.pop()
        finally:
            del self._scopes[depth:]
        return CleanupOutcome(scope_name=name, errors=tuple(errors))

    def _banner(self, text: str) -> None:
        if not self._log_sections:
            return
        try:
            self._log.write_line(f"{_BANNER} {text} {_BANNER}")
        except Exception as e:
            # A broken log sink must not skip initializers or cleanup actions
            logger.opt(exception=e).warning(f"Failed to write scope banner '{text}'")

    def __repr__(self) -> str:
        names = " > ".join(scope.name for scope in self._scopes)
        return f"<ScopeManager state={self._state.value} scopes=[{names}]>"


__all__ = [
    "Initializer",
    "ScopeManager",
    "ScopeState",
]
