"""
================================================================================
Isolation Scopes
================================================================================

Deterministic, nested teardown of test resources.

Modules:
    - manager: ScopeManager, the stack of nested scopes
    - scope: the IsolationScope capability handed to initializers
    - errors: InvalidStateError, CleanupAggregateError and CleanupOutcome

================================================================================
"""

from .errors import CleanupAggregateError, CleanupOutcome, InvalidStateError, IsolationError
from .manager import Initializer, ScopeManager, ScopeState
from .scope import CleanupAction, IsolationScope

__all__ = [
    "ScopeManager",
    "ScopeState",
    "Initializer",
    "IsolationScope",
    "CleanupAction",
    "IsolationError",
    "InvalidStateError",
    "CleanupAggregateError",
    "CleanupOutcome",
]
