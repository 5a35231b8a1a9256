"""
================================================================================
Autotest Essentials
================================================================================

Helpers for writing reliable automated tests.

Modules:
    - isolation: Nested isolation scopes with deterministic, LIFO cleanup
    - wait_helpers: Polling until a condition is (or stops being) met
    - asserts: Logged assertions, assertion aggregation, expect_exception
    - pytest_plugin: Assembly/class/test isolation scopes for pytest
    - common: Shared configuration and logging utilities

Example:
    from autotest_essentials import ScopeManager, wait_until

    scopes = ScopeManager("Assembly")
    scopes.begin_scope("Test", lambda scope: scope.add_cleanup_action(driver.quit))
    wait_until(lambda: page.is_loaded(), 30)
    scopes.end_scope()

================================================================================
"""

from .asserts import AssertsAggregator, LoggerAssert, expect_exception
from .isolation import (
    CleanupAggregateError,
    CleanupOutcome,
    InvalidStateError,
    IsolationScope,
    ScopeManager,
    ScopeState,
)
from .wait_helpers import (
    WaitConfig,
    WaitTimeoutError,
    poll_until,
    poll_while,
    wait_until,
    wait_until_value,
    wait_while,
)

__version__ = "1.0.0"

__all__ = [
    "ScopeManager",
    "ScopeState",
    "IsolationScope",
    "InvalidStateError",
    "CleanupAggregateError",
    "CleanupOutcome",
    "WaitConfig",
    "WaitTimeoutError",
    "poll_until",
    "poll_while",
    "wait_until",
    "wait_while",
    "wait_until_value",
    "LoggerAssert",
    "AssertsAggregator",
    "expect_exception",
]
