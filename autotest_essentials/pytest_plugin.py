"""
================================================================================
Pytest Isolation Plugin
================================================================================

Binds the isolation scopes to the pytest lifecycle:

    session  -> "Assembly"
    class    -> "Class Initialize"
    function -> "Test"

Cleanup actions registered during a test run when the test ends, whether it
passed or failed. Actions registered from ``initialize_class`` run after the
last test of the class, and actions registered on the session-wide manager
outside of any class or test run at the end of the session.

Enable it from a conftest.py:

    pytest_plugins = ["autotest_essentials.pytest_plugin"]

Example:
    class TestCustomers(IsolatedTest):

        @classmethod
        def initialize_class(cls, scope):
            cls.server = start_server()
            scope.add_cleanup_action(cls.server.stop)

        def initialize_test(self):
            self.customer = self.server.create_customer()
            self.add_cleanup_action(self.customer.delete)

        def test_rename(self):
            ...

================================================================================
"""

from typing import Callable, Generator, Optional

import pytest
from loguru import logger

from .common import init_logger
from .common.section_logger import section_logger
from .isolation import CleanupAction, IsolationScope, ScopeManager


# ================================================================================
# Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Keep each phase's report on the item (rep_setup, rep_call, rep_teardown)."""
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)


def _notify_test_failure(request) -> None:
    on_test_failure = getattr(request.instance, "on_test_failure", None)
    if on_test_failure is None:
        return
    try:
        on_test_failure(request.node)
    except Exception as e:
        logger.opt(exception=e).error(f"on_test_failure failed for {request.node.nodeid}")


# ================================================================================
# Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def isolation_scopes() -> Generator[ScopeManager, None, None]:
    """
    Session-scoped manager holding the "Assembly" scope.

    Ending it at session teardown runs the assembly-level cleanup actions.
    """
    init_logger()
    manager = ScopeManager("Assembly")
    yield manager
    manager.end_scope()


@pytest.fixture(scope="class")
def class_isolation_scope(request, isolation_scopes: ScopeManager) -> Generator[ScopeManager, None, None]:
    """
    Class-scoped "Class Initialize" scope.

    Calls the test class's ``initialize_class(scope)`` classmethod, if any.
    """
    cls = request.cls

    def initialize(scope: IsolationScope) -> None:
        if cls is None:
            return
        cls.scopes = isolation_scopes
        initialize_class = getattr(cls, "initialize_class", None)
        if initialize_class is not None:
            initialize_class(scope)

    isolation_scopes.begin_scope("Class Initialize", initialize)
    yield isolation_scopes
    isolation_scopes.end_scope()


@pytest.fixture
def test_isolation_scope(request, class_isolation_scope: ScopeManager) -> Generator[ScopeManager, None, None]:
    """
    Function-scoped "Test" scope.

    Calls the test instance's ``initialize_test()`` method, if any. When the
    test fails, ``on_test_failure(item)`` is called before the cleanup actions
    run. A failing cleanup action fails the test's teardown.
    """
    manager = class_isolation_scope
    instance = request.instance

    def initialize(scope: IsolationScope) -> None:
        if instance is None:
            return
        instance.scopes = manager
        initialize_test = getattr(instance, "initialize_test", None)
        if initialize_test is not None:
            initialize_test()

    section_logger.write_line(f"Test started: {request.node.nodeid}")
    try:
        manager.begin_scope("Test", initialize)
    except Exception:
        _notify_test_failure(request)
        raise

    yield manager

    rep_call = getattr(request.node, "rep_call", None)
    if rep_call is not None and rep_call.failed:
        _notify_test_failure(request)

    manager.end_scope()


@pytest.fixture
def add_cleanup_action(test_isolation_scope: ScopeManager) -> Callable[[CleanupAction], None]:
    """
    Register an action to run when the current test ends.

    Example:
        def test_upload(add_cleanup_action, storage):
            key = storage.upload(b"data")
            add_cleanup_action(lambda: storage.delete(key))
    """
    return test_isolation_scope.add_cleanup_action


# ================================================================================
# Base Class
# ================================================================================

class IsolatedTest:
    """
    Base class for test classes that use isolation scopes.

    Override ``initialize_class``, ``initialize_test`` and ``on_test_failure``
    as needed, and call ``add_cleanup_action`` from any of them (or from the
    test itself) instead of writing teardown code.
    """

    scopes: Optional[ScopeManager] = None

    @pytest.fixture(autouse=True)
    def _isolation_scope(self, test_isolation_scope: ScopeManager) -> None:
        self.scopes = test_isolation_scope

    @classmethod
    def initialize_class(cls, scope: IsolationScope) -> None:
        """Prepare state shared by all tests of the class."""
        pass

    def initialize_test(self) -> None:
        """Prepare state for a single test."""
        pass

    def on_test_failure(self, item: pytest.Item) -> None:
        """Collect diagnostics after a failure (screenshots, logs, ...)."""
        pass

    def add_cleanup_action(self, action: CleanupAction) -> None:
        self.scopes.add_cleanup_action(action)


__all__ = [
    "IsolatedTest",
    "isolation_scopes",
    "class_isolation_scope",
    "test_isolation_scope",
    "add_cleanup_action",
]
