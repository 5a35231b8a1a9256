"""
================================================================================
Assertion Helpers Module
================================================================================

Assertion wrappers that write every verification to the log, even when it
passes, plus an aggregator for independent assertions on the same result.

Key Features:
- LoggerAssert: equality, time-window and boolean checks that log themselves
- AssertsAggregator: evaluate several checks and fail once, at the end
- expect_exception: assert that an action raises, and get the exception back
- Allure integration for rich test reports

================================================================================
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, List, Optional, Type, TypeVar

import allure
from loguru import logger

from .common.section_logger import SectionLogger, section_logger


T = TypeVar("T")
E = TypeVar("E", bound=BaseException)


def _format_message(message: Optional[str], args: tuple, param_name: str = "message") -> str:
    if message is None:
        raise ValueError(f"{param_name} must not be None")
    return message.format(*args) if args else message


class LoggerAssert:
    """
    Assertions that write the verification to the log even when it passes.

    Tip: phrase messages with the word 'should', e.g.
    ``LoggerAssert.are_equal(3, len(rows), "Grid should show 3 rows")``.
    """

    log: SectionLogger = section_logger

    @classmethod
    def are_equal(cls, expected: Any, actual: Any, message: str, *args: Any) -> None:
        """
        Assert that ``actual`` equals ``expected``.

        Raises:
            ValueError: ``message`` is None
            AssertionError: The values differ
        """
        text = _format_message(message, args)
        cls.log.write_line(f"Verifying that '{expected}' equals to '{actual}' ('{text}')")
        if expected != actual:
            raise AssertionError(
                f"Validation failed: {text}. Expected: '{expected}', Actual: '{actual}'"
            )

    @classmethod
    def are_close_in_time(
        cls,
        expected: datetime,
        actual: datetime,
        threshold: timedelta,
        message: str,
        *args: Any
    ) -> None:
        """
        Assert that two datetimes are within ``threshold`` of each other.
        """
        text = _format_message(message, args)
        cls.is_true(
            abs(expected - actual) <= threshold,
            "'{}' equals to '{}'+/-'{}' ('{}')",
            expected, actual, threshold, text,
        )

    @classmethod
    def is_true(cls, condition: bool, message: str, *args: Any) -> None:
        """
        Assert that ``condition`` is true.

        Raises:
            ValueError: ``message`` is None
            AssertionError: ``condition`` is false
        """
        text = _format_message(message, args)
        cls.log.write_line(f"Verifying that condition is true: '{text}'")
        if not condition:
            raise AssertionError(f"Validation failed: {text}")


@dataclass
class AssertionFailure:
    """A single failed check recorded by AssertsAggregator."""
    message: str
    error: BaseException


class AssertsAggregator:
    """
    Performs a sequence of assertions, reporting each independently.

    Usually a test should stop at the first failing assertion. Sometimes a
    single operation has several independent outcomes (e.g. a message box's
    title, text and icon) and you want to see all of them. Each check is
    evaluated and logged immediately; an AssertionError is raised only when
    the ``with`` block exits, if at least one check failed.

    Example:
        with AssertsAggregator("Message Box") as asserts:
            asserts.are_equal("Add customer", lambda: box.title, "Title")
            asserts.are_equal("Customer already exists", lambda: box.text, "Text")
            asserts.is_true(lambda: box.icon == "error", "Icon should be error")
    """

    def __init__(self, description: str):
        self.description = description
        self.failures: List[AssertionFailure] = []
        self._log = LoggerAssert.log
        self._section = None
        self._step = None

    @property
    def failed(self) -> bool:
        return bool(self.failures)

    def __enter__(self) -> "AssertsAggregator":
        self._step = allure.step(f"Verifying: {self.description}")
        self._step.__enter__()
        self._section = self._log.start_section("Verifying: {}", self.description)
        self._section.__enter__()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        try:
            if exc_type is None and self.failed:
                raise AssertionError(
                    f"Verifying '{self.description}' failed. See log for details."
                )
        finally:
            self._section.__exit__(None, None, None)
            self._step.__exit__(exc_type, exc_value, traceback)
        return False

    def are_equal(self, expected: T, get_actual: Callable[[], T], message: str, *args: Any) -> None:
        """
        Verify that the value returned by ``get_actual`` equals ``expected``.

        Failures of the comparison or of ``get_actual`` itself are recorded,
        not raised.
        """
        self._try(lambda: LoggerAssert.are_equal(expected, get_actual(), message, *args), message, args)

    def is_true(self, get_condition: Callable[[], bool], message: str, *args: Any) -> None:
        """
        Verify that ``get_condition`` returns true.

        Failures are recorded, not raised.
        """
        self._try(lambda: LoggerAssert.is_true(get_condition(), message, *args), message, args)

    def _try(self, check: Callable[[], None], message: str, args: tuple) -> None:
        text = _format_message(message, args)
        try:
            check()
        except Exception as e:
            self.failures.append(AssertionFailure(message=text, error=e))
            self._log.write_line(f"Assertion fail: {type(e).__name__}: {e}")
            logger.debug(f"Recorded failure #{len(self.failures)} for '{self.description}'")


def expect_exception(
    exc_type: Type[E],
    action: Callable[[], Any],
    message: Optional[str] = None,
    *args: Any
) -> E:
    """
    Assert that ``action`` raises ``exc_type`` and return the exception.

    Exceptions of other types propagate unchanged.

    Args:
        exc_type: The expected exception type (subclasses match too)
        action: The action that should raise
        message: Assertion message when nothing is raised; a ``str.format``
                 template when args are given

    Raises:
        AssertionError: ``action`` completed without raising ``exc_type``

    Example:
        error = expect_exception(ValueError, lambda: parse("x"))
        assert "invalid literal" in str(error)
    """
    if not callable(action):
        raise TypeError(f"action must be callable, got {action!r}")

    if message is None:
        message = f"Expected an exception of type {exc_type.__name__} but it wasn't thrown"
    elif args:
        message = message.format(*args)

    try:
        action()
    except exc_type as e:
        return e
    raise AssertionError(message)


__all__ = [
    "LoggerAssert",
    "AssertsAggregator",
    "AssertionFailure",
    "expect_exception",
]
