# ================================================================================
# Wait Helpers Module
# ================================================================================
#
# This module provides utilities for waiting until a condition comes true
# (or stops being true) in UI and API tests.
#
# Key Features:
#   - Polling with exponential backoff and optional jitter
#   - Timeouts given as seconds or datetime.timedelta
#   - Raising and non-raising variants
#   - Allure integration for step reporting
#
# Usage:
#   wait_until(lambda: page_is_loaded(), 30)
#   quote = wait_until_value(get_quote, lambda q: q.value > 10, timedelta(minutes=5))
#   appeared = poll_until(lambda: toast.is_visible(), 2)
#
# ================================================================================

import random
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Optional, TypeVar, Union

import allure
from loguru import logger

from .common import get_config


T = TypeVar('T')

Timeout = Union[int, float, timedelta]


@dataclass
class WaitConfig:
    """
    Configuration for polling.

    Attributes:
        initial_interval: Initial wait interval between evaluations, in seconds
        multiplier: Multiplier for exponential backoff
        max_interval: Maximum interval between evaluations
        timeout: Default timeout in seconds
        jitter: Add random jitter to the interval
    """
    initial_interval: float = 0.1
    multiplier: float = 1.5
    max_interval: float = 2.0
    timeout: float = 30.0
    jitter: bool = False

    @classmethod
    def from_config(cls) -> "WaitConfig":
        """Build a WaitConfig from the ``wait.*`` configuration keys."""
        defaults = cls()
        return cls(
            initial_interval=float(get_config("wait.initial_interval", defaults.initial_interval)),
            multiplier=float(get_config("wait.multiplier", defaults.multiplier)),
            max_interval=float(get_config("wait.max_interval", defaults.max_interval)),
            timeout=float(get_config("wait.timeout", defaults.timeout)),
            jitter=bool(get_config("wait.jitter", defaults.jitter)),
        )


class WaitTimeoutError(TimeoutError):
    """Raised when a condition hasn't been met within the timeout."""
    pass


def calculate_next_interval(current_interval: float, config: WaitConfig) -> float:
    """
    Calculate the next wait interval with exponential backoff and jitter.

    Args:
        current_interval: Current interval in seconds
        config: Wait configuration

    Returns:
        Next interval in seconds
    """
    next_interval = min(current_interval * config.multiplier, config.max_interval)

    if config.jitter:
        # Add +/- 25% jitter
        jitter_factor = 0.75 + (random.random() * 0.5)
        next_interval = next_interval * jitter_factor

    return next_interval


def format_duration(seconds: float) -> str:
    """
    Spoken form of a duration, e.g. "1 minute and 30 seconds".

    Sub-second durations are written in milliseconds.
    """
    if seconds < 1:
        return f"{int(round(seconds * 1000))} milliseconds"

    parts = []
    remaining = int(seconds)
    for unit, size in (("hour", 3600), ("minute", 60), ("second", 1)):
        amount, remaining = divmod(remaining, size)
        if amount:
            parts.append(f"{amount} {unit}" + ("s" if amount != 1 else ""))

    if len(parts) == 1:
        return parts[0]
    return ", ".join(parts[:-1]) + " and " + parts[-1]


def _to_seconds(timeout: Timeout, param_name: str = "timeout") -> float:
    if isinstance(timeout, timedelta):
        seconds = timeout.total_seconds()
    else:
        seconds = float(timeout)
    if seconds < 0:
        raise ValueError(f"{param_name} must not be negative, got {seconds}")
    return seconds


def _validate_callable(fn: Any, param_name: str) -> None:
    if not callable(fn):
        raise TypeError(f"{param_name} must be callable, got {fn!r}")


def _describe(fn: Callable) -> str:
    return getattr(fn, "__qualname__", None) or repr(fn)


def poll_until(
    condition: Callable[[], bool],
    period: Timeout,
    config: Optional[WaitConfig] = None
) -> bool:
    """
    Poll until the condition is true or the period has passed, whichever comes first.

    This function never raises on timeout. Use it for non critical and possibly
    very short conditions that polling may miss, then verify a different
    condition that shows whether the operation actually completed.

    Args:
        condition: Function evaluated repeatedly; always evaluated at least once
        period: Maximum time to poll, in seconds or as a timedelta
        config: Polling intervals (defaults to the ``wait.*`` configuration)

    Returns:
        Whether the condition has been met
    """
    _validate_callable(condition, "condition")
    seconds = _to_seconds(period, "period")
    config = config or WaitConfig.from_config()

    end_time = time.monotonic() + seconds
    current_interval = config.initial_interval
    attempt = 0

    while True:
        attempt += 1
        if condition():
            logger.debug(f"Condition met after {attempt} attempts: {_describe(condition)}")
            return True

        remaining = end_time - time.monotonic()
        if remaining <= 0:
            logger.debug(f"Condition not met after {attempt} attempts: {_describe(condition)}")
            return False

        time.sleep(min(current_interval, remaining))
        current_interval = calculate_next_interval(current_interval, config)


def poll_while(
    condition: Callable[[], bool],
    period: Timeout,
    config: Optional[WaitConfig] = None
) -> bool:
    """
    Poll while the condition is true, for at most the given period.

    This function never raises on timeout.

    Returns:
        Whether the condition became false within the period
    """
    _validate_callable(condition, "condition")
    return poll_until(lambda: not condition(), period, config)


def wait_until(
    condition: Callable[[], bool],
    timeout: Timeout,
    timeout_message: Optional[str] = None,
    *args: Any,
    config: Optional[WaitConfig] = None
) -> None:
    """
    Wait until the condition becomes true.

    Args:
        condition: Function evaluated repeatedly
        timeout: Maximum time to wait, in seconds or as a timedelta
        timeout_message: Message for WaitTimeoutError; a ``str.format``
                         template when args are given
        *args: Format arguments for ``timeout_message``
        config: Polling intervals

    Raises:
        TypeError: ``condition`` is not callable
        ValueError: ``timeout`` is negative
        WaitTimeoutError: The condition wasn't met within the timeout

    Example:
        wait_until(lambda: page.is_loaded(), 30, "Page wasn't loaded!")
    """
    _validate_callable(condition, "condition")
    seconds = _to_seconds(timeout)

    if timeout_message is None:
        timeout_message = (
            f"The condition '{_describe(condition)}' has not been met for {format_duration(seconds)}"
        )
    elif args:
        timeout_message = timeout_message.format(*args)

    with allure.step(f"Waiting until {_describe(condition)}"):
        if not poll_until(condition, seconds, config):
            logger.error(timeout_message)
            raise WaitTimeoutError(timeout_message)


def wait_while(
    condition: Callable[[], bool],
    timeout: Timeout,
    timeout_message: Optional[str] = None,
    *args: Any,
    config: Optional[WaitConfig] = None
) -> None:
    """
    Wait until the condition becomes false.

    Raises:
        WaitTimeoutError: The condition was still true after the timeout

    Example:
        wait_while(lambda: please_wait_message.is_visible(), 30)
    """
    _validate_callable(condition, "condition")
    seconds = _to_seconds(timeout)

    if timeout_message is None:
        timeout_message = (
            f"The condition '{_describe(condition)}' is still true after {format_duration(seconds)}"
        )
    elif args:
        timeout_message = timeout_message.format(*args)

    wait_until(lambda: not condition(), seconds, timeout_message, config=config)


def wait_until_value(
    get_result: Callable[[], T],
    condition: Callable[[T], bool],
    timeout: Timeout,
    timeout_message: Optional[str] = None,
    *args: Any,
    config: Optional[WaitConfig] = None
) -> T:
    """
    Evaluate ``get_result`` until its value meets ``condition``, and return that value.

    Raises:
        WaitTimeoutError: No value met the condition within the timeout

    Example:
        # Waits until the quote reaches 10 and returns it
        quote = wait_until_value(get_quote, lambda q: q.value > 10, timedelta(minutes=5))
    """
    _validate_callable(get_result, "get_result")
    _validate_callable(condition, "condition")
    seconds = _to_seconds(timeout)

    if timeout_message is None:
        timeout_message = (
            f"The condition '{_describe(condition)}' on '{_describe(get_result)}' "
            f"has not been met for {format_duration(seconds)}"
        )

    result = None

    def check() -> bool:
        nonlocal result
        result = get_result()
        return condition(result)

    wait_until(check, seconds, timeout_message, *args, config=config)
    return result


__all__ = [
    "WaitConfig",
    "WaitTimeoutError",
    "calculate_next_interval",
    "format_duration",
    "poll_until",
    "poll_while",
    "wait_until",
    "wait_while",
    "wait_until_value",
]
