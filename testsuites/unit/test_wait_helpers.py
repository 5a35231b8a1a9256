from datetime import timedelta

import pytest

from autotest_essentials.wait_helpers import (
    WaitConfig,
    WaitTimeoutError,
    calculate_next_interval,
    format_duration,
    poll_until,
    poll_while,
    wait_until,
    wait_until_value,
    wait_while,
)


FAST = WaitConfig(initial_interval=0.01, multiplier=1.0, max_interval=0.01, timeout=1.0)


class Counter:
    def __init__(self, succeed_at):
        self.calls = 0
        self.succeed_at = succeed_at

    def __call__(self):
        self.calls += 1
        return self.calls >= self.succeed_at


def test_wait_until_returns_once_condition_is_met():
    condition = Counter(succeed_at=3)
    wait_until(condition, 5, config=FAST)
    assert condition.calls == 3


def test_wait_until_raises_timeout_with_custom_message():
    with pytest.raises(WaitTimeoutError, match="Page wasn't loaded after 2 tries"):
        wait_until(lambda: False, 0.05, "Page wasn't loaded after {} tries", 2, config=FAST)


def test_wait_until_default_message_mentions_duration():
    with pytest.raises(WaitTimeoutError) as exc_info:
        wait_until(lambda: False, 0.05, config=FAST)
    assert "has not been met for 50 milliseconds" in str(exc_info.value)


def test_wait_timeout_error_is_a_timeout_error():
    assert issubclass(WaitTimeoutError, TimeoutError)


def test_wait_until_accepts_timedelta():
    wait_until(lambda: True, timedelta(seconds=1), config=FAST)


def test_negative_timeout_raises_value_error():
    with pytest.raises(ValueError):
        wait_until(lambda: True, -1)
    with pytest.raises(ValueError):
        poll_until(lambda: True, timedelta(seconds=-1))


def test_non_callable_condition_raises_type_error():
    with pytest.raises(TypeError):
        wait_until(None, 1)
    with pytest.raises(TypeError):
        wait_until_value(lambda: 1, None, 1)


def test_wait_while_returns_once_condition_is_false():
    still_busy = Counter(succeed_at=3)
    wait_while(lambda: not still_busy(), 5, config=FAST)
    assert still_busy.calls == 3


def test_wait_while_raises_when_condition_stays_true():
    with pytest.raises(WaitTimeoutError, match="is still true after"):
        wait_while(lambda: True, 0.05, config=FAST)


def test_wait_until_value_returns_matching_value():
    values = iter([1, 5, 11, 20])
    result = wait_until_value(lambda: next(values), lambda value: value > 10, 5, config=FAST)
    assert result == 11


def test_wait_until_value_times_out():
    with pytest.raises(WaitTimeoutError, match="Quote didn't reach 10"):
        wait_until_value(lambda: 1, lambda value: value >= 10, 0.05, "Quote didn't reach {}", 10, config=FAST)


def test_condition_errors_propagate():
    def broken():
        raise RuntimeError("broken condition")

    with pytest.raises(RuntimeError, match="broken condition"):
        wait_until(broken, 1, config=FAST)


def test_poll_until_does_not_raise_on_timeout():
    assert poll_until(lambda: False, 0.05, FAST) is False


def test_poll_until_evaluates_at_least_once_with_zero_period():
    condition = Counter(succeed_at=1)
    assert poll_until(condition, 0, FAST) is True
    assert condition.calls == 1


def test_poll_while_reports_whether_condition_became_false():
    assert poll_while(lambda: False, 0.05, FAST) is True
    assert poll_while(lambda: True, 0.05, FAST) is False


def test_calculate_next_interval_is_capped():
    config = WaitConfig(initial_interval=1.0, multiplier=2.0, max_interval=3.0, jitter=False)
    assert calculate_next_interval(1.0, config) == 2.0
    assert calculate_next_interval(2.0, config) == 3.0


def test_calculate_next_interval_jitter_stays_within_bounds():
    config = WaitConfig(initial_interval=1.0, multiplier=2.0, max_interval=10.0, jitter=True)
    for _ in range(20):
        assert 1.5 <= calculate_next_interval(1.0, config) <= 2.5


def test_wait_config_from_config(monkeypatch):
    values = {"wait.timeout": 12, "wait.initial_interval": 0.5}
    monkeypatch.setattr(
        "autotest_essentials.wait_helpers.get_config",
        lambda key, default=None: values.get(key, default),
    )

    config = WaitConfig.from_config()
    assert config.timeout == 12.0
    assert config.initial_interval == 0.5
    assert config.multiplier == WaitConfig().multiplier


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0.25, "250 milliseconds"),
        (1, "1 second"),
        (30, "30 seconds"),
        (90, "1 minute and 30 seconds"),
        (3661, "1 hour, 1 minute and 1 second"),
    ],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected
