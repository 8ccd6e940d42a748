"""Tests for the upstream retry policy."""
import pytest
from errors import NotFound, UpstreamUnavailable
from retry_policy import RetryPolicy


class FlakyCall:
    """Callable that fails a fixed number of times before succeeding."""

    def __init__(self, failures, error):
        self.failures = failures
        self.error = error
        self.call_count = 0

    def __call__(self):
        self.call_count += 1
        if self.call_count <= self.failures:
            raise self.error
        return "ok"


def test_delays_grow_exponentially():
    policy = RetryPolicy(max_attempts=4, base_delay_seconds=1.0, multiplier=2.0)

    assert [policy.delay_for(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]


def test_retries_transient_failures():
    """Test that retryable errors are retried until success."""
    sleeps = []
    call = FlakyCall(2, UpstreamUnavailable("Network error", retryable=True))

    result = RetryPolicy(max_attempts=3, base_delay_seconds=0.1, multiplier=3).call(call, sleep=sleeps.append)

    assert result == "ok"
    assert call.call_count == 3
    assert sleeps == pytest.approx([0.1, 0.3])


def test_gives_up_after_max_attempts():
    sleeps = []
    call = FlakyCall(5, UpstreamUnavailable("Network error", retryable=True))

    with pytest.raises(UpstreamUnavailable):
        RetryPolicy(max_attempts=2).call(call, sleep=sleeps.append)

    assert call.call_count == 2
    assert len(sleeps) == 1


def test_non_retryable_failure_raises_immediately():
    """Test that 4xx-style failures are not retried."""
    sleeps = []
    call = FlakyCall(1, UpstreamUnavailable("Open-Meteo forecast error 400", retryable=False))

    with pytest.raises(UpstreamUnavailable):
        RetryPolicy(max_attempts=3).call(call, sleep=sleeps.append)

    assert call.call_count == 1
    assert sleeps == []


def test_not_found_is_never_retried():
    """Test that NotFound passes straight through."""
    sleeps = []
    call = FlakyCall(1, NotFound("Could not find coordinates for city: Atlantis"))

    with pytest.raises(NotFound):
        RetryPolicy(max_attempts=3).call(call, sleep=sleeps.append)

    assert call.call_count == 1
    assert sleeps == []


def test_none_policy_makes_single_attempt():
    call = FlakyCall(1, UpstreamUnavailable("Network error", retryable=True))

    with pytest.raises(UpstreamUnavailable):
        RetryPolicy.none().call(call, sleep=lambda _: None)

    assert call.call_count == 1


@pytest.mark.parametrize("kwargs", [
    {"max_attempts": 0},
    {"base_delay_seconds": -1},
    {"multiplier": 0.5},
])
def test_invalid_policy(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)
