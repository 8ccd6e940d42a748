"""Bounded retry with exponential backoff for transient upstream failures."""
import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from errors import UpstreamUnavailable

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry policy applied to upstream calls.

    Only UpstreamUnavailable errors flagged as retryable (network errors,
    timeouts, 429 and 5xx responses) are retried. NotFound and other 4xx
    failures are raised on the first attempt.
    """
    max_attempts: int = 3
    base_delay_seconds: float = 0.5
    multiplier: float = 2.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must not be negative")
        if self.multiplier < 1:
            raise ValueError("multiplier must be at least 1")

    @classmethod
    def none(cls) -> "RetryPolicy":
        return cls(max_attempts=1, base_delay_seconds=0.0, multiplier=1.0)

    def delay_for(self, attempt: int) -> float:
        """Delay before the retry that follows the given 1-based attempt."""
        return self.base_delay_seconds * (self.multiplier ** (attempt - 1))

    def call(self, fn: Callable[[], T], sleep: Callable[[float], None] = time.sleep) -> T:
        """
        Invoke fn, retrying transient failures.

        Raises:
            UpstreamUnavailable: The last error once attempts are exhausted
        """
        attempt = 1
        while True:
            try:
                return fn()
            except UpstreamUnavailable as e:
                if not e.retryable or attempt >= self.max_attempts:
                    raise
                delay = self.delay_for(attempt)
                logging.warning(
                    f"Upstream attempt {attempt}/{self.max_attempts} failed: {e}; retrying in {delay:.2f}s"
                )
                sleep(delay)
                attempt += 1
