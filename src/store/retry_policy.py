"""Reconnection policy for the backing store connection"""

from dataclasses import dataclass
from typing import Optional

from models.config import RedisConfig


@dataclass(frozen=True)
class RetryPolicy:
    """
    Fixed-delay, never-give-up reconnection policy.

    Attempts are unbounded on purpose: the store is assumed to recover
    eventually and the service never marks itself unrecoverable. The attempt
    number is accepted by next_delay() only so callers can log it.

    Attributes:
        delay: Seconds between a failed attempt (or a detected drop) and the next attempt
        connect_timeout: Upper bound for a single connection attempt / ping
        check_interval: Seconds between liveness pings while connected (None = delay)
    """
    delay: float = 1.0
    connect_timeout: float = 2.0
    check_interval: Optional[float] = None

    def __post_init__(self):
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay}")
        if self.connect_timeout <= 0:
            raise ValueError(f"connect_timeout must be > 0, got {self.connect_timeout}")
        if self.check_interval is not None and self.check_interval <= 0:
            raise ValueError(f"check_interval must be > 0, got {self.check_interval}")

    @property
    def liveness_interval(self) -> float:
        return self.check_interval if self.check_interval is not None else max(self.delay, 0.01)

    def next_delay(self, attempt: int) -> float:
        """Delay before the given attempt; constant regardless of attempt."""
        return self.delay

    @classmethod
    def from_config(cls, config: RedisConfig) -> "RetryPolicy":
        return cls(delay=config.retry_delay, connect_timeout=config.connect_timeout)
