"""
Rate limiter for respectful scraping.

Enforces a minimum spacing of ``1 / requests_per_second`` between grants
issued by the same limiter instance. Each source owns its own limiter.

Example:
    >>> limiter = RateLimiter(requests_per_second=0.5)
    >>> await limiter.acquire()  # returns immediately
    >>> await limiter.acquire()  # returns 2 seconds after the first grant
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Optional

from src.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimiterConfig:
    """
    Configuration for the rate limiter.

    Attributes:
        requests_per_second: Maximum sustained request rate; <= 0 disables pacing.
        name: Label used in log messages.
    """
    requests_per_second: float = 0.5
    name: str = "default"

    @property
    def min_interval(self) -> float:
        if self.requests_per_second <= 0:
            return 0.0
        return 1.0 / self.requests_per_second


class RateLimiter:
    """
    Minimum-interval rate limiter for asyncio tasks.

    ``acquire`` suspends only the calling task. The last grant time is read
    and written under an ``asyncio.Lock``, so concurrent callers queue in
    call order and each computes its wait from the most recent grant.

    A task cancelled while waiting records nothing.

    Attributes:
        config: Rate limiter configuration.
        last_grant_time: Clock reading of the last grant, None before the first.

    Example:
        >>> limiter = RateLimiter(requests_per_second=2.0)
        >>> await limiter.acquire()
        >>> # Make request
    """

    def __init__(
        self,
        requests_per_second: float = 0.5,
        config: Optional[RateLimiterConfig] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the rate limiter.

        Args:
            requests_per_second: Maximum request rate.
            config: Full configuration object (overrides requests_per_second).
            clock: Monotonic time source in seconds.
        """
        self.config = config or RateLimiterConfig(requests_per_second=requests_per_second)

        if self.config.requests_per_second <= 0:
            logger.warning(
                f"RateLimiter[{self.config.name}]: non-positive rate "
                f"{self.config.requests_per_second}, pacing disabled"
            )

        self.last_grant_time: Optional[float] = None
        self._clock = clock or time.monotonic
        self._lock = asyncio.Lock()
        logger.debug(
            f"RateLimiter[{self.config.name}] initialized: "
            f"min interval {self.config.min_interval:.3f}s"
        )

    @property
    def min_interval(self) -> float:
        return self.config.min_interval

    async def acquire(self) -> float:
        """
        Wait until the next request may be sent, then record the grant.

        Returns:
            Seconds spent waiting.
        """
        async with self._lock:
            waited = 0.0
            # Loop: the event loop may wake a timer marginally early
            while self.last_grant_time is not None and self.min_interval > 0:
                remaining = self.min_interval - (self._clock() - self.last_grant_time)
                if remaining <= 0:
                    break
                logger.debug(
                    f"RateLimiter[{self.config.name}]: waiting {remaining:.2f}s"
                )
                await asyncio.sleep(remaining)
                waited += remaining

            self.last_grant_time = self._clock()
            return waited

    def reset(self) -> None:
        """Forget the last grant."""
        self.last_grant_time = None


def create_rate_limiter_from_config(requests_per_second: float, name: str) -> RateLimiter:
    """
    Create a named rate limiter.

    Args:
        requests_per_second: Rate taken from AppConfig.
        name: Source label (``structured`` or ``document``).

    Returns:
        A new RateLimiter owned by one client.
    """
    return RateLimiter(
        config=RateLimiterConfig(requests_per_second=requests_per_second, name=name)
    )
