"""
Request Rate Gate

Enforces a minimum interval between the start of consecutive requests issued
through one client instance.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


class RateGate:
    """
    Minimum-interval gate shared by every request of a client.

    The last-grant timestamp is guarded by a lock, so concurrent callers
    are granted one at a time and each grant is at least ``1 / rate_limit``
    seconds after the previous one.
    """

    def __init__(
        self,
        rate_limit: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.rate_limit = rate_limit
        self._clock = clock
        self._sleep = sleep
        self._last_request_at: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return bool(self.rate_limit)

    @property
    def min_interval(self) -> float:
        """Required gap between grants in seconds."""
        return 1.0 / self.rate_limit if self.rate_limit else 0.0

    @property
    def last_request_at(self) -> Optional[float]:
        return self._last_request_at

    async def acquire(self) -> float:
        """
        Wait until the next request may start.

        Returns:
            Actual delay applied in seconds
        """
        if not self.enabled:
            return 0.0

        async with self._lock:
            delay_applied = 0.0
            if self._last_request_at is not None:
                elapsed = self._clock() - self._last_request_at
                if elapsed < self.min_interval:
                    delay_applied = self.min_interval - elapsed
                    logger.debug("Rate gate delaying request", delay=round(delay_applied, 4))
                    await self._sleep(delay_applied)

            self._last_request_at = self._clock()
            return delay_applied

    def reset(self) -> None:
        """Forget the last grant so the next request passes immediately."""
        self._last_request_at = None
