"""
Process-wide throttle for outbound calls to the upstream price API.

The free CoinGecko tier allows only a handful of calls per minute, and going
over it fails requests for every consumer, so every upstream call goes
through one shared limiter.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Grants dispatch slots at least ``min_interval`` seconds apart."""

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if min_interval <= 0:
            raise ValueError("min_interval must be > 0")

        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_call: float | None = None

    @property
    def last_call(self) -> float | None:
        """Monotonic time of the most recent dispatch."""
        return self._last_call

    async def acquire(self) -> float:
        """
        Wait for the next dispatch slot and claim it.

        Callers queue on the lock, so concurrent callers get sequential slots.

        Returns:
            The monotonic time recorded for this dispatch.
        """
        async with self._lock:
            if self._last_call is not None:
                # Loop because sleep may wake marginally early
                while (
                    wait_time := self.min_interval - (self._clock() - self._last_call)
                ) > 0:
                    logger.info(
                        f"Rate limiting: waiting {wait_time:.2f}s before next API call"
                    )
                    await self._sleep(wait_time)

            self._last_call = self._clock()
            return self._last_call
