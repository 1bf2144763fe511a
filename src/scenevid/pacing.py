"""Spacing and retry policy for scene-level work."""

import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class RatePolicy:
    """Minimum spacing between scene operations plus retry backoff.

    ``wait_turn`` is awaited before each scene operation starts; starts are
    spaced at least ``min_interval`` seconds apart regardless of how many
    workers are running. ``backoff_delay`` gives the wait before a retry,
    doubling each attempt.
    """

    def __init__(
        self,
        min_interval: float = 0.0,
        max_retries: int = 0,
        retry_delay: float = 2.0,
        max_retry_delay: Optional[float] = 60.0,
    ) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self._min_interval = min_interval
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._max_retry_delay = max_retry_delay
        self._lock: Optional[asyncio.Lock] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._last_start: Optional[float] = None

    @property
    def min_interval(self) -> float:
        return self._min_interval

    @property
    def max_retries(self) -> int:
        return self._max_retries

    async def wait_turn(self) -> None:
        """Sleep until the next scene operation may start."""
        if self._min_interval <= 0:
            return
        loop = asyncio.get_running_loop()
        # One lock per event loop, shared by every run on that loop
        if self._lock is None or self._loop is not loop:
            self._lock = asyncio.Lock()
            self._loop = loop
            self._last_start = None
        async with self._lock:
            now = loop.time()
            if self._last_start is not None:
                wait = self._last_start + self._min_interval - now
                if wait > 0:
                    logger.debug(f"Pacing: waiting {wait:.2f}s before next scene")
                    await asyncio.sleep(wait)
                    now = loop.time()
            self._last_start = now

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        delay = self._retry_delay * (2 ** (attempt - 1))
        if self._max_retry_delay is not None:
            delay = min(delay, self._max_retry_delay)
        return delay
