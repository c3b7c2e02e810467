"""
Rate limiter implementation using a fixed window algorithm.

Each client gets a budget of ``max_requests`` per window of
``window_seconds``. The window opens on the client's first request and
resets as a whole once it elapses, rather than sliding continuously.
"""

import asyncio
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from subject_analyzer.observability.logging import ContextualLogger
from subject_analyzer.observability.metrics import (
    rate_limit_rejections_total,
    rate_limit_tracked_clients
)


logger = ContextualLogger(__name__)


@dataclass
class RateLimitConfig:
    """Configuration for the fixed window limiter."""
    max_requests: int = 10
    window_seconds: float = 60.0

    def __post_init__(self):
        if self.max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

    @classmethod
    def from_settings(cls, settings) -> "RateLimitConfig":
        return cls(
            max_requests=settings.RATE_LIMIT_REQUESTS,
            window_seconds=settings.RATE_LIMIT_WINDOW_MS / 1000.0
        )


@dataclass
class RateLimitEntry:
    """Request count for one client inside its current window."""
    count: int
    window_reset_at: float

    def is_expired(self, now: float) -> bool:
        # A request exactly at the reset instant opens a new window.
        return now >= self.window_reset_at


class RateLimiter:
    """
    Fixed window per-client rate limiter.

    Only allowed requests are counted, so ``count`` never exceeds
    ``max_requests`` while a window is active. An expired entry that has
    not been refreshed yet is treated exactly like an absent one, which
    makes ``sweep`` safe to interleave with ``allow_request``.
    """

    def __init__(
        self,
        config: Optional[RateLimitConfig] = None,
        clock: Optional[Callable[[], float]] = None
    ):
        self.config = config or RateLimitConfig()
        self._clock = clock

        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = asyncio.Lock()

    def _now(self) -> float:
        return self._clock() if self._clock else time.time()

    def _active_entry(self, key: str, now: float) -> Optional[RateLimitEntry]:
        entry = self._entries.get(key)
        if entry is None or entry.is_expired(now):
            return None
        return entry

    async def allow_request(self, key: str) -> bool:
        """
        Check if request is allowed for the given key and count it.

        Args:
            key: Client identifier (e.g. source address)

        Returns:
            True if request is allowed, False if rate limited
        """
        async with self._lock:
            now = self._now()
            entry = self._active_entry(key, now)

            if entry is None:
                self._entries[key] = RateLimitEntry(
                    count=1,
                    window_reset_at=now + self.config.window_seconds
                )
                rate_limit_tracked_clients.set(len(self._entries))
                return True

            if entry.count < self.config.max_requests:
                entry.count += 1
                return True

            rate_limit_rejections_total.inc()
            logger.warning(
                "Rate limit exceeded",
                client=key,
                limit=self.config.max_requests,
                reset_at=entry.window_reset_at
            )
            return False

    async def get_remaining_requests(self, key: str) -> int:
        """Get number of remaining requests for the key in its current window."""
        async with self._lock:
            entry = self._active_entry(key, self._now())
            if entry is None:
                return self.config.max_requests
            return max(0, self.config.max_requests - entry.count)

    async def get_reset_time(self, key: str) -> float:
        """Get epoch seconds at which the key's window ends.

        Unknown or expired keys report the end of a window that would open now.
        """
        async with self._lock:
            now = self._now()
            entry = self._active_entry(key, now)
            if entry is None:
                return now + self.config.window_seconds
            return entry.window_reset_at

    async def get_retry_after(self, key: str) -> int:
        """Whole seconds until the key's window resets, at least 1."""
        reset_at = await self.get_reset_time(key)
        return max(1, math.ceil(reset_at - self._now()))

    async def clear_key(self, key: str) -> None:
        """Clear rate limit data for a specific key."""
        async with self._lock:
            self._entries.pop(key, None)
            rate_limit_tracked_clients.set(len(self._entries))

    async def sweep(self) -> int:
        """Remove every entry whose window has elapsed.

        Returns:
            Number of entries removed
        """
        async with self._lock:
            now = self._now()
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
            rate_limit_tracked_clients.set(len(self._entries))

        if expired:
            logger.debug("Rate limiter sweep", removed=len(expired))
        return len(expired)

    async def get_stats(self) -> Dict[str, float]:
        """Get rate limiter statistics."""
        async with self._lock:
            now = self._now()
            active = sum(1 for entry in self._entries.values() if not entry.is_expired(now))
            return {
                "max_requests": self.config.max_requests,
                "window_seconds": self.config.window_seconds,
                "tracked_keys": len(self._entries),
                "active_keys": active
            }
