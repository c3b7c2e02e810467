# ==== RESPONSE CACHE SERVICE ==== #

"""
In-memory response cache for subject line analyses.

Entries are keyed by a request fingerprint, expire after a TTL and are
bounded in number; when full, the oldest entry is evicted before a new one
is inserted.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from subject_analyzer.observability.logging import ContextualLogger
from subject_analyzer.observability.metrics import cache_evictions_total, cache_size
from subject_analyzer.schemas.analysis import AnalysisResult


logger = ContextualLogger(__name__)


# ==== FINGERPRINTING ==== #


def fingerprint(subject: str, industry: str) -> str:
    """
    Derive the cache key for a (subject, industry) pair.

    The subject is case-folded and stripped of surrounding whitespace, so
    ``"Hello World"`` and ``"  hello world  "`` share one cache entry. The
    separator cannot occur in an industry identifier, which keeps distinct
    normalized pairs from colliding.

    Args:
        subject (str): Subject line as received
        industry (str): Industry identifier

    Returns:
        str: Deterministic cache key
    """
    industry_value = getattr(industry, "value", industry)
    return f"{subject.strip().casefold()}\x1f{industry_value}"


# ==== CACHE CONFIGURATION ==== #


@dataclass
class CacheConfig:
    """Configuration for the response cache."""
    default_ttl: float = 300.0
    max_size: int = 1000

    def __post_init__(self):
        if self.max_size < 1:
            raise ValueError("max_size must be at least 1")
        if self.default_ttl <= 0:
            raise ValueError("default_ttl must be positive")

    @classmethod
    def from_settings(cls, settings) -> "CacheConfig":
        return cls(
            default_ttl=settings.CACHE_TTL_SECONDS,
            max_size=settings.CACHE_MAX_SIZE
        )


@dataclass(frozen=True)
class CacheEntry:
    """Cached analysis with its creation time and lifetime."""
    value: AnalysisResult
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now > self.created_at + self.ttl


# ==== RESPONSE CACHE CLASS ==== #


class ResponseCache:
    """
    Fingerprint-keyed TTL cache with a hard size bound.

    Expiry is enforced lazily on ``get``; ``sweep`` reclaims memory held by
    expired entries that are never read again.
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Optional[Callable[[], float]] = None
    ):
        self.config = config or CacheConfig()
        self._clock = clock

        self._entries: Dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

    def _now(self) -> float:
        return self._clock() if self._clock else time.monotonic()

    async def get(self, key: str) -> Optional[AnalysisResult]:
        """
        Look up a cached analysis.

        Args:
            key (str): Request fingerprint

        Returns:
            Optional[AnalysisResult]: Cached value, or None when absent or expired
        """
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            if entry.is_expired(self._now()):
                del self._entries[key]
                cache_evictions_total.labels(reason="expired").inc()
                cache_size.set(len(self._entries))
                return None

            return entry.value

    async def set(self, key: str, value: AnalysisResult, ttl: Optional[float] = None) -> None:
        """
        Store an analysis, evicting the oldest entry first when full.

        Args:
            key (str): Request fingerprint
            value (AnalysisResult): Analysis to cache
            ttl (Optional[float]): Lifetime in seconds, defaults to the configured TTL
        """
        async with self._lock:
            if key not in self._entries and len(self._entries) >= self.config.max_size:
                self._evict_oldest()

            self._entries[key] = CacheEntry(
                value=value,
                created_at=self._now(),
                ttl=ttl if ttl is not None else self.config.default_ttl
            )
            cache_size.set(len(self._entries))

    def _evict_oldest(self) -> None:
        oldest_key = min(self._entries, key=lambda k: self._entries[k].created_at)
        del self._entries[oldest_key]
        cache_evictions_total.labels(reason="capacity").inc()
        logger.debug("Evicted oldest cache entry", size=len(self._entries))

    async def sweep(self) -> int:
        """Remove all expired entries.

        Returns:
            int: Number of entries removed
        """
        async with self._lock:
            now = self._now()
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
            cache_size.set(len(self._entries))

        if expired:
            cache_evictions_total.labels(reason="expired").inc(len(expired))
            logger.debug("Cache sweep", removed=len(expired))
        return len(expired)

    async def clear(self) -> None:
        """Drop every cached entry."""
        async with self._lock:
            self._entries.clear()
            cache_size.set(0)

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> Dict[str, int]:
        """Get cache statistics."""
        return {
            "size": len(self._entries),
            "maxSize": self.config.max_size
        }
