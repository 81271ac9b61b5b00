"""
In-memory TTL cache for lookup results.

Entries carry their own TTL so failed lookups can expire sooner than
successful ones. Expiry is lazy on read; a periodic background sweep
bounds memory for keys that are written once and never read again.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable

from squadstats.core.logging import get_logger

logger = get_logger("cache")

DEFAULT_TTL_SECONDS = 600.0
DEFAULT_SWEEP_INTERVAL_SECONDS = 1800.0


@dataclass(slots=True)
class CacheEntry:
    """A stored value with its insertion and expiry timestamps."""

    value: Any
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class TTLCache:
    """String-keyed cache with per-entry expiry and a background sweeper.

    Reads are not pure queries: ``get`` and ``has`` delete the entry they
    find stale. ``size`` counts raw entries, including expired ones the
    sweeper has not reached yet.

    Usage:
        async with TTLCache(default_ttl=600, sweep_interval=1800) as cache:
            cache.set("player_stats_x", stats)
            cache.get("player_stats_x")
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the cache.

        Args:
            default_ttl: TTL in seconds used when ``set`` is given none
            sweep_interval: Seconds between background sweeps
            clock: Monotonic time source in seconds
        """
        if sweep_interval <= 0:
            raise ValueError("sweep_interval must be positive")
        self.default_ttl = default_ttl
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._sweeper: asyncio.Task[None] | None = None

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value, replacing any existing entry for the key."""
        now = self._clock()
        duration = self.default_ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(value=value, created_at=now, expires_at=now + duration)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the fresh value for a key, or ``default``.

        A stale entry is removed as a side effect.
        """
        entry = self._entries.get(key)
        if entry is None:
            return default
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return default
        return entry.value

    def has(self, key: str) -> bool:
        """Check for a fresh entry, removing it if stale."""
        entry = self._entries.get(key)
        if entry is None:
            return False
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return False
        return True

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def delete(self, key: str) -> bool:
        """Remove one key. Returns True if an entry was present."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        """Number of stored entries, expired-but-unswept ones included."""
        return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def purge_expired(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    # -------------------------------------------------------------------------
    # Background sweep
    # -------------------------------------------------------------------------

    @property
    def sweeping(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start(self) -> None:
        """Start the periodic sweep on the running event loop.

        Calling it again while the sweeper runs has no effect.
        """
        if self.sweeping:
            return
        self._sweeper = asyncio.get_running_loop().create_task(
            self._sweep_loop(), name="ttl-cache-sweep"
        )

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        sweeper, self._sweeper = self._sweeper, None
        if sweeper is None or sweeper.done():
            return
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass

    async def aclose(self) -> None:
        await self.stop()

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            removed = self.purge_expired()
            if removed:
                logger.debug("Swept %d expired cache entries", removed)

    async def __aenter__(self) -> "TTLCache":
        self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()

    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        return {
            "size": self.size(),
            "default_ttl_seconds": self.default_ttl,
            "sweep_interval_seconds": self.sweep_interval,
            "sweeping": self.sweeping,
        }
