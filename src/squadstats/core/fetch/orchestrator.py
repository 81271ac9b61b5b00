"""
Cache-first fetch orchestration.

Coordinates: cache lookup -> scheduled network operation -> cache store.
Failures are cached too, with a shorter TTL, so a broken lookup is not
retried until that TTL passes.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Mapping, TypeVar

from squadstats.core.cache import TTLCache
from squadstats.core.errors import SchedulerError
from squadstats.core.fetch.scheduler import WindowedScheduler
from squadstats.core.logging import get_contextual_logger

T = TypeVar("T")

DEFAULT_SUCCESS_TTL = 600.0
DEFAULT_FAILURE_TTL = 120.0


@dataclass(frozen=True)
class FetchOutcome(Generic[T]):
    """Result of a cached lookup.

    ``value is None`` with no error means the lookup succeeded and the
    upstream reported nothing for the key.
    """

    key: str
    value: T | None = None
    error: str | None = None
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        """Lookup completed without error."""
        return self.error is None

    @property
    def unavailable(self) -> bool:
        """Nothing to show: failed, or not found upstream."""
        return self.error is not None or self.value is None

    def cached(self) -> "FetchOutcome[T]":
        return FetchOutcome(key=self.key, value=self.value, error=self.error, from_cache=True)


class CachedFetcher:
    """Serve lookups from the cache, falling back to the scheduler.

    The scheduler is the single point of rate enforcement, so callers can
    fire any number of ``fetch_with_cache`` calls at once. Concurrent misses
    on one key share a single scheduled call.
    """

    def __init__(
        self,
        cache: TTLCache,
        scheduler: WindowedScheduler,
        ttl_success: float = DEFAULT_SUCCESS_TTL,
        ttl_failure: float = DEFAULT_FAILURE_TTL,
    ):
        self.cache = cache
        self.scheduler = scheduler
        self.ttl_success = ttl_success
        self.ttl_failure = ttl_failure
        self._in_flight: dict[str, asyncio.Future[FetchOutcome[Any]]] = {}

    async def fetch_with_cache(
        self,
        key: str,
        operation: Callable[[], Awaitable[T]],
        ttl_success: float | None = None,
        ttl_failure: float | None = None,
    ) -> FetchOutcome[T]:
        """Return the cached outcome for ``key`` or fetch and cache it.

        Never raises for a failed operation; the failure is returned as an
        unavailable outcome.

        Args:
            key: Cache key
            operation: Zero-argument coroutine function doing the lookup
            ttl_success: TTL for a successful outcome (default: fetcher's)
            ttl_failure: TTL for a failed outcome (default: fetcher's)

        Returns:
            FetchOutcome for the key
        """
        log = get_contextual_logger("fetch", key=key)

        cached = self.cache.get(key)
        if cached is not None:
            log.debug("Cache HIT for %s", key)
            return cached.cached()

        pending = self._in_flight.get(key)
        if pending is not None:
            log.debug("Cache MISS for %s - joining in-flight fetch", key)
            return await asyncio.shield(pending)

        log.debug("Cache MISS for %s - scheduling fetch", key)

        try:
            future = self.scheduler.submit(operation, label=key)
        except SchedulerError as e:
            # backpressure or shutdown: report, but don't pin the failure in cache
            log.warning("Fetch for %s rejected: %s", key, e)
            return FetchOutcome(key=key, error=str(e))

        loader = asyncio.ensure_future(self._complete(key, future, ttl_success, ttl_failure))
        self._in_flight[key] = loader
        loader.add_done_callback(lambda done: self._forget(key, done))
        return await asyncio.shield(loader)

    async def _complete(
        self,
        key: str,
        future: Awaitable[T],
        ttl_success: float | None,
        ttl_failure: float | None,
    ) -> FetchOutcome[T]:
        """Await a scheduled lookup and cache its outcome."""
        log = get_contextual_logger("fetch", key=key)

        try:
            value = await future
        except SchedulerError as e:
            log.warning("Fetch for %s rejected: %s", key, e)
            return FetchOutcome(key=key, error=str(e))
        except Exception as e:
            outcome: FetchOutcome[T] = FetchOutcome(key=key, error=str(e) or type(e).__name__)
            ttl = self.ttl_failure if ttl_failure is None else ttl_failure
            self.cache.set(key, outcome, ttl)
            log.warning("Fetch for %s failed, caching failure for %.0fs: %s", key, ttl, e)
            return outcome

        outcome = FetchOutcome(key=key, value=value)
        ttl = self.ttl_success if ttl_success is None else ttl_success
        self.cache.set(key, outcome, ttl)
        log.debug("Cached result for %s (%.0fs)", key, ttl)
        return outcome

    def _forget(self, key: str, loader: asyncio.Future[Any]) -> None:
        if self._in_flight.get(key) is loader:
            del self._in_flight[key]

    async def fetch_many(
        self,
        requests: Mapping[str, Callable[[], Awaitable[T]]],
        ttl_success: float | None = None,
        ttl_failure: float | None = None,
    ) -> dict[str, FetchOutcome[T]]:
        """Run ``fetch_with_cache`` for every key concurrently.

        Args:
            requests: Mapping of cache key to lookup operation

        Returns:
            Outcomes keyed like ``requests``, in the same order
        """
        keys = list(requests)
        outcomes = await asyncio.gather(
            *(
                self.fetch_with_cache(key, requests[key], ttl_success, ttl_failure)
                for key in keys
            )
        )
        return dict(zip(keys, outcomes))

    def invalidate(self, key: str) -> bool:
        """Drop a cached outcome so the next lookup goes to the network."""
        return self.cache.delete(key)

    def stats(self) -> dict[str, Any]:
        return {
            "ttl_success_seconds": self.ttl_success,
            "ttl_failure_seconds": self.ttl_failure,
            "cache": self.cache.stats(),
            "scheduler": self.scheduler.stats(),
        }
