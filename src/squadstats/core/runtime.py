"""
Runtime wiring.

Builds one cache, one scheduler and one API client per process and hands
them to the stats service. Nothing here is a module-level global; tests
and callers construct their own runtime.
"""

from __future__ import annotations

from typing import Any

from squadstats.core.cache import TTLCache
from squadstats.core.config.models import AppConfig
from squadstats.core.fetch.orchestrator import CachedFetcher
from squadstats.core.fetch.scheduler import WindowedScheduler
from squadstats.core.logging import get_logger
from squadstats.core.stats.client import StatsApiClient
from squadstats.core.stats.service import TeamStatsService

logger = get_logger("runtime")


class StatsRuntime:
    """Owns the shared cache, scheduler and HTTP client.

    Usage:
        async with StatsRuntime.from_config(config) as runtime:
            outcome = await runtime.service.get_player_stats("RootByte")
    """

    def __init__(
        self,
        cache: TTLCache,
        scheduler: WindowedScheduler,
        client: StatsApiClient,
        service: TeamStatsService,
    ):
        self.cache = cache
        self.scheduler = scheduler
        self.client = client
        self.service = service

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        client: StatsApiClient | None = None,
    ) -> "StatsRuntime":
        """Construct a runtime from application configuration.

        Args:
            config: Loaded application configuration
            client: Pre-built API client (default: built from config.api)
        """
        cache = TTLCache(
            default_ttl=config.cache.success_ttl_seconds,
            sweep_interval=config.cache.sweep_interval_seconds,
        )
        scheduler = WindowedScheduler(
            max_per_window=config.rate_limit.max_per_window,
            window_seconds=config.rate_limit.window_seconds,
            safety_margin=config.rate_limit.safety_margin_seconds,
            mode=config.rate_limit.mode,
            max_queue_size=config.rate_limit.max_queue_size,
        )
        if client is None:
            client = StatsApiClient(
                base_url=config.api.base_url,
                api_key=config.api.api_key,
                timeout=config.api.timeout_seconds,
            )
        if not client.api_key:
            logger.warning("No API key configured; requests will be unauthenticated")

        fetcher = CachedFetcher(
            cache,
            scheduler,
            ttl_success=config.cache.success_ttl_seconds,
            ttl_failure=config.cache.failure_ttl_seconds,
        )
        service = TeamStatsService(fetcher, client, config.team.members)
        return cls(cache, scheduler, client, service)

    async def start(self) -> None:
        self.cache.start()

    async def aclose(self) -> None:
        """Shut down in dependency order: scheduler, sweeper, HTTP client."""
        try:
            await self.scheduler.aclose()
            await self.cache.stop()
        finally:
            await self.client.aclose()

    async def __aenter__(self) -> "StatsRuntime":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()
