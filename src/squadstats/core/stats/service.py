"""
Team stats service.

Player lookups go through the cached fetcher, so every network call is
rate limited by the shared scheduler and repeated lookups are served
from memory.
"""

from __future__ import annotations

from typing import Any, Sequence

from squadstats.core.fetch.orchestrator import CachedFetcher, FetchOutcome
from squadstats.core.logging import get_logger

from .client import StatsApiClient
from .models import PlayerStats

logger = get_logger("stats.service")

TEAM_STATS_KEY = "all_team_stats"


def player_cache_key(name: str) -> str:
    return f"player_stats_{name}"


class TeamStatsService:
    """Cached access to player and team statistics."""

    def __init__(
        self,
        fetcher: CachedFetcher,
        client: StatsApiClient,
        team_members: Sequence[str],
    ):
        self.fetcher = fetcher
        self.client = client
        self.team_members = list(team_members)

    async def get_player_stats(self, name: str) -> FetchOutcome[PlayerStats]:
        """Stats for one player, from cache when fresh."""
        return await self.fetcher.fetch_with_cache(
            player_cache_key(name),
            lambda: self.client.fetch_player(name),
        )

    async def get_team_stats(self) -> dict[str, FetchOutcome[PlayerStats]]:
        """Stats for every team member, keyed by player name.

        The combined result is cached under its own key only when every
        member lookup succeeded; otherwise each member keeps its own
        (shorter) failure TTL.
        """
        cache = self.fetcher.cache
        cached = cache.get(TEAM_STATS_KEY)
        if cached is not None:
            logger.debug("Cache HIT for all team stats")
            return {name: outcome.cached() for name, outcome in cached.items()}

        logger.debug("Cache MISS for all team stats - fetching %d players", len(self.team_members))

        outcomes = await self.fetcher.fetch_many(
            {
                player_cache_key(name): (lambda name=name: self.client.fetch_player(name))
                for name in self.team_members
            }
        )
        team = {name: outcomes[player_cache_key(name)] for name in self.team_members}

        if all(outcome.ok for outcome in team.values()):
            cache.set(TEAM_STATS_KEY, team, self.fetcher.ttl_success)
            logger.info("Cached all team stats")
        else:
            failed = [name for name, outcome in team.items() if not outcome.ok]
            logger.warning("Team stats incomplete, not caching aggregate (failed: %s)", ", ".join(failed))

        return team

    async def refresh_player(self, name: str) -> FetchOutcome[PlayerStats]:
        """Drop cached stats for a player and fetch them again."""
        logger.info("Force refreshing stats for %s", name, extra={"player": name})
        self.fetcher.invalidate(player_cache_key(name))
        self.fetcher.invalidate(TEAM_STATS_KEY)
        return await self.get_player_stats(name)

    async def preload(self) -> None:
        """Warm the cache with the whole team."""
        logger.info("Preloading team stats...")
        await self.get_team_stats()
        logger.info("Team stats preloaded")

    def clear_cache(self) -> None:
        self.fetcher.cache.clear()
        logger.info("Cache cleared manually")

    def cache_info(self) -> dict[str, Any]:
        """Cache size and configured durations."""
        return {
            "size": self.fetcher.cache.size(),
            "success_ttl_seconds": self.fetcher.ttl_success,
            "failure_ttl_seconds": self.fetcher.ttl_failure,
            "sweep_interval_seconds": self.fetcher.cache.sweep_interval,
        }
