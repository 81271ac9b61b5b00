"""Core client components - cache, scheduler, orchestrator, stats API."""

from .cache import CacheEntry, TTLCache
from .errors import (
    QueueFullError,
    SchedulerClosedError,
    SchedulerError,
    SquadStatsError,
    StatsApiError,
)

__all__ = [
    "CacheEntry",
    "TTLCache",
    "QueueFullError",
    "SchedulerClosedError",
    "SchedulerError",
    "SquadStatsError",
    "StatsApiError",
]
