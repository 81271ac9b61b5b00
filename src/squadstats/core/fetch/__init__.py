"""Fetch utilities - windowed scheduling and cache-first orchestration."""

from .orchestrator import CachedFetcher, FetchOutcome
from .scheduler import ScheduledTask, WindowedScheduler

__all__ = [
    "CachedFetcher",
    "FetchOutcome",
    "ScheduledTask",
    "WindowedScheduler",
]
