"""
Exception hierarchy for SquadStats.

Operation failures are isolated per task by the scheduler and turned
into "unavailable" outcomes by the orchestrator; these types describe
what went wrong.
"""

from __future__ import annotations


class SquadStatsError(Exception):
    """Base exception for all SquadStats errors."""


class StatsApiError(SquadStatsError):
    """Error talking to the statistics API."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class SchedulerError(SquadStatsError):
    """Base exception for request scheduler errors."""


class SchedulerClosedError(SchedulerError):
    """Scheduler has been shut down and no longer accepts work."""


class QueueFullError(SchedulerError):
    """Pending queue reached its configured bound."""

    def __init__(self, message: str, max_queue_size: int):
        super().__init__(message)
        self.max_queue_size = max_queue_size
