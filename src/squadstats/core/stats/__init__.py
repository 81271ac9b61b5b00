"""Player statistics - API client, models and team service."""

from .client import StatsApiClient
from .models import (
    PlayerStats,
    TeamTotals,
    calculate_team_totals,
    estimated_load_time,
    format_kd,
    format_number,
    format_win_rate,
)
from .service import TeamStatsService, player_cache_key

__all__ = [
    "StatsApiClient",
    "PlayerStats",
    "TeamTotals",
    "TeamStatsService",
    "calculate_team_totals",
    "estimated_load_time",
    "format_kd",
    "format_number",
    "format_win_rate",
    "player_cache_key",
]
