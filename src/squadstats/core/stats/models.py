"""
Player statistics models and team aggregation.

Field names follow the API's camelCase payload through aliases; unknown
fields are ignored and missing counters default to zero.
"""

from __future__ import annotations

import math
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Account(_ApiModel):
    id: str = ""
    name: str = ""


class BattlePass(_ApiModel):
    level: int = 0
    progress: int = 0


class OverallStats(_ApiModel):
    """Lifetime totals across all input types and modes."""

    score: int = 0
    score_per_min: float = Field(default=0.0, alias="scorePerMin")
    score_per_match: float = Field(default=0.0, alias="scorePerMatch")
    wins: int = 0
    top3: int = 0
    top5: int = 0
    top6: int = 0
    top10: int = 0
    top12: int = 0
    top25: int = 0
    kills: int = 0
    kills_per_min: float = Field(default=0.0, alias="killsPerMin")
    kills_per_match: float = Field(default=0.0, alias="killsPerMatch")
    deaths: int = 0
    kd: float = 0.0
    matches: int = 0
    win_rate: float = Field(default=0.0, alias="winRate")
    minutes_played: int = Field(default=0, alias="minutesPlayed")
    players_outlived: int = Field(default=0, alias="playersOutlived")
    last_modified: str | None = Field(default=None, alias="lastModified")


class _AllStats(_ApiModel):
    overall: OverallStats | None = None


class _StatsGroups(_ApiModel):
    all: _AllStats | None = None


class PlayerStats(_ApiModel):
    """Payload of ``/stats/br/v2`` for one player."""

    account: Account = Field(default_factory=Account)
    battle_pass: BattlePass = Field(default_factory=BattlePass, alias="battlePass")
    image: str | None = None
    stats: _StatsGroups = Field(default_factory=_StatsGroups)

    @property
    def overall(self) -> OverallStats | None:
        if self.stats.all is None:
            return None
        return self.stats.all.overall


class ApiResponse(_ApiModel):
    """Envelope returned by the statistics API."""

    status: int
    data: PlayerStats | None = None


class TeamTotals(BaseModel):
    """Aggregated team statistics."""

    total_wins: int = 0
    total_kills: int = 0
    total_matches: int = 0
    total_score: int = 0
    average_kd: float = 0.0
    average_win_rate: float = 0.0
    valid_players: int = 0


def calculate_team_totals(team_stats: Mapping[str, PlayerStats | None]) -> TeamTotals:
    """Sum counters over all players with stats.

    Averages are taken over players with a positive K/D; win rate is
    divided by that same count.
    """
    totals = TeamTotals()
    kd_sum = 0.0
    win_rate_sum = 0.0

    for stats in team_stats.values():
        overall = stats.overall if stats is not None else None
        if overall is None:
            continue

        totals.total_wins += overall.wins
        totals.total_kills += overall.kills
        totals.total_matches += overall.matches
        totals.total_score += overall.score

        if overall.kd > 0:
            kd_sum += overall.kd
            totals.valid_players += 1

        if overall.win_rate > 0:
            win_rate_sum += overall.win_rate

    if totals.valid_players > 0:
        totals.average_kd = kd_sum / totals.valid_players
        totals.average_win_rate = win_rate_sum / totals.valid_players

    return totals


# =============================================================================
# Display formatting
# =============================================================================


def format_number(num: float) -> str:
    """Abbreviate large counts: 1234 -> '1.2K', 2500000 -> '2.5M'."""
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"{num / 1_000:.1f}K"
    if float(num).is_integer():
        return str(int(num))
    return str(num)


def format_kd(kd: float) -> str:
    return f"{kd:.2f}"


def format_win_rate(win_rate: float) -> str:
    return f"{win_rate:.1f}%"


def estimated_load_time(team_size: int, requests_per_second: float) -> str:
    """Rough time to load a whole team at the configured request rate."""
    if requests_per_second <= 0:
        raise ValueError("requests_per_second must be positive")
    return f"~{math.ceil(team_size / requests_per_second)}s"
