"""Tests for stats models, team aggregation and display formatting."""

import pytest

from squadstats.core.stats.models import (
    PlayerStats,
    calculate_team_totals,
    estimated_load_time,
    format_kd,
    format_number,
    format_win_rate,
)


def test_player_stats_parses_camel_case(player_payload):
    stats = PlayerStats.model_validate(player_payload("RootByte")["data"])

    assert stats.account.id == "id-RootByte"
    assert stats.overall.score_per_match == 62.5
    assert stats.overall.players_outlived == 2500
    assert stats.overall.last_modified == "2024-05-01T12:00:00Z"


def test_player_stats_tolerates_sparse_payload():
    stats = PlayerStats.model_validate({"account": {"name": "x"}, "extra": True})

    assert stats.overall is None
    assert stats.battle_pass.level == 0


def test_team_totals(player_payload):
    team = {
        "a": PlayerStats.model_validate(player_payload("a", wins=10, kills=100, matches=50, kd=2.0, win_rate=20.0, score=1000)["data"]),
        "b": PlayerStats.model_validate(player_payload("b", wins=5, kills=40, matches=30, kd=1.0, win_rate=10.0, score=500)["data"]),
        "c": None,
    }

    totals = calculate_team_totals(team)

    assert totals.total_wins == 15
    assert totals.total_kills == 140
    assert totals.total_matches == 80
    assert totals.total_score == 1500
    assert totals.valid_players == 2
    assert totals.average_kd == pytest.approx(1.5)
    assert totals.average_win_rate == pytest.approx(15.0)


def test_team_totals_counts_players_without_kd_in_sums_only(player_payload):
    team = {
        "new": PlayerStats.model_validate(player_payload("new", wins=0, kills=3, kd=0.0, win_rate=0.0)["data"]),
    }

    totals = calculate_team_totals(team)

    assert totals.total_kills == 3
    assert totals.valid_players == 0
    assert totals.average_kd == 0.0


def test_team_totals_empty():
    assert calculate_team_totals({}).valid_players == 0


@pytest.mark.parametrize(
    "value,expected",
    [
        (999, "999"),
        (1000, "1.0K"),
        (1234, "1.2K"),
        (2_500_000, "2.5M"),
        (0, "0"),
    ],
)
def test_format_number(value, expected):
    assert format_number(value) == expected


def test_format_kd_and_win_rate():
    assert format_kd(1.756) == "1.76"
    assert format_win_rate(12.345) == "12.3%"


def test_estimated_load_time():
    assert estimated_load_time(6, 3) == "~2s"
    assert estimated_load_time(7, 3) == "~3s"
    with pytest.raises(ValueError):
        estimated_load_time(6, 0)
