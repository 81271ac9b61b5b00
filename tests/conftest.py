"""
Pytest configuration and shared fixtures for SquadStats tests.
"""

import os

# Keep a developer's real key out of test requests
os.environ.pop("FORTNITE_API_KEY", None)

import logging
from typing import Any, Callable

import httpx
import pytest


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by CLI runs so they don't outlive captured streams."""
    yield
    logging.getLogger("squadstats").handlers.clear()


def _player_payload(
    name: str,
    wins: int = 10,
    kills: int = 120,
    deaths: int = 60,
    matches: int = 80,
    kd: float = 2.0,
    win_rate: float = 12.5,
    score: int = 5000,
) -> dict[str, Any]:
    return {
        "status": 200,
        "data": {
            "account": {"id": f"id-{name}", "name": name},
            "battlePass": {"level": 42, "progress": 17},
            "image": None,
            "stats": {
                "all": {
                    "overall": {
                        "score": score,
                        "scorePerMin": 3.5,
                        "scorePerMatch": 62.5,
                        "wins": wins,
                        "top3": 4,
                        "top5": 6,
                        "top6": 7,
                        "top10": 11,
                        "top12": 13,
                        "top25": 30,
                        "kills": kills,
                        "killsPerMin": 0.2,
                        "killsPerMatch": 1.5,
                        "deaths": deaths,
                        "kd": kd,
                        "matches": matches,
                        "winRate": win_rate,
                        "minutesPlayed": 900,
                        "playersOutlived": 2500,
                        "lastModified": "2024-05-01T12:00:00Z",
                    }
                }
            },
        },
    }


@pytest.fixture
def player_payload() -> Callable[..., dict[str, Any]]:
    """Factory for a successful /stats/br/v2 response body."""
    return _player_payload


@pytest.fixture
def stats_api():
    """Mock statistics API.

    Returns an object with a ``transport`` for StatsApiClient, a
    ``calls`` list of requested player names, and a ``failing`` set of
    names answered with HTTP 500.
    """

    class _StatsApi:
        def __init__(self) -> None:
            self.calls: list[str] = []
            self.failing: set[str] = set()
            self.missing: set[str] = set()
            self.headers: list[httpx.Headers] = []
            self.transport = httpx.MockTransport(self.handle)

        def handle(self, request: httpx.Request) -> httpx.Response:
            name = request.url.params["name"]
            self.calls.append(name)
            self.headers.append(request.headers)
            if name in self.failing:
                return httpx.Response(500, json={"status": 500, "error": "boom"})
            if name in self.missing:
                return httpx.Response(200, json={"status": 404, "error": "not found"})
            return httpx.Response(200, json=_player_payload(name))

    return _StatsApi()
