"""
SquadStats - Rate-limited, cached client for player statistics.

Fetches per-player stats for a gaming team from a third-party API
without exceeding its request window, and caches results in memory.
"""

__version__ = "0.1.0"
__app_name__ = "squadstats"
