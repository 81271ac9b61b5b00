"""CLI command modules."""

from . import config, stats

__all__ = [
    "config",
    "stats",
]
