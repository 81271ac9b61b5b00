"""
Pydantic configuration models for SquadStats.

These models provide type-safe configuration with validation for:
- Statistics API access
- Cache lifetimes and sweeping
- Request window limits
- Logging
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Enums
# =============================================================================


class AdmissionMode(str, Enum):
    """How the scheduler treats admitted tasks."""

    SEQUENTIAL = "sequential"  # await completion before admitting the next
    CONCURRENT = "concurrent"  # admit up to the window cap without waiting


DEFAULT_TEAM_MEMBERS = [
    "RootByte",
    "neto-_FTW",
    "Intercêptor",
    "FTW_SAITAMA",
    "Rey Bjorn FTW",
    "ValkyFTW",
]


# =============================================================================
# API Configuration
# =============================================================================


class ApiConfig(BaseModel):
    """Statistics API endpoint and credential."""

    base_url: str = Field(
        default="https://fortnite-api.com/v2",
        description="Base URL of the statistics API",
    )
    api_key: str = Field(
        default="",
        description="Static credential sent in the Authorization header",
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120.0,
        description="Per-request timeout in seconds",
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


# =============================================================================
# Cache Configuration
# =============================================================================


class CacheConfig(BaseModel):
    """Result cache lifetimes."""

    success_ttl_seconds: float = Field(
        default=600.0,
        gt=0,
        description="TTL for successful lookups (10 minutes)",
    )
    failure_ttl_seconds: float = Field(
        default=120.0,
        gt=0,
        description="TTL for failed lookups (2 minutes)",
    )
    sweep_interval_seconds: float = Field(
        default=1800.0,
        gt=0,
        description="Interval of the background expiry sweep (30 minutes)",
    )

    @field_validator("failure_ttl_seconds")
    @classmethod
    def failure_ttl_lte_success(cls, v: float, info: Any) -> float:
        """Failed lookups must not outlive successful ones."""
        success_ttl = info.data.get("success_ttl_seconds")
        if success_ttl is not None and v > success_ttl:
            raise ValueError("failure_ttl_seconds must be <= success_ttl_seconds")
        return v

    @field_validator("sweep_interval_seconds")
    @classmethod
    def sweep_longer_than_ttl(cls, v: float, info: Any) -> float:
        """Sweeping must not contend with ordinary lazy expiry."""
        success_ttl = info.data.get("success_ttl_seconds")
        if success_ttl is not None and v <= success_ttl:
            raise ValueError("sweep_interval_seconds must be > success_ttl_seconds")
        return v


# =============================================================================
# Rate Limit Configuration
# =============================================================================


class RateLimitConfig(BaseModel):
    """Sliding window admission settings."""

    max_per_window: int = Field(
        default=3,
        ge=1,
        le=1000,
        description="Max admissions in any trailing window",
    )
    window_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Length of the sliding window in seconds",
    )
    safety_margin_seconds: float = Field(
        default=0.01,
        ge=0,
        le=1.0,
        description="Extra sleep added to every window wait",
    )
    mode: AdmissionMode = Field(
        default=AdmissionMode.SEQUENTIAL,
        description="Await each task before admitting the next, or run admitted tasks concurrently",
    )
    max_queue_size: int | None = Field(
        default=None,
        ge=1,
        description="Reject submissions beyond this many pending tasks (unbounded if unset)",
    )


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    file: Path | None = Field(
        default=None,
        description="Log file path",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for file logs",
    )
    rich_console: bool = Field(
        default=True,
        description="Use Rich for console output",
    )

    @field_validator("level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


# =============================================================================
# Team Configuration
# =============================================================================


class TeamConfig(BaseModel):
    """Team roster."""

    name: str = Field(default="FTW", description="Team display name")
    members: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TEAM_MEMBERS),
        description="Player names looked up by the team command",
    )

    @field_validator("members")
    @classmethod
    def members_not_blank(cls, v: list[str]) -> list[str]:
        members = [m.strip() for m in v if m and m.strip()]
        if not members:
            raise ValueError("Team must have at least one member")
        return members


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Root application configuration.

    This is the main configuration object loaded from app.yaml.
    """

    api: ApiConfig = Field(default_factory=ApiConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    team: TeamConfig = Field(default_factory=TeamConfig)
