"""Configuration loading and validation."""

from .models import (
    # Enums
    AdmissionMode,
    # Config models
    AppConfig,
    ApiConfig,
    CacheConfig,
    RateLimitConfig,
    LoggingConfig,
    TeamConfig,
)
from .loader import ConfigError, load_app_config, validate_config_file

__all__ = [
    # Enums
    "AdmissionMode",
    # Config models
    "AppConfig",
    "ApiConfig",
    "CacheConfig",
    "RateLimitConfig",
    "LoggingConfig",
    "TeamConfig",
    # Loaders
    "ConfigError",
    "load_app_config",
    "validate_config_file",
]
