"""
Configuration loader for YAML files.

Loads and validates configuration from YAML files into Pydantic models.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from squadstats.core.errors import SquadStatsError

from .models import AppConfig

DEFAULT_CONFIG_PATH = Path("configs/app.yaml")
API_KEY_ENV_VAR = "FORTNITE_API_KEY"

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class ConfigError(SquadStatsError):
    """Configuration loading or validation error."""

    def __init__(self, message: str, path: Path | None = None, details: str | None = None):
        self.path = path
        self.details = details
        super().__init__(message)


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dictionary.

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}", path=path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML in {path}",
            path=path,
            details=str(e),
        ) from e
    except OSError as e:
        raise ConfigError(
            f"Cannot read {path}",
            path=path,
            details=str(e),
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {path} must be a mapping", path=path)
    return data


def _expand_env_vars(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand environment variables in string values.

    Supports ${VAR} and ${VAR:-default} syntax.
    """
    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2) or ""
        return os.environ.get(var_name, default)

    def expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _ENV_PATTERN.sub(replacer, value)
        elif isinstance(value, dict):
            return {k: expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [expand_value(item) for item in value]
        return value

    return expand_value(data)


def load_app_config(
    path: Path | str | None = None,
    expand_env: bool = True,
) -> AppConfig:
    """Load application configuration from YAML file.

    A missing file yields the defaults. When no API key is configured,
    it is taken from the FORTNITE_API_KEY environment variable.

    Args:
        path: Path to app.yaml (default: configs/app.yaml)
        expand_env: Whether to expand environment variables

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigError: If configuration is invalid
    """
    path = DEFAULT_CONFIG_PATH if path is None else Path(path)

    data = _load_yaml_file(path) if path.exists() else {}

    if expand_env:
        data = _expand_env_vars(data)

    try:
        config = AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid app configuration in {path}",
            path=path,
            details=str(e),
        ) from e

    if not config.api.api_key:
        config.api.api_key = os.environ.get(API_KEY_ENV_VAR, "")

    return config


def validate_config_file(path: Path | str) -> list[str]:
    """Validate a configuration file without building a runtime.

    Returns:
        List of validation error messages (empty if valid)
    """
    path = Path(path)
    errors: list[str] = []

    if not path.exists():
        errors.append(f"File not found: {path}")
        return errors

    try:
        data = _load_yaml_file(path)
    except ConfigError as e:
        errors.append(str(e))
        return errors

    try:
        AppConfig.model_validate(_expand_env_vars(data))
    except ValidationError as e:
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

    return errors
