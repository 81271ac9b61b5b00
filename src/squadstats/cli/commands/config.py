"""
Config commands - inspect and validate app.yaml.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.syntax import Syntax

from squadstats.core.config import ConfigError, load_app_config, validate_config_file
from squadstats.core.config.loader import DEFAULT_CONFIG_PATH

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="config",
    help="Inspect and validate configuration",
    no_args_is_help=True,
)


@app.command("show")
def show(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to app.yaml"
    ),
) -> None:
    """Print the effective configuration (API key masked)."""
    try:
        config = load_app_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    data = config.model_dump(mode="json")
    if data["api"]["api_key"]:
        data["api"]["api_key"] = "****" + data["api"]["api_key"][-4:]

    console.print(Syntax(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), "yaml"))


@app.command("validate")
def validate(
    config_path: Path = typer.Argument(DEFAULT_CONFIG_PATH, help="Path to app.yaml"),
) -> None:
    """Validate a configuration file."""
    errors = validate_config_file(config_path)
    if errors:
        err_console.print(f"[red]Invalid configuration:[/red] {config_path}")
        for error in errors:
            err_console.print(f"  - {error}")
        raise typer.Exit(1)

    console.print(f"[green]OK[/green] {config_path}")
