"""
SquadStats CLI - Main entry point.

Looks up team statistics through the rate-limited, cached client.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.traceback import install as install_rich_traceback

from squadstats import __app_name__, __version__

# Load environment variables (FORTNITE_API_KEY) from .env if present
load_dotenv()

install_rich_traceback(show_locals=False, width=120)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name=__app_name__,
    help="Rate-limited, cached team statistics client",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """SquadStats - Team statistics client."""
    pass


# =============================================================================
# Import and register subcommand modules
# =============================================================================

from .commands import config, stats  # noqa: E402

app.add_typer(stats.app, name="stats", help="Look up player and team statistics")
app.add_typer(config.app, name="config", help="Inspect and validate configuration")


# =============================================================================
# Init Command
# =============================================================================


DEFAULT_APP_CONFIG = """\
# SquadStats Configuration

api:
  base_url: https://fortnite-api.com/v2
  api_key: ${FORTNITE_API_KEY}
  timeout_seconds: 10

# Result cache lifetimes (seconds)
cache:
  success_ttl_seconds: 600
  failure_ttl_seconds: 120
  sweep_interval_seconds: 1800

# Sliding window limit of the statistics API
rate_limit:
  max_per_window: 3
  window_seconds: 1.0
  safety_margin_seconds: 0.01
  mode: sequential

logging:
  level: INFO
  json_format: true
  rich_console: true

team:
  name: FTW
  members:
    - RootByte
    - neto-_FTW
    - Intercêptor
    - FTW_SAITAMA
    - Rey Bjorn FTW
    - ValkyFTW
"""


@app.command()
def init(
    path: Path = typer.Option(
        Path("configs/app.yaml"),
        "--path",
        "-p",
        help="Where to write the configuration",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Write a default configuration file."""
    if path.exists() and not force:
        err_console.print(f"[yellow]{path} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_APP_CONFIG, encoding="utf-8")

    console.print(Panel.fit(
        f"[bold green]OK - wrote {path}[/bold green]\n\n"
        "Next steps:\n"
        "  1. Set [cyan]FORTNITE_API_KEY[/cyan] in your environment or .env\n"
        "  2. Look up a player: [yellow]squadstats stats player <name>[/yellow]\n"
        "  3. Show the team: [yellow]squadstats stats team[/yellow]",
        title="[bold]Initialization Complete[/bold]",
        border_style="green",
    ))


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
