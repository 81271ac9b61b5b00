"""
Stats commands - look up players and the whole team.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from squadstats.core.config import AppConfig, ConfigError, load_app_config
from squadstats.core.fetch.orchestrator import FetchOutcome
from squadstats.core.logging import setup_logging
from squadstats.core.runtime import StatsRuntime
from squadstats.core.stats.models import (
    PlayerStats,
    calculate_team_totals,
    estimated_load_time,
    format_kd,
    format_number,
    format_win_rate,
)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="stats",
    help="Look up player and team statistics",
    no_args_is_help=True,
)

UNAVAILABLE = "[dim]unavailable[/dim]"


def load_config_or_exit(config_path: Path | None) -> AppConfig:
    """Load configuration, printing a readable error on failure."""
    try:
        config = load_app_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(1)

    setup_logging(
        level=config.logging.level,
        log_file=config.logging.file,
        json_format=config.logging.json_format,
        rich_console=config.logging.rich_console,
    )
    return config


def build_runtime(config: AppConfig) -> StatsRuntime:
    return StatsRuntime.from_config(config)


# =============================================================================
# Player Command
# =============================================================================


@app.command("player")
def player(
    name: str = typer.Argument(..., help="Player display name"),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to app.yaml"
    ),
) -> None:
    """Show lifetime stats for one player."""
    config = load_config_or_exit(config_path)
    outcome = asyncio.run(_fetch_player(config, name))

    if outcome.unavailable:
        reason = outcome.error or "no stats found"
        console.print(f"[yellow]{name}[/yellow]: {UNAVAILABLE} [dim]({reason})[/dim]")
        raise typer.Exit(1)

    console.print(_player_panel(name, outcome.value))


async def _fetch_player(config: AppConfig, name: str) -> FetchOutcome[PlayerStats]:
    async with build_runtime(config) as runtime:
        return await runtime.service.get_player_stats(name)


def _player_panel(name: str, stats: PlayerStats) -> Panel:
    overall = stats.overall
    if overall is None:
        body = UNAVAILABLE
    else:
        body = (
            f"Wins: [green]{format_number(overall.wins)}[/green]\n"
            f"K/D: [cyan]{format_kd(overall.kd)}[/cyan]\n"
            f"Win Rate: {format_win_rate(overall.win_rate)}\n"
            f"Kills: {format_number(overall.kills)}\n"
            f"Deaths: {format_number(overall.deaths)}\n"
            f"Matches: {format_number(overall.matches)}\n"
            f"Score: {format_number(overall.score)}\n"
            f"Battle Pass Level: {stats.battle_pass.level}"
        )
    return Panel.fit(body, title=f"[bold]{stats.account.name or name}[/bold]", border_style="cyan")


# =============================================================================
# Team Command
# =============================================================================


@app.command("team")
def team(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to app.yaml"
    ),
) -> None:
    """Show stats for every team member plus team totals."""
    config = load_config_or_exit(config_path)

    eta = estimated_load_time(
        len(config.team.members),
        config.rate_limit.max_per_window / config.rate_limit.window_seconds,
    )
    console.print(f"[dim]Loading {len(config.team.members)} players ({eta})...[/dim]")

    outcomes = asyncio.run(_fetch_team(config))

    table = Table(title=f"Team {config.team.name}", show_header=True, header_style="bold magenta")
    table.add_column("Player", style="cyan")
    table.add_column("Wins", justify="right")
    table.add_column("K/D", justify="right")
    table.add_column("Win Rate", justify="right")
    table.add_column("Kills", justify="right")
    table.add_column("Matches", justify="right")

    for name, outcome in outcomes.items():
        overall = outcome.value.overall if outcome.value is not None else None
        if outcome.unavailable or overall is None:
            table.add_row(name, UNAVAILABLE, "", "", "", "")
            continue
        table.add_row(
            name,
            format_number(overall.wins),
            format_kd(overall.kd),
            format_win_rate(overall.win_rate),
            format_number(overall.kills),
            format_number(overall.matches),
        )

    console.print(table)

    totals = calculate_team_totals({name: o.value for name, o in outcomes.items()})
    console.print(Panel.fit(
        f"Total Wins: [green]{format_number(totals.total_wins)}[/green]\n"
        f"Total Kills: {format_number(totals.total_kills)}\n"
        f"Total Matches: {format_number(totals.total_matches)}\n"
        f"Average K/D: [cyan]{format_kd(totals.average_kd)}[/cyan]\n"
        f"Average Win Rate: {format_win_rate(totals.average_win_rate)}\n"
        f"Players with stats: {totals.valid_players}/{len(outcomes)}",
        title="[bold]Team Totals[/bold]",
        border_style="green",
    ))


async def _fetch_team(config: AppConfig) -> dict[str, FetchOutcome[PlayerStats]]:
    async with build_runtime(config) as runtime:
        return await runtime.service.get_team_stats()
