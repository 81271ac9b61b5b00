"""
Logging infrastructure for SquadStats.

Provides:
- Structured JSON logging for file output
- Rich console output for terminal
- Contextual logging with cache key/player context
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson
from rich.text import Text

if TYPE_CHECKING:
    from rich.console import Console


CONTEXT_FIELDS = ("key", "player", "label", "wait_seconds", "status_code")


def json_dumps(obj: Any) -> str:
    return orjson.dumps(obj, default=str).decode("utf-8")


# =============================================================================
# JSON Formatter for File Logging
# =============================================================================


class JSONFormatter(logging.Formatter):
    """Format log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in CONTEXT_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json_dumps(log_data)


# =============================================================================
# Rich Console Handler
# =============================================================================


LEVEL_STYLES = {
    logging.DEBUG: "dim",
    logging.INFO: "default",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "bold red",
}


class RichConsoleHandler(logging.Handler):
    """Handler that outputs to a Rich console, prefixed with player or key.

    Records are rendered as ``Text`` rather than markup, so player names and
    error messages containing brackets print verbatim.
    """

    def __init__(self, console: "Console | None" = None, level: int = logging.INFO):
        super().__init__(level)
        if console is None:
            from rich.console import Console
            console = Console(stderr=True)
        self.console = console

    def render(self, record: logging.LogRecord) -> Text:
        text = Text()
        context = getattr(record, "player", None) or getattr(record, "key", None)
        if context:
            text.append(f"[{context}] ", style="cyan")
        text.append(self.format(record), style=LEVEL_STYLES.get(record.levelno, "default"))
        return text

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.console.print(self.render(record), highlight=False)

            if record.exc_info:
                self.console.print_exception()

        except Exception:
            self.handleError(record)


# =============================================================================
# Logger Configuration
# =============================================================================


def setup_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    json_format: bool = True,
    rich_console: bool = True,
) -> logging.Logger:
    """Set up logging for SquadStats.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Path to log file (optional)
        json_format: Use JSON format for file logs
        rich_console: Use Rich for console output

    Returns:
        Root logger for squadstats
    """
    logger = logging.getLogger("squadstats")
    logger.setLevel(getattr(logging, level.upper()))

    logger.handlers.clear()

    if rich_console:
        console_handler: logging.Handler = RichConsoleHandler()
        console_handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
    console_handler.setLevel(getattr(logging, level.upper()))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)

        if json_format:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )

        logger.addHandler(file_handler)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (will be prefixed with 'squadstats.')

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"squadstats.{name}")
    return logging.getLogger("squadstats")


# =============================================================================
# Contextual Logging Adapter
# =============================================================================


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that attaches cache key and player to log records."""

    def __init__(
        self,
        logger: logging.Logger,
        key: str | None = None,
        player: str | None = None,
    ):
        super().__init__(logger, {})
        self.key = key
        self.player = player

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})

        if self.key:
            extra["key"] = self.key
        if self.player:
            extra["player"] = self.player

        kwargs["extra"] = extra
        return msg, kwargs


def get_contextual_logger(
    name: str | None = None,
    key: str | None = None,
    player: str | None = None,
) -> ContextualLogger:
    """Get a contextual logger with cache key/player context."""
    return ContextualLogger(get_logger(name), key=key, player=player)
