"""Logging configuration"""

import logging

from rich.console import Console
from rich.logging import RichHandler

DATE_FORMAT = "[%Y-%m-%d %H:%M:%S]"

# Libraries that are chatty at INFO
NOISY_LOGGERS = ("discord", "discord.http", "discord.gateway", "httpx", "httpcore", "google.auth")


def setup_logging(level_name: str = "INFO") -> None:
    """Route every logger through one RichHandler.

    Log messages may use Rich markup, e.g. ``[green]Loaded[/green]``.
    """
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = RichHandler(
        console=Console(width=120),
        show_path=False,
        markup=True,
        rich_tracebacks=True,
        tracebacks_width=120,
    )
    handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt=DATE_FORMAT))

    logging.basicConfig(level=level, handlers=[handler], force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
