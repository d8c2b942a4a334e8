"""Core modules for the draft bot."""

from .config import BotSettings, get_settings
from .logging import setup_logging
from .messenger import DiscordMessenger

__all__ = [
    # Config
    "BotSettings",
    "get_settings",
    # Services
    "DiscordMessenger",
    # Logging
    "setup_logging",
]
