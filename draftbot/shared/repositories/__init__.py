"""Sheet repositories for draftbot."""

from .base import SheetRepository
from .matchups import MatchRepository, MatchupRepository
from .players import DraftLogRepository, PlayerRepository

__all__ = [
    "DraftLogRepository",
    "MatchRepository",
    "MatchupRepository",
    "PlayerRepository",
    "SheetRepository",
]
