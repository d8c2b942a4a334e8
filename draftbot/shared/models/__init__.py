"""Shared data models for draftbot."""

from .draft_log import DraftLogEntry, MatchRecord, Player
from .matchup import (
    MATCH_RESULTS,
    DraftStatus,
    MatchStatus,
    MatchupRow,
    ReportResult,
    RoundResult,
)

__all__ = [
    "MATCH_RESULTS",
    "DraftLogEntry",
    "DraftStatus",
    "MatchRecord",
    "MatchStatus",
    "MatchupRow",
    "Player",
    "ReportResult",
    "RoundResult",
]
