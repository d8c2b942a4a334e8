"""Data models for the Draft Log, Matches and Player Database sheets."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class DraftLogEntry:
    """One pod member: Player Name, Discord ID, Draft Name."""

    player_name: str
    discord_id: str
    draft_name: str

    def to_values(self) -> list[str]:
        return [self.player_name, self.discord_id, self.draft_name]


@dataclass
class MatchRecord:
    """One reported match: Winner, Loser, Result, Draft Name, Bot Handled."""

    winner_id: str
    loser_id: str
    result: str
    draft_name: str
    bot_handled: bool = True

    def to_values(self) -> list[str]:
        return [
            self.winner_id,
            self.loser_id,
            self.result,
            self.draft_name,
            "Yes" if self.bot_handled else "No",
        ]


@dataclass
class Player:
    """Player Database entry: Name, Discord ID."""

    name: str
    discord_id: str

    def to_values(self) -> list[str]:
        return [self.name, self.discord_id]
