"""Data models for the Matchups sheet and bracket results."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

MATCH_RESULTS = ("2-0", "2-1")


def _cell(values: Sequence[Any], index: int) -> str:
    if index >= len(values) or values[index] is None:
        return ""
    return str(values[index]).strip()


def _parse_int(value: str) -> int | None:
    """Parse a sheet number that may come back as "2", 2 or 2.0."""
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        pass
    try:
        number = float(value)
    except ValueError:
        return None
    return int(number) if number.is_integer() else None


@dataclass
class MatchupRow:
    """One bracket match: Draft Name, Round, Match #, Player 1, Player 2, Winner, Match Result."""

    draft_name: str
    round: int
    match_num: int
    p1: str
    p2: str
    winner: str = ""
    result: str = ""
    sheet_row: int | None = None  # 1-based row in the sheet, None until persisted

    @classmethod
    def from_values(cls, values: Sequence[Any], sheet_row: int | None = None) -> MatchupRow | None:
        """Parse a raw sheet row; returns None for malformed rows.

        The Sheets API drops trailing empty cells, so an open match comes back
        with only five columns.
        """
        if not values or len(values) < 5:
            return None
        round_num = _parse_int(_cell(values, 1))
        match_num = _parse_int(_cell(values, 2))
        if round_num is None or match_num is None:
            return None
        draft_name = _cell(values, 0)
        p1, p2 = _cell(values, 3), _cell(values, 4)
        if not draft_name or not p1 or not p2:
            return None
        return cls(
            draft_name=draft_name,
            round=round_num,
            match_num=match_num,
            p1=p1,
            p2=p2,
            winner=_cell(values, 5),
            result=_cell(values, 6),
            sheet_row=sheet_row,
        )

    def to_values(self) -> list[Any]:
        return [self.draft_name, self.round, self.match_num, self.p1, self.p2, self.winner, self.result]

    @property
    def completed(self) -> bool:
        return self.winner != ""

    @property
    def loser(self) -> str:
        return self.p2 if self.winner == self.p1 else self.p1

    def pairs(self, a: str, b: str) -> bool:
        """True when {a, b} is exactly this row's player pair."""
        return {self.p1, self.p2} == {a, b}


@dataclass
class MatchStatus:
    """Status of one match in the active round."""

    match_num: int
    p1: str
    p2: str
    completed: bool
    winner: str | None = None
    result: str | None = None


@dataclass
class DraftStatus:
    """Result of a bracket status query."""

    ok: bool
    round: int | None = None
    matches: list[MatchStatus] = field(default_factory=list)
    complete: bool = False
    error: str | None = None


@dataclass
class ReportResult:
    """Outcome of a match report."""

    ok: bool
    error: str | None = None
    round_created: int | None = None
    complete: bool = False
    warning: str | None = None  # result stored, but the next round could not be created


@dataclass
class RoundResult:
    """Outcome of materialising a bracket round."""

    ok: bool
    round: int | None = None
    rows: list[MatchupRow] = field(default_factory=list)
    error: str | None = None
