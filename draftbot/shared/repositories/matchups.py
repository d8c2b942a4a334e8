"""Repository for the Matchups and Matches sheets."""

from __future__ import annotations

import logging

from draftbot.shared.models.draft_log import MatchRecord
from draftbot.shared.models.matchup import MatchupRow

from .base import SheetRepository

logger = logging.getLogger(__name__)


class MatchupRepository(SheetRepository):
    """Bracket rows. Every read goes back to the sheet; nothing is cached."""

    SHEET = "Matchups"
    HEADERS = (
        "Draft Name",
        "Round",
        "Match #",
        "Player 1",
        "Player 2",
        "Winner",
        "Match Result",
    )

    async def list_for_draft(self, draft_name: str) -> list[MatchupRow]:
        """All well-formed rows for a draft (draft name compared case-insensitively)."""
        values = await self.read_data()
        wanted = draft_name.strip().lower()
        rows: list[MatchupRow] = []
        skipped = 0
        for index, raw in enumerate(values):
            row = MatchupRow.from_values(raw, sheet_row=index + 2)
            if row is None:
                if any(str(cell).strip() for cell in raw):
                    skipped += 1
                continue
            if row.draft_name.lower() == wanted:
                rows.append(row)
        if skipped:
            logger.debug(f"Skipped {skipped} malformed Matchups rows")
        return rows

    async def get_row(self, sheet_row: int) -> MatchupRow | None:
        """Re-read a single row by its sheet position."""
        values = await self.store.read(
            self.spreadsheet_id,
            self.range(f"A{sheet_row}:{self.last_column}{sheet_row}"),
            "UNFORMATTED_VALUE",
        )
        if not values:
            return None
        return MatchupRow.from_values(values[0], sheet_row=sheet_row)

    async def add_round(self, rows: list[MatchupRow]) -> None:
        await self.append_rows([row.to_values() for row in rows])

    async def set_result(self, sheet_row: int, winner_id: str, result: str) -> None:
        """Fill the Winner and Match Result columns of one row."""
        await self.store.overwrite(
            self.spreadsheet_id,
            self.range(f"F{sheet_row}:G{sheet_row}"),
            [[winner_id, result]],
        )


class MatchRepository(SheetRepository):
    """Append-only log of reported matches."""

    SHEET = "Matches"
    HEADERS = ("Winner", "Loser", "Result", "Draft Name", "Bot Handled")

    async def record(self, match: MatchRecord) -> None:
        await self.append_rows([match.to_values()])
