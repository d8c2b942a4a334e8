"""Repository for the Draft Log and Player Database sheets."""

from __future__ import annotations

import logging

from draftbot.shared.models.draft_log import DraftLogEntry, Player

from .base import SheetRepository

logger = logging.getLogger(__name__)


class DraftLogRepository(SheetRepository):
    """One row per pod member, written when a queue fires."""

    SHEET = "Draft Log"
    HEADERS = ("Player Name", "Discord ID", "Draft Name")

    async def record_pod(self, entries: list[DraftLogEntry]) -> None:
        await self.append_rows([entry.to_values() for entry in entries])

    async def name_exists(self, draft_name: str) -> bool:
        """True if a pod was already logged under exactly this name."""
        values = await self.read_data("C", "C")
        return any(row and str(row[0]).strip() == draft_name for row in values)

    async def player_name(self, discord_id: str, draft_name: str) -> str | None:
        """Name a player was logged under for a pod (draft name case-insensitive)."""
        wanted = draft_name.lower()
        for row in await self.read_data():
            if len(row) < 3:
                continue
            name, row_id, row_draft = (str(cell).strip() for cell in row[:3])
            if row_id == discord_id and row_draft.lower() == wanted:
                return name or None
        return None


class PlayerRepository(SheetRepository):
    """Append-only Name / Discord ID directory."""

    SHEET = "Player Database"
    HEADERS = ("Name", "Discord ID")

    async def find(self, discord_id: str) -> Player | None:
        for row in await self.read_data():
            if len(row) >= 2 and str(row[1]).strip() == discord_id:
                return Player(name=str(row[0]).strip(), discord_id=discord_id)
        return None

    async def exists(self, discord_id: str) -> bool:
        values = await self.read_data("B", "B")
        return any(row and str(row[0]).strip() == discord_id for row in values)

    async def add(self, player: Player) -> None:
        await self.append_rows([player.to_values()])
