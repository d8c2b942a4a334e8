"""Player directory: name lookup and first-write-wins registration."""

from __future__ import annotations

import logging

from draftbot.shared.models import Player
from draftbot.shared.repositories import PlayerRepository

from .messaging import IdentityProvider

logger = logging.getLogger(__name__)


class PlayerDirectory:
    def __init__(self, players: PlayerRepository, identity: IdentityProvider | None = None) -> None:
        self.players = players
        self.identity = identity

    async def resolve_name(self, user_id: str) -> str | None:
        """Name from the Player Database, or None if missing or unreadable."""
        try:
            player = await self.players.find(user_id)
        except Exception as e:
            logger.error(f"Error getting player name for {user_id}: {e}")
            return None
        return player.name if player else None

    async def ensure_registered(self, display_name: str, user_id: str) -> bool:
        """Append the player unless already present. Returns True if added."""
        if await self.players.exists(user_id):
            return False
        await self.players.add(Player(name=display_name, discord_id=user_id))
        logger.info(f"Added player {display_name} ({user_id}) to Player Database")
        return True

    async def display_name(self, user_id: str) -> str:
        """Directory name, else platform name, else a placeholder."""
        name = await self.resolve_name(user_id)
        if name:
            return name
        if self.identity is not None:
            try:
                name = await self.identity.fetch_display_name(user_id)
            except Exception as e:
                logger.warning(f"Could not fetch display name for {user_id}: {e}")
                name = None
        return name or f"Unknown ({user_id})"
