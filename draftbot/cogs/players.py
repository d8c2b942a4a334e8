"""
Player registration Cog
Adds every guild member who talks to the bot to the Player Database
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

if TYPE_CHECKING:
    from draftbot.bot import DraftBotClient

logger = logging.getLogger(__name__)


class Players(commands.Cog):
    def __init__(self, bot: DraftBotClient):
        self.bot = bot
        # ids already confirmed in the sheet this session
        self._known: set[str] = set()

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        """Register the author; failures never block command handling"""
        if message.author.bot or not message.guild:
            return
        user_id = str(message.author.id)
        if user_id in self._known:
            return

        try:
            await self.bot.player_directory.ensure_registered(message.author.display_name, user_id)
            self._known.add(user_id)
        except Exception as e:
            logger.error(f"Error ensuring {message.author.id} is in the Player Database: {e}")


async def setup(bot: DraftBotClient):
    await bot.add_cog(Players(bot))
