"""discord.py implementation of the messaging and identity collaborators."""

import asyncio
import logging
from collections.abc import Callable

import discord
from discord.ext import commands

from draftbot.services.messaging import Replied, Reply, TimedOut

logger = logging.getLogger(__name__)


class DiscordMessenger:
    """Sends DMs / channel messages and waits for replies through the bot."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def _fetch_user(self, user_id: str) -> discord.User | None:
        if user := self.bot.get_user(int(user_id)):
            return user
        try:
            return await self.bot.fetch_user(int(user_id))
        except (discord.NotFound, discord.HTTPException):
            return None

    async def send_direct(self, user_id: str, text: str) -> bool:
        user = await self._fetch_user(user_id)
        if user is None:
            logger.warning(f"Cannot DM {user_id}: user not found")
            return False
        try:
            await user.send(text)
            return True
        except (discord.Forbidden, discord.HTTPException) as e:
            # DMs disabled or bot blocked
            logger.warning(f"Cannot DM {user_id}: {e}")
            return False

    async def send_to_channel(self, channel_id: str, text: str) -> bool:
        channel = self.bot.get_channel(int(channel_id))
        try:
            if channel is None:
                channel = await self.bot.fetch_channel(int(channel_id))
            if not isinstance(channel, discord.abc.Messageable):
                logger.warning(f"Channel {channel_id} is not messageable")
                return False
            await channel.send(text)
            return True
        except (discord.NotFound, discord.Forbidden, discord.HTTPException) as e:
            logger.warning(f"Cannot send to channel {channel_id}: {e}")
            return False

    async def collect_reply(
        self,
        user_id: str,
        channel_id: str | None,
        accept: Callable[[str], bool],
        timeout: float,
    ) -> Reply:
        def check(message: discord.Message) -> bool:
            if str(message.author.id) != user_id:
                return False
            if channel_id is None:
                if not isinstance(message.channel, discord.DMChannel):
                    return False
            elif str(message.channel.id) != channel_id:
                return False
            return accept(message.content)

        try:
            message = await self.bot.wait_for("message", check=check, timeout=timeout)
        except asyncio.TimeoutError:
            return TimedOut()
        return Replied(message.content)

    async def fetch_display_name(self, user_id: str) -> str | None:
        user = await self._fetch_user(user_id)
        if user is None:
            return None
        return user.global_name or user.name
