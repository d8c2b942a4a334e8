"""
Draft Bot
Runs 8-player draft queues and their brackets with discord.py prefix commands.
"""

import asyncio
import logging

import discord
from discord.ext import commands
from pydantic import ValidationError

from draftbot.core import BotSettings, DiscordMessenger, get_settings, setup_logging
from draftbot.services import (
    BracketEngine,
    DraftQueueEngine,
    DraftService,
    NotificationRegistry,
    PlayerDirectory,
)
from draftbot.shared.repositories import (
    DraftLogRepository,
    MatchRepository,
    MatchupRepository,
    PlayerRepository,
)
from draftbot.shared.sheets import RetryConfig, SheetsClient

logger = logging.getLogger("draftbot")


class DraftBotClient(commands.Bot):
    """Draft Bot client"""

    def __init__(self, settings: BotSettings):
        intents = discord.Intents.default()
        intents.message_content = True  # commands and reminder replies are plain messages
        intents.members = True  # display names
        intents.dm_messages = True  # reminder replies arrive in DMs

        super().__init__(
            command_prefix="!",
            intents=intents,
            help_command=None,  # custom !help
            case_insensitive=True,
        )

        self.settings = settings
        self.initial_extensions = [
            "draftbot.cogs.drafts",
            "draftbot.cogs.notifications",
            "draftbot.cogs.tournament",
            "draftbot.cogs.players",
            "draftbot.cogs.help",
        ]
        self._announced_online = False

        self.messenger = DiscordMessenger(self)
        self.sheets = SheetsClient(
            config=RetryConfig(
                max_retries=settings.sheets_max_retries,
                retry_delay=settings.sheets_retry_delay,
            )
        )

        sheet_id = settings.live_sheet_id
        self.player_directory = PlayerDirectory(
            PlayerRepository(self.sheets, sheet_id), identity=self.messenger
        )
        self.queues = DraftQueueEngine(
            self.messenger,
            reminder_delay=settings.reminder_delay_seconds,
            response_window=settings.response_window_seconds,
        )
        self.notifications = NotificationRegistry(
            self.messenger, cooldown=settings.notification_cooldown_seconds
        )
        self.bracket = BracketEngine(
            MatchupRepository(self.sheets, sheet_id),
            MatchRepository(self.sheets, sheet_id),
            self.messenger,
            announce_channel_id=settings.matchmaking_channel_id or None,
        )
        self.drafts = DraftService(
            self.queues,
            self.bracket,
            DraftLogRepository(self.sheets, sheet_id),
            self.player_directory,
            self.notifications,
            notify_threshold=settings.notify_threshold,
            session_url=settings.draftmancer_url,
        )

    async def setup_hook(self):
        """Load cogs before connecting"""
        loaded = []
        failed = []

        for extension in self.initial_extensions:
            try:
                await self.load_extension(extension)
                loaded.append(extension.split(".")[-1])
            except Exception as e:
                failed.append(f"{extension.split('.')[-1]} ({e})")

        if loaded:
            logger.info(f"[green]Loaded cogs:[/green] {', '.join(loaded)}")
        if failed:
            logger.error(f"[red]Failed to load:[/red] {', '.join(failed)}")

        logger.info("[yellow]Connecting to Discord...[/yellow]")

    async def on_ready(self):
        """Bot connected and ready"""
        logger.info(
            f"[bold green]Bot ready:[/bold green] {self.user} [dim](ID: {self.user.id if self.user else '?'})[/dim]"
        )
        logger.info(
            f"[cyan]Connection:[/cyan] {len(self.guilds)} guild(s) | discord.py {discord.__version__}"
        )

        if self.settings.draft_channel_id and not self._announced_online:
            self._announced_online = True
            await self.messenger.send_to_channel(
                self.settings.draft_channel_id,
                "✅ Bot is now online and ready to organize drafts! Use `!help` to see available commands.",
            )

    async def close(self):
        """Announce shutdown, drop volatile queues and release the HTTP client"""
        if self.is_closed():
            return

        if self.is_ready() and self.settings.draft_channel_id:
            try:
                await self.messenger.send_to_channel(
                    self.settings.draft_channel_id,
                    "⚠️ Bot is going offline. All active drafts will be cleared.",
                )
            except Exception as e:
                logger.error(f"Error sending shutdown message: {e}")

        self.queues.close_all()
        await self.sheets.close()
        await super().close()

    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError):
        """Handle prefix command errors"""
        if isinstance(error, (commands.CommandNotFound, commands.CheckFailure)):
            return

        if isinstance(error, commands.MissingRequiredArgument):
            await ctx.reply(f"Missing argument: `{error.param.name}`. Use `!help` for usage.")
            return

        logger.error(f"Command error in {ctx.command}: {error}", exc_info=error)
        await ctx.reply("Something went wrong while running that command. Please try again.")


async def main():
    """Bot entry point"""
    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging()
        logger.error("[bold red]Invalid configuration[/bold red]")
        logger.error(f"Set DISCORD_TOKEN and LIVE_SHEET_ID in the environment or .env file:\n{e}")
        return

    setup_logging(settings.log_level)

    async with DraftBotClient(settings) as bot:
        try:
            await bot.start(settings.discord_token)
        except (KeyboardInterrupt, asyncio.CancelledError):
            if not bot.is_closed():
                await bot.close()
