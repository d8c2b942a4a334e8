"""
Help Cog
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from discord.ext import commands

from draftbot.services.draft_queue import (
    MAX_EXPIRY_HOURS,
    MIN_EXPIRY_HOURS,
    QUEUE_CAPACITY,
    describe_seconds,
)

if TYPE_CHECKING:
    from draftbot.bot import DraftBotClient


def build_help_text(reminder_delay: float, notify_threshold: int, cooldown: float) -> str:
    return (
        "**Available Commands:**\n\n"
        "`!draft <draft_name>` - Join or create a draft queue (one word, e.g. `!draft TLA`)\n"
        f"  • Optional: `!draft <draft_name> <hours>` ({MIN_EXPIRY_HOURS}-{MAX_EXPIRY_HOURS}) removes you "
        f"if the queue doesn't reach {QUEUE_CAPACITY} players in that time\n"
        f"  • Without hours you get a check-in DM after {describe_seconds(reminder_delay)}\n"
        f"  • At {QUEUE_CAPACITY} players: Draft closes with a draftmancer.com link "
        "and is recorded for match reporting\n\n"
        "`!leave <draft_name>` - Leave a draft queue\n\n"
        f"`!notify <draft_name>` - Opt in for DM notifications when the queue reaches "
        f"{notify_threshold}+ players (once per {describe_seconds(cooldown)})\n\n"
        "`!reset <draft_name>` - Reset notification timer to receive notifications immediately\n\n"
        "`!cancel <draft_name>` - Opt out of notifications\n\n"
        "`!available` - List all active drafts and player counts\n\n"
        "`!fire <draft_name>` - *(Owner only)* Close a queue early and record players to Draft Log\n\n"
        "`!report <draft_name> @opponent 2-0` or `!report <draft_name> @opponent 2-1` - "
        "Report a match result (you = winner, tagged = loser)\n\n"
        "`!status <draft_name>` - Show current round and matchup status\n\n"
        "`!help` - Show this help message\n\n"
        "**Notes:**\n"
        "• Draft commands only work in the designated draft channel (if configured)\n"
        "• Match reporting (`!report`) and `!status` must be used in the matchmaking channel"
    )


class Help(commands.Cog):
    def __init__(self, bot: DraftBotClient):
        self.bot = bot

    def cog_check(self, ctx: commands.Context) -> bool:
        return ctx.guild is not None

    @commands.command(name="help")
    async def help(self, ctx: commands.Context):
        """Show the command list"""
        settings = self.bot.settings
        await ctx.reply(
            build_help_text(
                settings.reminder_delay_seconds,
                settings.notify_threshold,
                settings.notification_cooldown_seconds,
            )
        )


async def setup(bot: DraftBotClient):
    await bot.add_cog(Help(bot))
