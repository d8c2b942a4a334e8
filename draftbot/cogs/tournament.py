"""
Tournament Cog
Match reporting and bracket status, matchmaking channel only
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from discord.ext import commands

from draftbot.shared.models import DraftStatus

if TYPE_CHECKING:
    from draftbot.bot import DraftBotClient


RESULT_PATTERN = re.compile(r"2-0|2-1")


class Tournament(commands.Cog):
    """Bracket commands"""

    def __init__(self, bot: DraftBotClient):
        self.bot = bot

    def cog_check(self, ctx: commands.Context) -> bool:
        """Only in the matchmaking channel; disabled when none is configured"""
        channel_id = self.bot.settings.matchmaking_channel_id
        return ctx.guild is not None and bool(channel_id) and str(ctx.channel.id) == channel_id

    @commands.command(name="report")
    async def report(self, ctx: commands.Context, draft_name: str | None = None, *rest: str):
        """Report a win: `!report <draft_name> @opponent 2-0|2-1` (author is the winner)"""
        if not draft_name:
            await ctx.reply(
                "Usage: `!report <draft_name> @opponent 2-0` or `!report <draft_name> @opponent 2-1`"
            )
            return

        opponents = [user for user in ctx.message.mentions if not user.bot]
        if len(opponents) != 1:
            await ctx.reply("Please tag exactly one player (your opponent, the loser).")
            return

        loser_id = str(opponents[0].id)
        winner_id = str(ctx.author.id)
        if loser_id == winner_id:
            await ctx.reply("You cannot report a match against yourself.")
            return

        result = RESULT_PATTERN.search(" ".join(rest))
        if result is None:
            await ctx.reply("Please include the result: `2-0` or `2-1` (you are the winner).")
            return

        outcome = await self.bot.bracket.report_match(draft_name, winner_id, loser_id, result.group(0))
        if not outcome.ok:
            await ctx.reply(outcome.error or "Could not record the match.")
            return

        await ctx.reply(f"Match recorded: you beat <@{loser_id}> {result.group(0)}.")
        if outcome.warning:
            await ctx.reply(f"⚠️ {outcome.warning}")
        if outcome.complete:
            await ctx.reply(f"**`{draft_name}`**: Tournament complete. All rounds finished.")

    @commands.command(name="status")
    async def status(self, ctx: commands.Context, draft_name: str | None = None):
        """Current round of a pod"""
        if not draft_name:
            await ctx.reply("Usage: `!status <draft_name>`: shows current round and matchup status")
            return

        status = await self.bot.bracket.get_status(draft_name)
        if not status.ok:
            await ctx.reply(status.error or f"No matchups found for draft `{draft_name}`.")
            return

        if status.complete:
            await ctx.reply(f"**`{draft_name}`**: Tournament complete. All rounds finished.")
            return

        await ctx.reply(await self.render_status(draft_name, status))

    async def render_status(self, draft_name: str, status: DraftStatus) -> str:
        user_ids: set[str] = set()
        for match in status.matches:
            user_ids.update((match.p1, match.p2))
            if match.winner:
                user_ids.add(match.winner)

        names: dict[str, str] = {}
        for user_id in user_ids:
            names[user_id] = await self.bot.drafts.player_name(user_id, draft_name) or "Unknown"

        lines = []
        for match in status.matches:
            pairing = f"Match {match.match_num}: {names[match.p1]} vs {names[match.p2]}"
            if match.completed and match.winner and match.result:
                lines.append(f"{pairing}: {names[match.winner]} won {match.result}")
            else:
                lines.append(f"{pairing}: In progress")

        return f"**Round {status.round} status for `{draft_name}`:**\n" + "\n".join(lines)


async def setup(bot: DraftBotClient):
    """Load Cog"""
    await bot.add_cog(Tournament(bot))
