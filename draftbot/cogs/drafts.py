"""
Draft queue Cog
!draft, !leave, !available and the owner-only !fire
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from discord.ext import commands

from draftbot.services import JoinResult, LeaveResult, PodOutcome
from draftbot.services.draft_queue import QUEUE_CAPACITY, valid_expiry_hours
from draftbot.services.notifications import display_key

if TYPE_CHECKING:
    from draftbot.bot import DraftBotClient

logger = logging.getLogger(__name__)


def parse_draft_args(parts: tuple[str, ...]) -> tuple[str | None, int | None]:
    """`!draft TLA 4` -> ("TLA", 4). A trailing 1-12 sets the queue timeout."""
    tokens = [p for p in parts if p]
    if not tokens:
        return None, None
    if len(tokens) >= 2:
        try:
            hours = int(tokens[-1])
        except ValueError:
            hours = None
        if valid_expiry_hours(hours):
            return tokens[0], hours
    return tokens[0], None


def _mentions(user_ids: list[str]) -> str:
    return " ".join(f"<@{uid}>" for uid in user_ids)


class Drafts(commands.Cog):
    """Draft queue commands"""

    def __init__(self, bot: DraftBotClient):
        self.bot = bot

    def cog_check(self, ctx: commands.Context) -> bool:
        """Guild only, and only in the draft channel when one is configured"""
        if ctx.guild is None:
            return False
        settings = self.bot.settings
        if settings.draft_channel_restricted:
            return str(ctx.channel.id) == settings.draft_channel_id
        return True

    @commands.command(name="draft")
    async def draft(self, ctx: commands.Context, *parts: str):
        """Join (or start) a draft queue"""
        draft_name, hours = parse_draft_args(parts)
        if not draft_name:
            await ctx.reply(
                "Please provide a draft name (one word, no spaces). "
                "Examples: `!draft TLA` or `!draft Pod1 4`"
            )
            return

        outcome = await self.bot.drafts.join(
            draft_name, str(ctx.author.id), str(ctx.channel.id), hours
        )

        if outcome.result is JoinResult.NAME_TAKEN:
            await ctx.reply(
                f"Draft name `{draft_name}` has already been used. Please choose a different name."
            )
            return
        if outcome.result is JoinResult.ALREADY_MEMBER:
            await ctx.reply(f"{ctx.author.mention}, you are already in `{draft_name}`.")
            return
        if outcome.result is JoinResult.QUEUE_FULL:
            await ctx.reply(f"`{draft_name}` already has {QUEUE_CAPACITY} players.")
            return

        timeout_note = (
            f" You will be removed if the queue doesn't reach {QUEUE_CAPACITY} in {hours} hour(s)."
            if hours is not None
            else ""
        )
        await ctx.reply(
            f"{ctx.author.mention} has joined `{draft_name}`.\n"
            f"Current players: **{outcome.count}**{timeout_note}"
        )

        if outcome.pod is not None:
            await ctx.reply(
                f"🔥 Draft `{draft_name}` is FULL (**{QUEUE_CAPACITY} players**)!\n"
                f"{_mentions(outcome.pod.user_ids)}"
            )
            await self._send_pod_details(ctx, outcome.pod)

    @commands.command(name="leave")
    async def leave(self, ctx: commands.Context, draft_name: str | None = None):
        """Leave a draft queue"""
        if not draft_name:
            await ctx.reply("Usage: `!leave <draft_name>`: draft name is one word, e.g. `!leave TLA`")
            return

        queues = self.bot.queues
        if not queues.is_active(draft_name):
            await ctx.reply(f"There is no active `{draft_name}` draft to leave.")
            return

        if self.bot.drafts.leave(draft_name, str(ctx.author.id)) is LeaveResult.NOT_FOUND:
            await ctx.reply(f"{ctx.author.mention}, you are not in `{draft_name}`.")
            return

        count = queues.player_count(draft_name)
        await ctx.reply(
            f"{ctx.author.mention} has left `{draft_name}`.\nRemaining players: **{count}**"
        )
        if count == 0:
            await ctx.reply(f"The `{draft_name}` draft is now empty and has been removed.")

    @commands.command(name="available")
    async def available(self, ctx: commands.Context):
        """List active queues"""
        active = self.bot.queues.list_active()
        if not active:
            await ctx.reply("There are currently no active drafts.")
            return

        lines = ["**Active Drafts:**"]
        lines.extend(f"- `{display_key(key)}`: {count} player(s)" for key, count in active)
        await ctx.reply("\n".join(lines))

    @commands.command(name="fire")
    async def fire(self, ctx: commands.Context, draft_name: str | None = None):
        """Close a queue early (owner only)"""
        owner_id = self.bot.settings.owner_id
        if not owner_id or str(ctx.author.id) != owner_id:
            return

        if not draft_name:
            await ctx.reply(
                "Usage: `!fire <draft_name>`: closes the queue early and records players to Draft Log."
            )
            return

        pod = await self.bot.drafts.fire(draft_name)
        if pod is None:
            await ctx.reply(f"There is no active `{draft_name}` draft to fire.")
            return
        logger.info(f"{ctx.author} fired '{draft_name}'")

        await ctx.reply(
            f"🔥 Draft `{draft_name}` fired early (**{len(pod.user_ids)} player(s)**)!\n"
            f"{_mentions(pod.user_ids)}"
        )
        await self._send_pod_details(ctx, pod)

    async def _send_pod_details(self, ctx: commands.Context, pod: PodOutcome):
        for error in pod.errors:
            await ctx.reply(f"⚠️ {error}")
        await ctx.reply(f"Please visit {pod.session_url} to start the draft.")
        await ctx.reply(f"Draft `{pod.draft_name}` has closed and been removed.")


async def setup(bot: DraftBotClient):
    """Load Cog"""
    await bot.add_cog(Drafts(bot))
