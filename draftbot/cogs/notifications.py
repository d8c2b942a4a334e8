"""
Notification Cog
Opt in / out of DMs for queues that are close to firing
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from discord.ext import commands

from draftbot.services.draft_queue import describe_seconds

if TYPE_CHECKING:
    from draftbot.bot import DraftBotClient


class Notifications(commands.Cog):
    def __init__(self, bot: DraftBotClient):
        self.bot = bot

    def cog_check(self, ctx: commands.Context) -> bool:
        if ctx.guild is None:
            return False
        settings = self.bot.settings
        if settings.draft_channel_restricted:
            return str(ctx.channel.id) == settings.draft_channel_id
        return True

    def _not_opted_in(self, draft_name: str) -> str:
        return (
            f"❌ You haven't opted in for notifications for `{draft_name}`. "
            f"Use `!notify {draft_name}` to opt in first."
        )

    @commands.command(name="notify")
    async def notify(self, ctx: commands.Context, draft_name: str | None = None):
        if not draft_name:
            await ctx.reply("Please provide a draft name (one word). Usage: `!notify TLA`")
            return

        registry = self.bot.notifications
        registry.opt_in(str(ctx.author.id), draft_name)
        await ctx.reply(
            f"✅ You've been opted in for notifications for `{draft_name}`. "
            f"You'll receive a DM when the queue reaches {self.bot.drafts.notify_threshold}+ players "
            f"(once every {describe_seconds(registry.cooldown)}). "
            f"Use `!reset {draft_name}` to reset your notification timer."
        )

    @commands.command(name="reset")
    async def reset(self, ctx: commands.Context, draft_name: str | None = None):
        if not draft_name:
            await ctx.reply("Please provide a draft name (one word). Usage: `!reset TLA`")
            return

        if self.bot.notifications.reset_timer(str(ctx.author.id), draft_name):
            await ctx.reply(
                f"✅ Your notification timer for `{draft_name}` has been reset. "
                f"You can now receive notifications again if the queue reaches "
                f"{self.bot.drafts.notify_threshold}+ players."
            )
        else:
            await ctx.reply(self._not_opted_in(draft_name))

    @commands.command(name="cancel")
    async def cancel(self, ctx: commands.Context, draft_name: str | None = None):
        if not draft_name:
            await ctx.reply("Please provide a draft name (one word). Usage: `!cancel TLA`")
            return

        if self.bot.notifications.opt_out(str(ctx.author.id), draft_name):
            await ctx.reply(
                f"✅ You've been opted out of notifications for `{draft_name}`. "
                f"You will no longer receive DMs for this draft."
            )
        else:
            await ctx.reply(self._not_opted_in(draft_name))


async def setup(bot: DraftBotClient):
    await bot.add_cog(Notifications(bot))
