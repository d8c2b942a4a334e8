"""discord.py command cogs, loaded as extensions by the bot."""
