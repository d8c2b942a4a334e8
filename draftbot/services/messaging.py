"""Messaging collaborator used by the engines.

The engines never touch discord.py directly; they talk to an object that
implements ``Messenger``. ``draftbot.core.messenger.DiscordMessenger`` is the
production implementation.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class Replied:
    """A qualifying reply arrived inside the collection window."""

    content: str


@dataclass(frozen=True)
class TimedOut:
    """The collection window closed with no qualifying reply."""


Reply = Replied | TimedOut


class Messenger(Protocol):
    async def send_direct(self, user_id: str, text: str) -> bool:
        """DM a user. Returns False when delivery failed."""
        ...

    async def send_to_channel(self, channel_id: str, text: str) -> bool:
        """Post to a channel. Returns False when delivery failed."""
        ...

    async def collect_reply(
        self,
        user_id: str,
        channel_id: str | None,
        accept: Callable[[str], bool],
        timeout: float,
    ) -> Reply:
        """Wait for the first message from ``user_id`` that ``accept`` approves.

        ``channel_id`` of None means the user's DM channel.
        """
        ...


class IdentityProvider(Protocol):
    async def fetch_display_name(self, user_id: str) -> str | None:
        """Platform display name, or None if the user cannot be fetched."""
        ...


def mention(user_id: str) -> str:
    return f"<@{user_id}>"
