"""In-memory draft queues with per-player timers.

Queues are volatile: they live for the lifetime of the process and are
cleared when the bot goes offline.

Every participant carries at most one armed timer:

  - reminder timer (default): after ``reminder_delay`` the player is asked
    to confirm with ``!yes`` or leave with ``!leave <queue>``. No answer
    inside ``response_window`` removes them.
  - expiry timer (``!draft <queue> <hours>``, 1-12 hours): the player is
    removed if the queue has not filled by then. No reminder is sent.

Timer callbacks re-check membership before acting, so a player who left
(or a queue that filled) in the meantime is never touched.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .messaging import Messenger, Replied, mention

logger = logging.getLogger(__name__)

QUEUE_CAPACITY = 8
MIN_EXPIRY_HOURS = 1
MAX_EXPIRY_HOURS = 12
STAY_TOKEN = "!yes"


class JoinResult(Enum):
    ADDED = "added"
    ALREADY_MEMBER = "already_member"
    QUEUE_FULL = "queue_full"
    NAME_TAKEN = "name_taken"  # pod log check, done by DraftService


class LeaveResult(Enum):
    REMOVED = "removed"
    NOT_FOUND = "not_found"


def valid_expiry_hours(hours: int | None) -> bool:
    return hours is not None and MIN_EXPIRY_HOURS <= hours <= MAX_EXPIRY_HOURS


def describe_seconds(seconds: float) -> str:
    """3600 -> "1 hour", 300 -> "5 minutes"."""
    if seconds >= 3600 and seconds % 3600 == 0:
        hours = int(seconds // 3600)
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    if seconds >= 60 and seconds % 60 == 0:
        minutes = int(seconds // 60)
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"{seconds:g} seconds"


def _current_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


@dataclass
class Participant:
    """A queued player and their armed timer."""

    user_id: str
    channel_id: str
    joined_at: datetime
    expiry_hours: int | None = None
    reminder_task: asyncio.Task | None = None
    expiry_task: asyncio.Task | None = None

    def cancel_timers(self) -> None:
        """Cancel whichever timer is armed (never the task calling this)."""
        current = _current_task()
        for task in (self.reminder_task, self.expiry_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
        self.reminder_task = None
        self.expiry_task = None


class DraftQueueEngine:
    """Owns every active queue. Only this class mutates queue membership."""

    def __init__(
        self,
        messenger: Messenger,
        *,
        reminder_delay: float = 3600,
        response_window: float = 300,
        expiry_unit: float = 3600,
        capacity: int = QUEUE_CAPACITY,
    ) -> None:
        self.messenger = messenger
        self.reminder_delay = reminder_delay
        self.response_window = response_window
        self.expiry_unit = expiry_unit
        self.capacity = capacity
        # queue key → user id → participant
        self._queues: dict[str, dict[str, Participant]] = {}

    # ==================== Queries ====================

    def is_active(self, key: str) -> bool:
        return key in self._queues

    def has_member(self, key: str, user_id: str) -> bool:
        return user_id in self._queues.get(key, {})

    def player_count(self, key: str) -> int:
        return len(self._queues.get(key, {}))

    def members(self, key: str) -> list[str]:
        return list(self._queues.get(key, {}))

    def participant(self, key: str, user_id: str) -> Participant | None:
        return self._queues.get(key, {}).get(user_id)

    def list_active(self) -> list[tuple[str, int]]:
        return [(key, len(players)) for key, players in self._queues.items()]

    # ==================== Membership ====================

    def join(
        self,
        key: str,
        user_id: str,
        channel_id: str,
        expiry_hours: int | None = None,
    ) -> JoinResult:
        """Add a player and arm exactly one timer for them."""
        queue = self._queues.get(key)
        if queue is not None:
            if user_id in queue:
                return JoinResult.ALREADY_MEMBER
            if len(queue) >= self.capacity:
                return JoinResult.QUEUE_FULL

        participant = Participant(
            user_id=user_id,
            channel_id=channel_id,
            joined_at=datetime.now(timezone.utc),
        )
        if expiry_hours is not None and valid_expiry_hours(expiry_hours):
            participant.expiry_hours = expiry_hours
            participant.expiry_task = self._spawn(
                self._expire_after(key, user_id, expiry_hours), f"expiry:{key}:{user_id}"
            )
        else:
            participant.reminder_task = self._spawn(
                self._remind_after(key, user_id), f"reminder:{key}:{user_id}"
            )

        self._queues.setdefault(key, {})[user_id] = participant
        logger.info(f"{user_id} joined '{key}' ({len(self._queues[key])}/{self.capacity})")
        return JoinResult.ADDED

    def leave(self, key: str, user_id: str) -> LeaveResult:
        """Remove a player, cancelling their timer; an emptied queue is deleted."""
        if self._remove(key, user_id) is None:
            return LeaveResult.NOT_FOUND
        logger.info(f"{user_id} left '{key}'")
        return LeaveResult.REMOVED

    def close(self, key: str) -> list[str]:
        """Cancel every timer in a queue and delete it. Returns the members it held."""
        queue = self._queues.pop(key, None)
        if queue is None:
            return []
        for participant in queue.values():
            participant.cancel_timers()
        logger.info(f"Closed '{key}' with {len(queue)} player(s)")
        return list(queue)

    def close_all(self) -> None:
        for key in list(self._queues):
            self.close(key)

    def _remove(self, key: str, user_id: str) -> Participant | None:
        queue = self._queues.get(key)
        if queue is None or user_id not in queue:
            return None
        participant = queue.pop(user_id)
        participant.cancel_timers()
        if not queue:
            del self._queues[key]
        return participant

    # ==================== Timers ====================

    @staticmethod
    def _spawn(coro: Coroutine[Any, Any, None], name: str) -> asyncio.Task:
        return asyncio.create_task(coro, name=name)

    async def _remind_after(self, key: str, user_id: str) -> None:
        try:
            await asyncio.sleep(self.reminder_delay)
            await self._confirm_or_remove(key, user_id)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"Inactivity reminder for {user_id} in '{key}' failed")

    async def _confirm_or_remove(self, key: str, user_id: str) -> None:
        participant = self.participant(key, user_id)
        if participant is None:
            return

        leave_token = f"!leave {key}".lower()
        prompt = (
            f"You have been in the `{key}` draft for {describe_seconds(self.reminder_delay)}. "
            f"Do you still want to stay? Respond with `{STAY_TOKEN}` within "
            f"{describe_seconds(self.response_window)} to remain, or `!leave {key}` to leave the draft."
        )

        # DM first, fall back to the channel the player joined from
        reply_channel: str | None = None
        if not await self.messenger.send_direct(user_id, prompt):
            reply_channel = participant.channel_id
            await self.messenger.send_to_channel(reply_channel, f"{mention(user_id)}, {prompt}")

        reply = await self.messenger.collect_reply(
            user_id,
            reply_channel,
            lambda content: content.strip().lower() in (STAY_TOKEN, leave_token),
            self.response_window,
        )

        participant = self.participant(key, user_id)
        if participant is None:
            return
        participant.reminder_task = None

        if isinstance(reply, Replied) and reply.content.strip().lower() == STAY_TOKEN:
            participant.reminder_task = self._spawn(
                self._remind_after(key, user_id), f"reminder:{key}:{user_id}"
            )
            text = f"Your timer for `{key}` has been reset for {describe_seconds(self.reminder_delay)}."
            if reply_channel is None:
                await self.messenger.send_direct(user_id, text)
            else:
                await self.messenger.send_to_channel(reply_channel, f"{mention(user_id)}, {text}")
            return

        self._remove(key, user_id)
        if isinstance(reply, Replied):
            logger.info(f"{user_id} left '{key}' from the inactivity prompt")
            await self.messenger.send_to_channel(
                participant.channel_id,
                f"{mention(user_id)} has left `{key}`.\n"
                f"Remaining players: **{self.player_count(key)}**",
            )
        else:
            logger.info(f"{user_id} removed from '{key}' for inactivity")
            await self.messenger.send_to_channel(
                participant.channel_id,
                f"{mention(user_id)} has been removed from `{key}` due to inactivity.",
            )
        await self._announce_if_empty(key, participant.channel_id)

    async def _expire_after(self, key: str, user_id: str, hours: int) -> None:
        try:
            await asyncio.sleep(hours * self.expiry_unit)
            participant = self.participant(key, user_id)
            if participant is None:
                return
            if self.player_count(key) >= self.capacity:
                return  # queue filled; it is about to close

            participant.expiry_task = None
            self._remove(key, user_id)
            logger.info(f"{user_id} removed from '{key}' after {hours}h queue timeout")
            await self.messenger.send_to_channel(
                participant.channel_id,
                f"{mention(user_id)} has been removed from `{key}` because it did not reach "
                f"{self.capacity} players within {hours} hour(s).\n"
                f"Remaining players: **{self.player_count(key)}**",
            )
            await self._announce_if_empty(key, participant.channel_id)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"Queue timeout for {user_id} in '{key}' failed")

    async def _announce_if_empty(self, key: str, channel_id: str) -> None:
        if not self.is_active(key):
            await self.messenger.send_to_channel(
                channel_id, f"The `{key}` draft is now empty and has been removed."
            )
