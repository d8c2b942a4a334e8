"""Opt-in DM notifications for queues that are close to firing.

Records are kept in memory only (reset on bot restart), keyed by user and
upper-cased queue key. A user is DMed at most once per cooldown per key.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from .messaging import Messenger

logger = logging.getLogger(__name__)

NOTIFICATION_COOLDOWN_SECONDS = 12 * 60 * 60


@dataclass
class NotificationRecord:
    last_notified: float = 0.0  # 0 means never notified


def _normalize(key: str) -> str:
    return key.upper()


def display_key(key: str) -> str:
    """Dash-separated keys are shown with spaces."""
    return " ".join(key.split("-")) if "-" in key else key


class NotificationRegistry:
    """Owns every notification subscription."""

    def __init__(
        self,
        messenger: Messenger,
        *,
        cooldown: float = NOTIFICATION_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.messenger = messenger
        self.cooldown = cooldown
        self._clock = clock
        # user id → queue key → record
        self._records: dict[str, dict[str, NotificationRecord]] = {}

    def _record(self, user_id: str, key: str) -> NotificationRecord | None:
        return self._records.get(user_id, {}).get(_normalize(key))

    def opt_in(self, user_id: str, key: str) -> None:
        """Subscribe; an existing subscription keeps its last-notified time."""
        self._records.setdefault(user_id, {}).setdefault(_normalize(key), NotificationRecord())

    def opt_out(self, user_id: str, key: str) -> bool:
        user_records = self._records.get(user_id)
        if not user_records or _normalize(key) not in user_records:
            return False
        del user_records[_normalize(key)]
        if not user_records:
            del self._records[user_id]
        return True

    def has_opted_in(self, user_id: str, key: str) -> bool:
        return self._record(user_id, key) is not None

    def keys_for(self, user_id: str) -> list[str]:
        return list(self._records.get(user_id, {}))

    def subscribers(self, key: str) -> list[str]:
        normalized = _normalize(key)
        return [user_id for user_id, records in self._records.items() if normalized in records]

    def can_notify(self, user_id: str, key: str) -> bool:
        record = self._record(user_id, key)
        if record is None:
            return False
        if record.last_notified == 0:
            return True
        return self._clock() - record.last_notified >= self.cooldown

    def mark_notified(self, user_id: str, key: str) -> None:
        record = self._record(user_id, key)
        if record is not None:
            record.last_notified = self._clock()

    def reset_timer(self, user_id: str, key: str) -> bool:
        record = self._record(user_id, key)
        if record is None:
            return False
        record.last_notified = 0.0
        return True

    async def notify_eligible(self, key: str, player_count: int) -> list[str]:
        """DM every subscriber off cooldown. Returns the users actually notified."""
        notified: list[str] = []
        text = (
            f"🔔 **Draft Notification**\n\n"
            f"The `{display_key(key)}` draft queue now has **{player_count} players** "
            f"and is close to firing!\n\n"
            f"Use `!draft {key}` to join if you're interested."
        )

        for user_id in self.subscribers(key):
            if not self.can_notify(user_id, key):
                continue
            try:
                delivered = await self.messenger.send_direct(user_id, text)
            except Exception as e:
                logger.error(f"Failed to send notification DM to {user_id}: {e}")
                continue
            if not delivered:
                logger.warning(f"Notification DM to {user_id} was not delivered")
                continue
            self.mark_notified(user_id, key)
            notified.append(user_id)

        if notified:
            logger.info(f"Sent '{key}' notifications to {len(notified)} user(s)")
        return notified
