"""Draft service: ties queues, the Draft Log, notifications and the bracket together."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

from draftbot.shared.models import DraftLogEntry, RoundResult
from draftbot.shared.repositories import DraftLogRepository

from .bracket import POD_SIZE, BracketEngine
from .draft_queue import DraftQueueEngine, JoinResult, LeaveResult
from .notifications import NotificationRegistry
from .players import PlayerDirectory

logger = logging.getLogger(__name__)

DEFAULT_NOTIFY_THRESHOLD = 5
DEFAULT_SESSION_URL = "https://draftmancer.com/?session="


@dataclass
class PodOutcome:
    """A queue that closed and became a pod."""

    draft_name: str
    user_ids: list[str]
    session_url: str
    round_one: RoundResult | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def is_full(self) -> bool:
        return len(self.user_ids) == POD_SIZE


@dataclass
class JoinOutcome:
    result: JoinResult
    count: int
    pod: PodOutcome | None = None


class DraftService:
    """Coordinates a join through to pod creation."""

    def __init__(
        self,
        queues: DraftQueueEngine,
        bracket: BracketEngine,
        draft_log: DraftLogRepository,
        players: PlayerDirectory,
        notifications: NotificationRegistry,
        *,
        notify_threshold: int = DEFAULT_NOTIFY_THRESHOLD,
        session_url: str = DEFAULT_SESSION_URL,
    ) -> None:
        self.queues = queues
        self.bracket = bracket
        self.draft_log = draft_log
        self.players = players
        self.notifications = notifications
        self.notify_threshold = notify_threshold
        self.session_url = session_url
        # pods closed by this process, claimed before their Draft Log rows exist
        self._fired: set[str] = set()

    async def name_taken(self, draft_name: str) -> bool:
        """True if a pod fired under this name, here or in the Draft Log.

        Draft Log read failures allow the name.
        """
        if draft_name in self._fired:
            return True
        try:
            return await self.draft_log.name_exists(draft_name)
        except Exception as e:
            logger.error(f"Error checking draft name uniqueness: {e}")
            return False

    async def join(
        self,
        draft_name: str,
        user_id: str,
        channel_id: str,
        expiry_hours: int | None = None,
    ) -> JoinOutcome:
        if not self.queues.is_active(draft_name) and await self.name_taken(draft_name):
            return JoinOutcome(JoinResult.NAME_TAKEN, 0)

        result = self.queues.join(draft_name, user_id, channel_id, expiry_hours)
        count = self.queues.player_count(draft_name)
        if result is not JoinResult.ADDED:
            return JoinOutcome(result, count)

        if count >= self.queues.capacity:
            self._fired.add(draft_name)
            members = self.queues.close(draft_name)
            return JoinOutcome(result, count, await self._materialize(draft_name, members))

        if count >= self.notify_threshold:
            await self.notifications.notify_eligible(draft_name, count)
        return JoinOutcome(result, count)

    def leave(self, draft_name: str, user_id: str) -> LeaveResult:
        return self.queues.leave(draft_name, user_id)

    async def fire(self, draft_name: str) -> PodOutcome | None:
        """Close a queue early; a bracket is only created for a full pod."""
        members = self.queues.close(draft_name)
        if not members:
            return None
        self._fired.add(draft_name)
        logger.info(f"'{draft_name}' fired early with {len(members)} player(s)")
        return await self._materialize(draft_name, members)

    async def _materialize(self, draft_name: str, members: list[str]) -> PodOutcome:
        pod = PodOutcome(
            draft_name=draft_name,
            user_ids=members,
            session_url=f"{self.session_url}{uuid.uuid4()}",
        )

        try:
            await self.record_pod(draft_name, members)
        except Exception as e:
            logger.exception(f"Failed to record '{draft_name}' to Draft Log")
            pod.errors.append(f"Could not record the pod to the Draft Log: {e}")

        if pod.is_full:
            try:
                pod.round_one = await self.bracket.create_round_one(draft_name, members)
            except Exception as e:
                logger.exception(f"Failed to create Round 1 for '{draft_name}'")
                pod.errors.append(f"Could not create Round 1 matchups: {e}")
            else:
                if not pod.round_one.ok and pod.round_one.error:
                    pod.errors.append(pod.round_one.error)

        return pod

    async def record_pod(self, draft_name: str, user_ids: list[str]) -> None:
        entries = [
            DraftLogEntry(
                player_name=await self.players.display_name(user_id),
                discord_id=user_id,
                draft_name=draft_name,
            )
            for user_id in user_ids
        ]
        await self.draft_log.record_pod(entries)
        logger.info(f"Recorded '{draft_name}' with {len(entries)} players to Draft Log")

    async def player_name(self, user_id: str, draft_name: str) -> str | None:
        """Name a player was logged under for a pod."""
        try:
            return await self.draft_log.player_name(user_id, draft_name)
        except Exception as e:
            logger.error(f"Error looking up player name from Draft Log: {e}")
            return None
