"""Draft queue, notification, bracket and player services."""

from .bracket import BracketEngine
from .draft_queue import DraftQueueEngine, JoinResult, LeaveResult
from .drafts import DraftService, JoinOutcome, PodOutcome
from .messaging import IdentityProvider, Messenger, Replied, TimedOut
from .notifications import NotificationRegistry
from .players import PlayerDirectory

__all__ = [
    "BracketEngine",
    "DraftQueueEngine",
    "DraftService",
    "IdentityProvider",
    "JoinOutcome",
    "JoinResult",
    "LeaveResult",
    "Messenger",
    "NotificationRegistry",
    "PlayerDirectory",
    "PodOutcome",
    "Replied",
    "TimedOut",
]
