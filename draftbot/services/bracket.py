"""Single-elimination style bracket for an 8-player pod.

Rounds are stored as Matchups rows and re-read on every operation; the
sheet is the only source of truth.

  Round 1 (matches 1-4)  : random pairing of the pod
  Round 2 (matches 5-8)  : W1 v W2, W3 v W4, L1 v L2, L3 v L4
  Round 3 (matches 9-12) : W5 v W6, W7 v W8, L5 v L6, L7 v L8

A pod is complete once all four round 3 matches have a winner.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from draftbot.shared.models import (
    MATCH_RESULTS,
    DraftStatus,
    MatchRecord,
    MatchStatus,
    MatchupRow,
    ReportResult,
    RoundResult,
)
from draftbot.shared.repositories import MatchRepository, MatchupRepository

from .messaging import Messenger, mention

logger = logging.getLogger(__name__)

POD_SIZE = 8
MATCHES_PER_ROUND = 4
FINAL_ROUND = 3

NO_MATCHUP_ERROR = (
    "No valid matchup found. Both players must be paired in a matchup for this "
    "draft that hasn't been reported yet."
)


def round_match_numbers(round_num: int) -> list[int]:
    start = (round_num - 1) * MATCHES_PER_ROUND + 1
    return list(range(start, start + MATCHES_PER_ROUND))


def rows_by_round(rows: Sequence[MatchupRow]) -> dict[int, list[MatchupRow]]:
    grouped: dict[int, list[MatchupRow]] = {n: [] for n in range(1, FINAL_ROUND + 1)}
    for row in rows:
        if row.round in grouped:
            grouped[row.round].append(row)
    for round_rows in grouped.values():
        round_rows.sort(key=lambda r: r.match_num)
    return grouped


def is_round_complete(round_rows: Sequence[MatchupRow]) -> bool:
    """A round counts only with exactly four rows, all reported."""
    return len(round_rows) == MATCHES_PER_ROUND and all(r.completed for r in round_rows)


def build_next_round(previous: Sequence[MatchupRow]) -> list[MatchupRow]:
    """Winners meet winners and losers meet losers, in match-number order.

    Raises ValueError if ``previous`` is not a complete, well-numbered round.
    """
    if not is_round_complete(previous):
        raise ValueError("previous round is not complete")
    round_num = previous[0].round
    expected = round_match_numbers(round_num)
    by_num = {row.match_num: row for row in previous}
    if sorted(by_num) != expected:
        raise ValueError(f"round {round_num} has match numbers {sorted(by_num)}, expected {expected}")

    a, b, c, d = (by_num[n] for n in expected)
    pairs = [
        (a.winner, b.winner),
        (c.winner, d.winner),
        (a.loser, b.loser),
        (c.loser, d.loser),
    ]
    draft_name = previous[0].draft_name
    return [
        MatchupRow(draft_name=draft_name, round=round_num + 1, match_num=num, p1=p1, p2=p2)
        for num, (p1, p2) in zip(round_match_numbers(round_num + 1), pairs)
    ]


class BracketEngine:
    """Creates rounds, validates match reports and advances pods."""

    def __init__(
        self,
        matchups: MatchupRepository,
        matches: MatchRepository,
        messenger: Messenger | None = None,
        *,
        announce_channel_id: str | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.matchups = matchups
        self.matches = matches
        self.messenger = messenger
        self.announce_channel_id = announce_channel_id
        self._rng = rng or random.Random()
        # pod name (lower-cased) → lock, and how many callers hold or wait on it
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _pod_lock(self, draft_name: str) -> AsyncIterator[None]:
        """Serialise bracket writes for one pod. The lock is dropped once unused."""
        key = draft_name.lower()
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if self._lock_users[key] == 0:
                del self._lock_users[key]
                del self._locks[key]

    # ==================== Rounds ====================

    async def create_round_one(self, draft_name: str, user_ids: Sequence[str]) -> RoundResult:
        """Shuffle the pod and persist four open matches."""
        players = list(user_ids)
        if len(players) != POD_SIZE or len(set(players)) != POD_SIZE:
            logger.error(f"Round 1 for '{draft_name}' needs {POD_SIZE} players, got {len(players)}")
            return RoundResult(
                ok=False,
                error=f"Round 1 needs exactly {POD_SIZE} distinct players, got {len(players)}.",
            )

        self._rng.shuffle(players)
        rows = [
            MatchupRow(
                draft_name=draft_name,
                round=1,
                match_num=i + 1,
                p1=players[i * 2],
                p2=players[i * 2 + 1],
            )
            for i in range(MATCHES_PER_ROUND)
        ]
        await self.matchups.add_round(rows)
        logger.info(f"Created Round 1 matchups ({len(rows)} matches) for '{draft_name}'")
        await self._announce(draft_name, 1, rows)
        return RoundResult(ok=True, round=1, rows=rows)

    async def advance_if_ready(self, draft_name: str) -> int | None:
        """Create the next round if the previous one is resolved. Returns the round created."""
        async with self._pod_lock(draft_name):
            created, _ = await self._advance(draft_name)
        return created

    async def _advance(self, draft_name: str) -> tuple[int | None, bool]:
        rounds = rows_by_round(await self.matchups.list_for_draft(draft_name))
        if is_round_complete(rounds[FINAL_ROUND]):
            return None, True

        for round_num in range(1, FINAL_ROUND):
            if not is_round_complete(rounds[round_num]) or rounds[round_num + 1]:
                continue
            try:
                new_rows = build_next_round(rounds[round_num])
            except ValueError as e:
                logger.error(f"Cannot build round {round_num + 1} for '{draft_name}': {e}")
                return None, False
            await self.matchups.add_round(new_rows)
            logger.info(f"Created Round {round_num + 1} matchups for '{draft_name}'")
            await self._announce(new_rows[0].draft_name, round_num + 1, new_rows)
            return round_num + 1, False

        return None, False

    async def _announce(self, draft_name: str, round_num: int, rows: Sequence[MatchupRow]) -> None:
        if self.messenger is None or not self.announce_channel_id:
            return
        lines = [f"Match {row.match_num}: {mention(row.p1)} vs {mention(row.p2)}" for row in rows]
        text = f"**Round {round_num} matchups for `{draft_name}`:**\n" + "\n".join(lines)
        try:
            await self.messenger.send_to_channel(self.announce_channel_id, text)
        except Exception as e:
            logger.error(f"Failed to send round announcement: {e}")

    # ==================== Reports ====================

    async def report_match(
        self, draft_name: str, winner_id: str, loser_id: str, result: str
    ) -> ReportResult:
        """Record a result against the open matchup pairing exactly these two players."""
        if winner_id == loser_id:
            return ReportResult(ok=False, error="Winner and loser must be different players.")
        if result not in MATCH_RESULTS:
            return ReportResult(ok=False, error="Result must be `2-0` or `2-1`.")

        async with self._pod_lock(draft_name):
            rows = await self.matchups.list_for_draft(draft_name)
            target = next(
                (r for r in rows if not r.completed and r.pairs(winner_id, loser_id)), None
            )
            if target is None or target.sheet_row is None:
                return ReportResult(ok=False, error=NO_MATCHUP_ERROR)

            # Confirm the row is still open right before writing to it
            current = await self.matchups.get_row(target.sheet_row)
            if current is None or current.completed or not current.pairs(winner_id, loser_id):
                logger.warning(
                    f"Matchup row {target.sheet_row} for '{draft_name}' changed before write"
                )
                return ReportResult(ok=False, error=NO_MATCHUP_ERROR)

            await self.matches.record(
                MatchRecord(
                    winner_id=winner_id,
                    loser_id=loser_id,
                    result=result,
                    draft_name=target.draft_name,
                )
            )
            await self.matchups.set_result(target.sheet_row, winner_id, result)
            logger.info(
                f"Match {target.match_num} of '{target.draft_name}': "
                f"{winner_id} beat {loser_id} {result}"
            )

            try:
                created, complete = await self._advance(draft_name)
            except Exception:
                # the result is already stored; the next status read retries the advance
                logger.exception(f"Failed to advance '{target.draft_name}' after a report")
                return ReportResult(
                    ok=True,
                    warning=(
                        "The next round could not be created yet. "
                        f"Run `!status {target.draft_name}` to retry."
                    ),
                )

        return ReportResult(ok=True, round_created=created, complete=complete)

    # ==================== Status ====================

    async def get_status(self, draft_name: str) -> DraftStatus:
        """Matches of the earliest unresolved round (or the last round once all are done).

        A resolved round whose successor is missing (an earlier advance failed)
        gets its next round created first.
        """
        try:
            await self.advance_if_ready(draft_name)
        except Exception as e:
            logger.warning(f"Could not advance '{draft_name}' during status: {e}")

        rows = await self.matchups.list_for_draft(draft_name)
        if not rows:
            return DraftStatus(ok=False, error=f"No matchups found for draft `{draft_name}`.")

        rounds = rows_by_round(rows)
        present = [n for n, round_rows in rounds.items() if round_rows]
        if not present:
            return DraftStatus(ok=False, error=f"No matchups found for draft `{draft_name}`.")

        active = next((n for n in present if not is_round_complete(rounds[n])), present[-1])
        matches = [
            MatchStatus(
                match_num=row.match_num,
                p1=row.p1,
                p2=row.p2,
                completed=row.completed,
                winner=row.winner or None,
                result=row.result or None,
            )
            for row in rounds[active]
        ]
        return DraftStatus(
            ok=True,
            round=active,
            matches=matches,
            complete=is_round_complete(rounds[FINAL_ROUND]),
        )
