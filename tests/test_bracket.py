from __future__ import annotations

import random

import pytest
from conftest import SHEET_ID, FakeMessenger, FakeRowStore

from draftbot.services.bracket import (
    NO_MATCHUP_ERROR,
    BracketEngine,
    build_next_round,
    is_round_complete,
)
from draftbot.shared.models import MatchupRow
from draftbot.shared.repositories import MatchRepository, MatchupRepository

PLAYERS = [f"p{n}" for n in range(1, 9)]
ANNOUNCE = "matchmaking"


def _engine(store: FakeRowStore, messenger: FakeMessenger | None = None) -> BracketEngine:
    return BracketEngine(
        MatchupRepository(store, SHEET_ID),
        MatchRepository(store, SHEET_ID),
        messenger,
        announce_channel_id=ANNOUNCE if messenger else None,
        rng=random.Random(7),
    )


def _seed_round_one(store: FakeRowStore, name: str = "CUBE") -> None:
    store.seed(
        "Matchups",
        [
            list(MatchupRepository.HEADERS),
            [name, 1, 1, "p1", "p2"],
            [name, 1, 2, "p3", "p4"],
            [name, 1, 3, "p5", "p6"],
            [name, 1, 4, "p7", "p8"],
        ],
    )


def _pairs(store: FakeRowStore, round_num: int) -> list[tuple[str, str]]:
    return [
        (row[3], row[4]) for row in store.rows("Matchups") if int(row[1]) == round_num
    ]


async def _play_round(engine: BracketEngine, store: FakeRowStore, round_num: int):
    """Player 1 wins every match of a round, 2-0."""
    outcome = None
    for p1, p2 in _pairs(store, round_num):
        outcome = await engine.report_match("CUBE", p1, p2, "2-0")
        assert outcome.ok, outcome.error
    return outcome


@pytest.mark.asyncio
async def test_round_one_pairs_every_player_once(
    store: FakeRowStore, messenger: FakeMessenger
) -> None:
    result = await _engine(store, messenger).create_round_one("CUBE", PLAYERS)

    assert result.ok and result.round == 1
    rows = store.rows("Matchups")
    assert store.sheets["Matchups"][0] == list(MatchupRepository.HEADERS)
    assert [row[2] for row in rows] == [1, 2, 3, 4]
    assert all(row[0] == "CUBE" and row[1] == 1 for row in rows)
    assert sorted(p for row in rows for p in row[3:5]) == sorted(PLAYERS)

    channel, text = messenger.channel[0]
    assert channel == ANNOUNCE
    assert text.startswith("**Round 1 matchups for `CUBE`:**")
    assert f"Match 1: <@{rows[0][3]}> vs <@{rows[0][4]}>" in text


@pytest.mark.asyncio
async def test_round_one_requires_eight_distinct_players(store: FakeRowStore) -> None:
    engine = _engine(store)

    short = await engine.create_round_one("CUBE", PLAYERS[:7])
    duplicated = await engine.create_round_one("CUBE", PLAYERS[:7] + ["p1"])

    assert not short.ok and not duplicated.ok
    assert "Matchups" not in store.sheets


@pytest.mark.asyncio
async def test_report_records_match_and_fills_row(store: FakeRowStore) -> None:
    _seed_round_one(store)
    engine = _engine(store)

    outcome = await engine.report_match("CUBE", "p2", "p1", "2-1")

    assert outcome.ok
    assert outcome.round_created is None
    assert store.rows("Matches") == [["p2", "p1", "2-1", "CUBE", "Yes"]]
    assert store.rows("Matchups")[0] == ["CUBE", 1, 1, "p1", "p2", "p2", "2-1"]


@pytest.mark.asyncio
async def test_report_rejects_replay_and_unpaired_players(store: FakeRowStore) -> None:
    _seed_round_one(store)
    engine = _engine(store)
    await engine.report_match("CUBE", "p1", "p2", "2-0")

    replay = await engine.report_match("CUBE", "p2", "p1", "2-0")
    unpaired = await engine.report_match("CUBE", "p1", "p3", "2-0")
    other_pod = await engine.report_match("TLA", "p3", "p4", "2-0")

    for outcome in (replay, unpaired, other_pod):
        assert not outcome.ok
        assert outcome.error == NO_MATCHUP_ERROR
    assert len(store.rows("Matches")) == 1


@pytest.mark.asyncio
async def test_report_validates_input(store: FakeRowStore) -> None:
    _seed_round_one(store)
    engine = _engine(store)

    self_play = await engine.report_match("CUBE", "p1", "p1", "2-0")
    bad_result = await engine.report_match("CUBE", "p1", "p2", "1-1")

    assert not self_play.ok and "different" in self_play.error
    assert not bad_result.ok and "2-0" in bad_result.error
    assert "Matches" not in store.sheets


@pytest.mark.asyncio
async def test_report_is_case_insensitive_and_keeps_stored_name(store: FakeRowStore) -> None:
    _seed_round_one(store, name="Cube")
    engine = _engine(store)

    outcome = await engine.report_match("cube", "p3", "p4", "2-0")

    assert outcome.ok
    assert store.rows("Matches") == [["p3", "p4", "2-0", "Cube", "Yes"]]


@pytest.mark.asyncio
async def test_report_rechecks_row_before_writing(store: FakeRowStore, monkeypatch) -> None:
    _seed_round_one(store)
    engine = _engine(store)

    async def _already_reported(sheet_row: int) -> MatchupRow:
        return MatchupRow("CUBE", 1, 1, "p1", "p2", winner="p2", result="2-0", sheet_row=sheet_row)

    monkeypatch.setattr(engine.matchups, "get_row", _already_reported)

    outcome = await engine.report_match("CUBE", "p1", "p2", "2-0")

    assert outcome.error == NO_MATCHUP_ERROR
    assert "Matches" not in store.sheets


@pytest.mark.asyncio
async def test_full_bracket_progression(store: FakeRowStore, messenger: FakeMessenger) -> None:
    _seed_round_one(store)
    engine = _engine(store, messenger)

    last = await _play_round(engine, store, 1)
    assert last.round_created == 2
    # W1 v W2, W3 v W4, L1 v L2, L3 v L4
    assert _pairs(store, 2) == [("p1", "p3"), ("p5", "p7"), ("p2", "p4"), ("p6", "p8")]
    assert [row[2] for row in store.rows("Matchups") if row[1] == 2] == [5, 6, 7, 8]

    last = await _play_round(engine, store, 2)
    assert last.round_created == 3
    # W5 v W6, W7 v W8, L5 v L6, L7 v L8
    assert _pairs(store, 3) == [("p1", "p5"), ("p2", "p6"), ("p3", "p7"), ("p4", "p8")]

    last = await _play_round(engine, store, 3)
    assert last.round_created is None
    assert last.complete
    assert len(store.rows("Matches")) == 12
    assert len(store.rows("Matchups")) == 12
    assert [text.split("\n")[0] for _, text in messenger.channel] == [
        "**Round 2 matchups for `CUBE`:**",
        "**Round 3 matchups for `CUBE`:**",
    ]


@pytest.mark.asyncio
async def test_next_round_waits_for_all_four_results(store: FakeRowStore) -> None:
    _seed_round_one(store)
    engine = _engine(store)

    for p1, p2 in [("p1", "p2"), ("p3", "p4"), ("p5", "p6")]:
        outcome = await engine.report_match("CUBE", p1, p2, "2-0")
        assert outcome.round_created is None

    assert await engine.advance_if_ready("CUBE") is None
    assert _pairs(store, 2) == []


@pytest.mark.asyncio
async def test_failed_advance_keeps_result_and_status_recovers(
    store: FakeRowStore, monkeypatch
) -> None:
    _seed_round_one(store)
    engine = _engine(store)
    for p1, p2 in [("p1", "p2"), ("p3", "p4"), ("p5", "p6")]:
        await engine.report_match("CUBE", p1, p2, "2-0")

    async def _append_failed(rows) -> None:
        raise RuntimeError("append failed")

    monkeypatch.setattr(engine.matchups, "add_round", _append_failed)
    outcome = await engine.report_match("CUBE", "p7", "p8", "2-1")

    assert outcome.ok
    assert outcome.round_created is None
    assert "!status CUBE" in outcome.warning
    assert store.rows("Matchups")[3] == ["CUBE", 1, 4, "p7", "p8", "p7", "2-1"]
    assert _pairs(store, 2) == []

    # still failing: status falls back to the resolved round
    status = await engine.get_status("CUBE")
    assert status.ok and status.round == 1

    monkeypatch.undo()
    status = await engine.get_status("CUBE")

    assert status.round == 2
    assert _pairs(store, 2) == [("p1", "p3"), ("p5", "p7"), ("p2", "p4"), ("p6", "p8")]
    assert (await engine.report_match("CUBE", "p1", "p3", "2-0")).ok


@pytest.mark.asyncio
async def test_status_does_not_duplicate_an_existing_round(store: FakeRowStore) -> None:
    _seed_round_one(store)
    engine = _engine(store)
    await _play_round(engine, store, 1)

    await engine.get_status("CUBE")
    await engine.get_status("CUBE")

    assert len(_pairs(store, 2)) == 4


@pytest.mark.asyncio
async def test_pod_locks_are_released(store: FakeRowStore) -> None:
    _seed_round_one(store)
    engine = _engine(store)

    await engine.report_match("CUBE", "p1", "p2", "2-0")
    await engine.report_match("cube", "p1", "p2", "2-0")
    await engine.get_status("Cube")

    assert engine._locks == {}
    assert engine._lock_users == {}


@pytest.mark.asyncio
async def test_status_tracks_active_round(store: FakeRowStore) -> None:
    _seed_round_one(store)
    engine = _engine(store)
    await engine.report_match("CUBE", "p1", "p2", "2-1")

    status = await engine.get_status("cube")

    assert status.ok and status.round == 1 and not status.complete
    first = status.matches[0]
    assert (first.completed, first.winner, first.result) == (True, "p1", "2-1")
    assert status.matches[1].completed is False
    assert status.matches[1].winner is None

    await _play_round(engine, store, 1)
    assert (await engine.get_status("CUBE")).round == 2


@pytest.mark.asyncio
async def test_status_reports_completion(store: FakeRowStore) -> None:
    _seed_round_one(store)
    engine = _engine(store)
    for round_num in (1, 2, 3):
        await _play_round(engine, store, round_num)

    status = await engine.get_status("CUBE")

    assert status.ok and status.complete and status.round == 3


@pytest.mark.asyncio
async def test_status_for_unknown_draft(store: FakeRowStore) -> None:
    status = await _engine(store).get_status("NOPE")

    assert not status.ok
    assert status.error == "No matchups found for draft `NOPE`."


@pytest.mark.asyncio
async def test_malformed_rows_are_ignored(store: FakeRowStore) -> None:
    _seed_round_one(store)
    store.sheets["Matchups"].extend(
        [
            ["CUBE", "one", 5, "p1", "p3"],
            ["CUBE", 2],
            [],
            ["CUBE", 2, 5, "", "p3"],
        ]
    )
    engine = _engine(store)

    rows = await engine.matchups.list_for_draft("CUBE")
    status = await engine.get_status("CUBE")

    assert len(rows) == 4
    assert status.round == 1 and len(status.matches) == 4


def test_build_next_round_rejects_incomplete_round() -> None:
    rows = [MatchupRow("CUBE", 1, n, f"a{n}", f"b{n}") for n in (1, 2, 3, 4)]

    assert not is_round_complete(rows)
    with pytest.raises(ValueError):
        build_next_round(rows)


def test_build_next_round_rejects_bad_numbering() -> None:
    rows = [
        MatchupRow("CUBE", 1, n, f"a{n}", f"b{n}", winner=f"a{n}", result="2-0")
        for n in (1, 2, 3, 9)
    ]

    with pytest.raises(ValueError):
        build_next_round(rows)


def test_matchup_row_parses_sheet_numbers() -> None:
    row = MatchupRow.from_values(["CUBE", "2", 6.0, "p1", "p2"], sheet_row=7)

    assert row is not None
    assert (row.round, row.match_num, row.sheet_row) == (2, 6, 7)
    assert not row.completed
    assert MatchupRow.from_values(["CUBE", 1, 1, "p1"]) is None
