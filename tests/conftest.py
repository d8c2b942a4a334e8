from __future__ import annotations

import asyncio
import re
from collections.abc import Callable
from typing import Any

import pytest

from draftbot.services.messaging import Replied, Reply, TimedOut
from draftbot.shared.sheets import SheetsError

SHEET_ID = "sheet-test"

_CELL_RE = re.compile(r"^(?P<col>[A-Z]+)(?P<row>\d*)$")


def _column_index(letters: str) -> int:
    index = 0
    for char in letters:
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


def _parse_range(range_: str) -> tuple[str, int, int, int | None, int]:
    """'Sheet'!A2:G -> (sheet, first_row, first_col, last_row | None, last_col), 0-based."""
    sheet_part, cells = range_.rsplit("!", 1)
    if sheet_part.startswith("'") and sheet_part.endswith("'"):
        sheet_part = sheet_part[1:-1].replace("''", "'")
    start, _, end = cells.partition(":")
    end = end or start

    first = _CELL_RE.match(start)
    last = _CELL_RE.match(end)
    assert first and last, f"unsupported range {range_}"

    first_row = int(first["row"]) - 1 if first["row"] else 0
    last_row = int(last["row"]) - 1 if last["row"] else None
    return sheet_part, first_row, _column_index(first["col"]), last_row, _column_index(last["col"])


def _trim(row: list[Any]) -> list[Any]:
    trimmed = list(row)
    while trimmed and trimmed[-1] in ("", None):
        trimmed.pop()
    return trimmed


class FakeRowStore:
    """In-memory spreadsheet that answers like the Sheets values API.

    Trailing empty cells and trailing empty rows are dropped from reads.
    """

    def __init__(self) -> None:
        self.sheets: dict[str, list[list[Any]]] = {}
        self.calls: list[tuple[str, str]] = []
        self.failing: set[str] = set()

    def _check(self, op: str, sheet: str) -> None:
        self.calls.append((op, sheet))
        if sheet in self.failing:
            raise SheetsError(f"{op} on '{sheet}' failed", status_code=503)

    def seed(self, sheet: str, rows: list[list[Any]]) -> None:
        self.sheets[sheet] = [list(row) for row in rows]

    def rows(self, sheet: str) -> list[list[Any]]:
        """Data rows (header excluded), trimmed."""
        return [_trim(row) for row in self.sheets.get(sheet, [])[1:]]

    async def read(
        self,
        spreadsheet_id: str,
        range_: str,
        value_render_option: str = "FORMATTED_VALUE",
    ) -> list[list[Any]]:
        sheet, first_row, first_col, last_row, last_col = _parse_range(range_)
        self._check("read", sheet)
        grid = self.sheets.get(sheet, [])
        stop = len(grid) if last_row is None else min(last_row + 1, len(grid))
        values = [_trim(grid[i][first_col : last_col + 1]) for i in range(first_row, stop)]
        while values and not values[-1]:
            values.pop()
        return values

    async def append(
        self,
        spreadsheet_id: str,
        range_: str,
        rows: list[list[Any]],
        value_input_option: str = "RAW",
    ) -> None:
        sheet, *_ = _parse_range(range_)
        self._check("append", sheet)
        grid = self.sheets.setdefault(sheet, [])
        while grid and not _trim(grid[-1]):
            grid.pop()
        grid.extend(list(row) for row in rows)

    async def overwrite(
        self,
        spreadsheet_id: str,
        range_: str,
        rows: list[list[Any]],
        value_input_option: str = "RAW",
    ) -> None:
        sheet, first_row, first_col, _, _ = _parse_range(range_)
        self._check("overwrite", sheet)
        grid = self.sheets.setdefault(sheet, [])
        for offset, values in enumerate(rows):
            index = first_row + offset
            while len(grid) <= index:
                grid.append([])
            row = grid[index]
            while len(row) < first_col + len(values):
                row.append("")
            row[first_col : first_col + len(values)] = list(values)


class FakeMessenger:
    """Records sends; replies are scripted per user.

    A user with no scripted reply left never answers, so ``collect_reply``
    waits out the window and returns ``TimedOut``.
    """

    def __init__(self) -> None:
        self.direct: list[tuple[str, str]] = []
        self.channel: list[tuple[str, str]] = []
        self.prompts: list[tuple[str, str | None]] = []
        self.dm_blocked: set[str] = set()
        self.replies: dict[str, list[str]] = {}
        self.names: dict[str, str] = {}

    async def send_direct(self, user_id: str, text: str) -> bool:
        if user_id in self.dm_blocked:
            return False
        self.direct.append((user_id, text))
        return True

    async def send_to_channel(self, channel_id: str, text: str) -> bool:
        self.channel.append((channel_id, text))
        return True

    async def collect_reply(
        self,
        user_id: str,
        channel_id: str | None,
        accept: Callable[[str], bool],
        timeout: float,
    ) -> Reply:
        self.prompts.append((user_id, channel_id))
        scripted = self.replies.get(user_id)
        while scripted:
            content = scripted.pop(0)
            if accept(content):
                return Replied(content)
        await asyncio.sleep(timeout)
        return TimedOut()

    async def fetch_display_name(self, user_id: str) -> str | None:
        return self.names.get(user_id)

    def channel_texts(self) -> list[str]:
        return [text for _, text in self.channel]


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll until ``predicate`` holds; timers run on the real loop."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def store() -> FakeRowStore:
    return FakeRowStore()


@pytest.fixture
def messenger() -> FakeMessenger:
    return FakeMessenger()
