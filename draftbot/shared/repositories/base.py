"""Common sheet repository: header management and whole-table reads."""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from draftbot.shared.sheets import RowStore, sheet_range

logger = logging.getLogger(__name__)


def column_letter(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA."""
    letters = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


class SheetRepository:
    """Base for repositories backed by one sheet with a header row.

    Subclasses set ``SHEET`` and ``HEADERS``. Data rows start at row 2.
    """

    SHEET: ClassVar[str]
    HEADERS: ClassVar[tuple[str, ...]]

    def __init__(self, store: RowStore, spreadsheet_id: str) -> None:
        self.store = store
        self.spreadsheet_id = spreadsheet_id

    @property
    def last_column(self) -> str:
        return column_letter(len(self.HEADERS) - 1)

    def range(self, cells: str) -> str:
        return sheet_range(self.SHEET, cells)

    async def ensure_headers(self) -> None:
        """Write the header row if the first cell does not already hold it."""
        header_range = self.range(f"A1:{self.last_column}1")
        values = await self.store.read(self.spreadsheet_id, header_range, "UNFORMATTED_VALUE")
        has_headers = bool(
            values and values[0] and str(values[0][0]).strip() == self.HEADERS[0]
        )
        if not has_headers:
            await self.store.overwrite(self.spreadsheet_id, header_range, [list(self.HEADERS)])
            logger.info(f"Wrote headers to '{self.SHEET}' sheet")

    async def read_data(self, first: str = "A", last: str | None = None) -> list[list[Any]]:
        """Read every data row (row 2 onwards) between two columns."""
        cells = f"{first}2:{last or self.last_column}"
        return await self.store.read(self.spreadsheet_id, self.range(cells), "UNFORMATTED_VALUE")

    async def append_rows(self, rows: list[list[Any]]) -> None:
        if not rows:
            return
        await self.ensure_headers()
        await self.store.append(
            self.spreadsheet_id, self.range(f"A:{self.last_column}"), rows
        )
