"""Google Sheets row store used by every draftbot repository.

All durable state (Draft Log, Matchups, Matches, Player Database) lives in a
single spreadsheet. This module is the only place that talks to the Sheets
REST API:

  - ``read``      : values.get
  - ``append``    : values.append (INSERT_ROWS)
  - ``overwrite`` : values.update

Transient failures (network errors, 408/429, 5xx) are retried with
exponential backoff. A 4xx "bad request" class error will not succeed on a
retry, so it is raised immediately as ``SheetsRequestError``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import quote

import google.auth
import httpx
from google.auth.transport.requests import Request

logger = logging.getLogger(__name__)

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"
SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

# Status codes worth another attempt; every other 4xx fails fast
RETRYABLE_STATUS = frozenset({408, 429})


class SheetsError(Exception):
    """Row store call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SheetsRequestError(SheetsError):
    """Row store rejected the request itself; retrying will not help."""


class RowStore(Protocol):
    """Typed read/append/overwrite against a remote tabular store."""

    async def read(
        self,
        spreadsheet_id: str,
        range_: str,
        value_render_option: str = "FORMATTED_VALUE",
    ) -> list[list[Any]]: ...

    async def append(
        self,
        spreadsheet_id: str,
        range_: str,
        rows: list[list[Any]],
        value_input_option: str = "RAW",
    ) -> None: ...

    async def overwrite(
        self,
        spreadsheet_id: str,
        range_: str,
        rows: list[list[Any]],
        value_input_option: str = "RAW",
    ) -> None: ...


def sheet_range(sheet: str, cells: str) -> str:
    """Build an A1 range, quoting the sheet name (names may contain spaces)."""
    escaped = sheet.replace("'", "''")
    return f"'{escaped}'!{cells}"


@dataclass
class RetryConfig:
    """Retry policy for row store calls."""

    max_retries: int = 5
    retry_delay: float = 1.0
    max_delay: float = 30.0
    timeout: float = 15.0

    def delay_for(self, attempt: int) -> float:
        return min(self.retry_delay * (2 ** (attempt - 1)), self.max_delay)


class SheetsClient:
    """Async Google Sheets values client with retry.

    Credentials default to Google application default credentials and are
    refreshed off the event loop when they expire.
    """

    def __init__(
        self,
        credentials: Any | None = None,
        config: RetryConfig | None = None,
        http: httpx.AsyncClient | None = None,
    ):
        self.config = config or RetryConfig()
        self._credentials = credentials
        self._http = http or httpx.AsyncClient(timeout=self.config.timeout)

    async def close(self) -> None:
        """Close the shared HTTP client. Call on bot shutdown."""
        await self._http.aclose()

    # ── Auth ─────────────────────────────────────────────────────────

    async def _access_token(self) -> str:
        if self._credentials is None:
            self._credentials, project = await asyncio.to_thread(
                google.auth.default, scopes=SHEETS_SCOPES
            )
            logger.info(f"Loaded Google application default credentials (project={project})")

        if not self._credentials.valid:
            await asyncio.to_thread(self._credentials.refresh, Request())

        return str(self._credentials.token)

    # ── Transport ────────────────────────────────────────────────────

    @staticmethod
    def _values_url(spreadsheet_id: str, range_: str, suffix: str = "") -> str:
        return f"{SHEETS_API_URL}/{spreadsheet_id}/values/{quote(range_, safe='')}{suffix}"

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        token = await self._access_token()
        response = await self._http.request(
            method,
            url,
            params=params,
            json=body,
            headers={"Authorization": f"Bearer {token}"},
        )

        status = response.status_code
        if status >= 500 or status in RETRYABLE_STATUS:
            raise SheetsError(f"Sheets API {method} returned {status}", status_code=status)
        if status >= 400:
            raise SheetsRequestError(
                f"Sheets API {method} rejected ({status}): {response.text[:200]}",
                status_code=status,
            )

        if not response.content:
            return {}
        return dict(response.json())

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        cfg = self.config
        last_exc: Exception | None = None

        for attempt in range(1, cfg.max_retries + 1):
            try:
                return await self._send(method, url, params=params, body=body)
            except SheetsRequestError as e:
                logger.error(f"Sheets request failed without retry: {e}")
                raise
            except asyncio.CancelledError:
                raise
            except (httpx.TransportError, SheetsError) as e:
                last_exc = e
                if attempt < cfg.max_retries:
                    delay = cfg.delay_for(attempt)
                    logger.warning(
                        "Sheets attempt %d/%d failed: %s: %s, retrying in %.1fs…",
                        attempt,
                        cfg.max_retries,
                        type(e).__name__,
                        e,
                        delay,
                    )
                    await asyncio.sleep(delay)

        if last_exc is None:
            raise SheetsError(f"Sheets {method} not attempted (max_retries={cfg.max_retries})")
        logger.error(f"Sheets call failed after {cfg.max_retries} attempts: {last_exc}")
        raise last_exc

    # ── RowStore ─────────────────────────────────────────────────────

    async def read(
        self,
        spreadsheet_id: str,
        range_: str,
        value_render_option: str = "FORMATTED_VALUE",
    ) -> list[list[Any]]:
        data = await self._request(
            "GET",
            self._values_url(spreadsheet_id, range_),
            params={"valueRenderOption": value_render_option},
        )
        return [list(row) for row in data.get("values", [])]

    async def append(
        self,
        spreadsheet_id: str,
        range_: str,
        rows: list[list[Any]],
        value_input_option: str = "RAW",
    ) -> None:
        await self._request(
            "POST",
            self._values_url(spreadsheet_id, range_, ":append"),
            params={"valueInputOption": value_input_option, "insertDataOption": "INSERT_ROWS"},
            body={"values": rows},
        )

    async def overwrite(
        self,
        spreadsheet_id: str,
        range_: str,
        rows: list[list[Any]],
        value_input_option: str = "RAW",
    ) -> None:
        await self._request(
            "PUT",
            self._values_url(spreadsheet_id, range_),
            params={"valueInputOption": value_input_option},
            body={"range": range_, "majorDimension": "ROWS", "values": rows},
        )
