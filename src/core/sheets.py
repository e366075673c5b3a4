from __future__ import annotations

from threading import Lock
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote, urlencode

import httpx

from src.core.config import get_settings

SheetRow = List[Any]

# Columns A..Z, matching the widest sheet in the store.
LAST_COLUMN = "Z"


class SheetsClient:
    """Thin client for the Google Sheets v4 values API.

    Reads return row 0 as the header followed by positional, untyped rows.
    """

    _shared_client: httpx.Client | None = None
    _client_lock: Lock = Lock()

    def __init__(self) -> None:
        settings = get_settings()
        if not settings.sheets_spreadsheet_id:
            raise ValueError("SHEETS_SPREADSHEET_ID is required")
        if not settings.sheets_api_key and not settings.sheets_access_token:
            raise ValueError("Sheets API key or access token is required")
        self.base_url = (
            settings.sheets_base_url.rstrip("/") + f"/spreadsheets/{settings.sheets_spreadsheet_id}/values"
        )
        self.api_key = settings.sheets_api_key
        self.access_token = settings.sheets_access_token
        self._client = self._get_shared_client(settings.sheets_timeout_seconds)

    @classmethod
    def _get_shared_client(cls, timeout: float) -> httpx.Client:
        if cls._shared_client is not None:
            return cls._shared_client
        with cls._client_lock:
            if cls._shared_client is None:
                cls._shared_client = httpx.Client(
                    timeout=timeout,
                    limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
                )
        return cls._shared_client

    def _headers(self, json_body: bool = False) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _url(self, sheet_range: str, suffix: str = "", params: Optional[List[Tuple[str, str]]] = None) -> str:
        query: List[Tuple[str, str]] = list(params or [])
        if self.api_key and not self.access_token:
            query.append(("key", self.api_key))
        url = f"{self.base_url}/{quote(sheet_range, safe='!:')}{suffix}"
        if query:
            url = f"{url}?{urlencode(query, doseq=True)}"
        return url

    def read_rows(self, sheet: str) -> List[SheetRow]:
        url = self._url(
            f"{sheet}!A:{LAST_COLUMN}",
            params=[("majorDimension", "ROWS"), ("valueRenderOption", "FORMATTED_VALUE")],
        )
        response = self._client.get(url, headers=self._headers())
        response.raise_for_status()
        data = response.json()
        values = data.get("values") if isinstance(data, dict) else None
        return [list(row) for row in values] if isinstance(values, list) else []

    def append_rows(self, sheet: str, rows: Sequence[Sequence[Any]]) -> int:
        if not rows:
            return 0
        url = self._url(
            f"{sheet}!A:{LAST_COLUMN}",
            suffix=":append",
            params=[("valueInputOption", "USER_ENTERED"), ("insertDataOption", "INSERT_ROWS")],
        )
        response = self._client.post(
            url,
            headers=self._headers(json_body=True),
            json={"values": [list(row) for row in rows]},
        )
        response.raise_for_status()
        return len(rows)

    def update_row(self, sheet: str, row_number: int, row: Sequence[Any]) -> None:
        """Overwrite one row; ``row_number`` is 1-based as in the sheet UI."""
        sheet_range = f"{sheet}!A{row_number}:{LAST_COLUMN}{row_number}"
        url = self._url(sheet_range, params=[("valueInputOption", "USER_ENTERED")])
        response = self._client.put(
            url,
            headers=self._headers(json_body=True),
            json={"range": sheet_range, "majorDimension": "ROWS", "values": [list(row)]},
        )
        response.raise_for_status()

    def clear_rows(self, sheet: str, keep_header: bool = True) -> None:
        start_row = 2 if keep_header else 1
        url = self._url(f"{sheet}!A{start_row}:{LAST_COLUMN}", suffix=":clear")
        response = self._client.post(url, headers=self._headers(json_body=True), json={})
        response.raise_for_status()
