"""
Spreadsheet abstraction for Google Sheets and in-memory testing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Protocol

import gspread
import requests
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials
from gspread.exceptions import GSpreadException

from cinema_backend.errors import SheetClientError

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
SUGGESTION_COLUMNS = ("titulo", "usuario", "timestamp")


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class Suggestion:
    titulo: str
    usuario: str
    timestamp: str = field(default_factory=utc_timestamp)

    def as_row(self) -> dict:
        return {
            "titulo": self.titulo,
            "usuario": self.usuario,
            "timestamp": self.timestamp,
        }


class SheetClient(Protocol):
    """Defines the operations the API needs from the suggestions spreadsheet."""

    def append_suggestion(self, suggestion: Suggestion) -> None:
        ...


@dataclass
class InMemorySheetClient:
    """Test double for spreadsheet interactions."""

    rows: List[dict] = field(default_factory=list)

    def append_suggestion(self, suggestion: Suggestion) -> None:
        self.rows.append(suggestion.as_row())


class GoogleSheetClient:
    """
    Appends rows to the first worksheet of a Google spreadsheet using
    service-account credentials.
    """

    def __init__(self, spreadsheet: str, credentials_file: str):
        if not spreadsheet:
            raise ValueError("SHEETS_URL is required for GoogleSheetClient")
        self.spreadsheet = spreadsheet
        self.credentials_file = credentials_file
        self._client: Optional[gspread.Client] = None

    def _gspread_client(self) -> gspread.Client:
        if self._client is None:
            credentials = Credentials.from_service_account_file(
                self.credentials_file, scopes=SHEETS_SCOPES
            )
            self._client = gspread.authorize(credentials)
        return self._client

    def _open(self) -> gspread.Spreadsheet:
        client = self._gspread_client()
        if self.spreadsheet.startswith("http"):
            return client.open_by_url(self.spreadsheet)
        return client.open_by_key(self.spreadsheet)

    def append_suggestion(self, suggestion: Suggestion) -> None:
        try:
            worksheet = self._open().get_worksheet(0)
            header = worksheet.row_values(1)
            if not header:
                logger.info("Worksheet has no header row, writing default columns")
                header = list(SUGGESTION_COLUMNS)
                worksheet.append_row(header)
            # Values are placed under matching header cells; other cells stay blank.
            row = suggestion.as_row()
            worksheet.append_row(
                [row.get(column, "") for column in header], value_input_option="RAW"
            )
        except (
            GSpreadException,
            GoogleAuthError,
            OSError,
            ValueError,
            requests.exceptions.RequestException,
        ) as exc:
            raise SheetClientError(f"append suggestion failed: {exc}") from exc
