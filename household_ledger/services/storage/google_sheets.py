"""
Google Sheets Remote Snapshot Store

DESIGN DECISION: Google Sheets is used as the shared household store because:
1. Household members can look at the raw state directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- A cell holds at most 50,000 characters, which caps the snapshot size
- No transactions or conditional writes (an upsert blindly overwrites)
- The gspread client is blocking, so calls run in a worker thread

Layout: one worksheet, one row per household:
    household_id | data_json | updated_at
"""

import asyncio
import json
from datetime import datetime
from typing import Any, Optional

import gspread
from google.oauth2.service_account import Credentials

from household_ledger.config import GoogleSheetsSettings, get_settings
from household_ledger.services.storage.interface import (
    ConnectionError,
    RemoteSnapshotStore,
    StorageError,
)


# Column mappings for the household sheet
HOUSEHOLD_COLUMNS = [
    "household_id",
    "data_json",
    "updated_at",
]

MAX_CELL_CHARS = 50000


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet creation.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_household_sheet(self) -> gspread.Worksheet:
        """Get or create the household worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.household_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.household_sheet_name,
                rows=100,
                cols=len(HOUSEHOLD_COLUMNS),
            )
            sheet.append_row(HOUSEHOLD_COLUMNS)
        return sheet


class GoogleSheetsSnapshotStore(RemoteSnapshotStore):
    """
    Google Sheets implementation of the household snapshot store.

    The snapshot is JSON-serialized into a single cell.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _find_row(
        all_rows: list[list[str]],
        household_id: str,
    ) -> Optional[tuple[int, list[str]]]:
        """Return (1-based sheet row number, row) for a household."""
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is header
            if row and row[0] == household_id:
                return idx, row
        return None

    def _fetch_sync(self, household_id: str) -> Optional[Any]:
        try:
            sheet = self._client.get_household_sheet()
            found = self._find_row(sheet.get_all_values(), household_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read household snapshot: {e}")

        if found is None:
            return None

        _, row = found
        raw = row[1] if len(row) > 1 else ""
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Household snapshot is not valid JSON: {e}")

    def _upsert_sync(
        self,
        household_id: str,
        data: dict,
        updated_at: datetime,
    ) -> None:
        data_json = json.dumps(data, separators=(",", ":"))
        if len(data_json) > MAX_CELL_CHARS:
            raise StorageError(
                f"Snapshot is {len(data_json)} characters, "
                f"a sheet cell holds at most {MAX_CELL_CHARS}"
            )
        new_row = [household_id, data_json, updated_at.isoformat()]

        try:
            sheet = self._client.get_household_sheet()
            found = self._find_row(sheet.get_all_values(), household_id)
            if found is None:
                sheet.append_row(new_row, value_input_option="RAW")
            else:
                idx, _ = found
                sheet.update(
                    range_name=f"A{idx}:C{idx}",
                    values=[new_row],
                    value_input_option="RAW",
                )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write household snapshot: {e}")

    async def fetch(self, household_id: str) -> Optional[Any]:
        """Fetch a household's snapshot blob without blocking the loop."""
        return await asyncio.to_thread(self._fetch_sync, household_id)

    async def upsert(
        self,
        household_id: str,
        data: dict,
        updated_at: datetime,
    ) -> None:
        """Insert or overwrite a household's snapshot blob."""
        await asyncio.to_thread(self._upsert_sync, household_id, data, updated_at)
