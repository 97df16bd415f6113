"""
Google Sheets Document Store

DESIGN DECISION: Google Sheets is used as the hosted document store because:
1. Users can inspect (and back up) their budget directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

Each document is one row: key, JSON content, and the time it was written.

TRADEOFFS:
- A cell holds at most 50,000 characters, which caps the document size
- Sheets has no push channel, so subscriptions poll the row
- Writes are unconditional row replacements (last write wins)
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from budget_tracker.audit import get_logger
from budget_tracker.config import get_settings
from budget_tracker.services.storage.interface import (
    ChangeCallback,
    ConnectionError,
    DocumentPayload,
    DocumentStoreInterface,
    StorageError,
    Unsubscribe,
)


DOCUMENT_COLUMNS = [
    "id",
    "content",
    "updated_at",
]

MAX_CELL_CHARS = 50000

logger = get_logger(__name__)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for connecting.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
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

    def get_documents_sheet(self) -> gspread.Worksheet:
        """Get or create the documents worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.documents_sheet_name)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=self._settings.documents_sheet_name,
                rows=100,
                cols=len(DOCUMENT_COLUMNS),
            )
            sheet.append_row(DOCUMENT_COLUMNS)
        return sheet


class GoogleSheetsDocumentStore(DocumentStoreInterface):
    """
    Google Sheets implementation of the document store.

    Change notifications are produced by polling the document row and
    comparing its `updated_at` stamp with the last one seen.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        poll_interval_seconds: Optional[float] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self._poll_interval = (
            poll_interval_seconds
            if poll_interval_seconds is not None
            else get_settings().sync.poll_interval_seconds
        )

    def _find_row(self, key: str) -> tuple[Optional[int], Optional[list]]:
        """Return (sheet row number, row values) for a key."""
        sheet = self._client.get_documents_sheet()
        all_rows = sheet.get_all_values()

        # Row 1 is the header
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == key:
                return idx, row
        return None, None

    @staticmethod
    def _parse_content(key: str, row: list) -> Optional[DocumentPayload]:
        content = row[1] if len(row) > 1 else ""
        if not content:
            return None
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise StorageError(f"Document {key} is not valid JSON: {e}")

    def _read(self, key: str) -> tuple[Optional[str], Optional[DocumentPayload]]:
        """Blocking read of (updated_at, document)."""
        try:
            _, row = self._find_row(key)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read document: {e}")

        if row is None:
            return None, None
        updated_at = row[2] if len(row) > 2 else ""
        return updated_at, self._parse_content(key, row)

    async def fetch(self, key: str) -> Optional[DocumentPayload]:
        """Fetch the document from Google Sheets."""
        _, document = await asyncio.to_thread(self._read, key)
        return document

    async def upsert(self, key: str, document: DocumentPayload) -> bool:
        """Replace (or append) the document row."""
        return await asyncio.to_thread(self._write, key, document)

    def _write(self, key: str, document: DocumentPayload) -> bool:
        """Blocking row replacement."""
        content = json.dumps(document, ensure_ascii=False)
        if len(content) > MAX_CELL_CHARS:
            raise StorageError(
                f"Document is {len(content)} characters; a sheet cell holds at most {MAX_CELL_CHARS}"
            )

        updated_at = datetime.now(timezone.utc).isoformat()
        try:
            idx, _ = self._find_row(key)
            sheet = self._client.get_documents_sheet()
            values = [key, content, updated_at]
            if idx is None:
                sheet.append_row(values, value_input_option="RAW")
            else:
                sheet.update(
                    range_name=f"A{idx}:C{idx}",
                    values=[values],
                    value_input_option="RAW",
                )
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save document: {e}")

    async def subscribe(self, key: str, on_change: ChangeCallback) -> Unsubscribe:
        """Start polling the document row for changes."""
        last_seen, _ = await asyncio.to_thread(self._read, key)
        task = asyncio.create_task(self._poll(key, on_change, last_seen))

        def unsubscribe() -> None:
            task.cancel()

        return unsubscribe

    async def _poll(
        self,
        key: str,
        on_change: ChangeCallback,
        last_seen: Optional[str],
    ) -> None:
        while True:
            await asyncio.sleep(self._poll_interval)
            try:
                updated_at, document = await asyncio.to_thread(self._read, key)
            except StorageError as e:
                # Transient read failures must not end the subscription
                logger.warning("document_poll_failed", document_key=key, error=str(e))
                continue

            if updated_at == last_seen or document is None:
                continue
            last_seen = updated_at
            on_change(document)
