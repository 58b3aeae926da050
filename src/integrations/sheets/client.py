"""
Google Sheets video repository.
Columns: A = title, B = url, C = comma-separated tags. Row 1 is the header.
"""

import asyncio
import logging
import random
from pathlib import Path
from typing import Any, Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from src.core.catalog.contracts import RepositoryError, VideoRepository
from src.core.catalog.models import VideoRecord
from src.core.catalog.sampler import SampleResult, filter_by_tag, sample
from src.core.catalog.tags import ordered_tags

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


class GoogleSheetsRepository(VideoRepository):
    """Video records kept in one worksheet of a spreadsheet."""

    def __init__(
        self,
        spreadsheet_id: str,
        credentials_path: Optional[Path] = None,
        sheet_name: str = "Sheet1",
        service: Any = None,
        rng: Optional[random.Random] = None,
    ):
        if not spreadsheet_id:
            raise ValueError(
                "Spreadsheet id not provided. "
                "Set GOOGLE_SHEET_ID in .env file."
            )
        self.spreadsheet_id = spreadsheet_id
        self.credentials_path = credentials_path
        self.sheet_name = sheet_name
        self.rng = rng
        self._service = service

    def _get_service(self) -> Any:
        """Create the Sheets API client once."""
        if self._service is None:
            if self.credentials_path is None:
                raise ValueError("Service account credentials path not provided")
            creds = service_account.Credentials.from_service_account_file(
                str(self.credentials_path), scopes=SCOPES
            )
            self._service = build("sheets", "v4", credentials=creds, cache_discovery=False)
        return self._service

    def _range(self, cells: str) -> str:
        return f"{self.sheet_name}!{cells}"

    async def _call(self, description: str, request_factory) -> dict:
        """Run a blocking API request in a worker thread."""

        def run() -> dict:
            return request_factory(self._get_service()).execute()

        # ValueError covers missing or malformed credentials files
        try:
            return await asyncio.to_thread(run)
        except (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError, ValueError) as e:
            logger.error(f"Sheets request failed ({description}): {e}")
            raise RepositoryError(f"Google Sheets {description} failed") from e

    async def _get_values(self, cells: str) -> list[list[str]]:
        response = await self._call(
            f"read {cells}",
            lambda service: service.spreadsheets().values().get(
                spreadsheetId=self.spreadsheet_id,
                range=self._range(cells),
            ),
        )
        return response.get("values", [])

    async def get_all_tags(self) -> list[str]:
        rows = await self._get_values("C2:C")
        return ordered_tags(row[0] for row in rows if row)

    async def get_videos_by_tag(self, tag: str, limit: int) -> SampleResult:
        rows = await self._get_values("A2:C")
        records = [VideoRecord.from_row(row) for row in rows if row]
        return sample(filter_by_tag(records, tag), limit, self.rng)

    async def add_video(self, title: str, url: str, tags: str) -> None:
        record = VideoRecord(title=title, url=url, tags=tags)
        await self._call(
            "append",
            lambda service: service.spreadsheets().values().append(
                spreadsheetId=self.spreadsheet_id,
                range=self._range("A:C"),
                valueInputOption="RAW",
                body={"values": [record.to_row()]},
            ),
        )
        logger.debug(f"Appended row for {url}")

    async def is_duplicate_url(self, url: str) -> bool:
        rows = await self._get_values("B2:B")
        return any(url in row for row in rows)
