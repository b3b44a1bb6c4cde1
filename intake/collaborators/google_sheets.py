"""Google Sheets lead sink.

Uses a Google Cloud service account to append rows through the Sheets API v4.
The service account key is given either as a path to the JSON key file or as
the JSON document itself (``GOOGLE_SERVICE_ACCOUNT_JSON``).
"""

from __future__ import annotations

import asyncio
import json
import logging
from functools import partial
from typing import Any

from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build

from intake.models.call import LEAD_COLUMNS

from .base import LeadSink

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


def load_credentials(service_account: str) -> Credentials:
    """Build credentials from a key file path or an inline JSON key."""
    if service_account.lstrip().startswith("{"):
        info = json.loads(service_account)
        if "private_key" in info:
            # Keys pasted into env vars usually carry literal "\n" sequences
            info["private_key"] = info["private_key"].replace("\\n", "\n")
        return Credentials.from_service_account_info(info, scopes=SCOPES)
    return Credentials.from_service_account_file(service_account, scopes=SCOPES)


class GoogleSheetsLeadSink(LeadSink):
    """LeadSink that writes one row per call to a spreadsheet tab.

    Rows go to the first empty row below the existing data: column A is read
    to count used rows and the record is written at ``A<count + 1>``.
    """

    def __init__(
        self,
        spreadsheet_id: str,
        service_account: str = "",
        tab: str = "Sheet1",
        service: Any = None,
    ) -> None:
        if not spreadsheet_id:
            raise ValueError("Google spreadsheet id must be provided.")
        self._spreadsheet_id = spreadsheet_id
        self._tab = tab
        if service is None:
            if not service_account:
                raise ValueError(
                    "Google service account must be provided via constructor "
                    "argument or GOOGLE_SERVICE_ACCOUNT_JSON env var."
                )
            service = build("sheets", "v4", credentials=load_credentials(service_account))
        self._service = service
        # row count and write must not interleave between two leads
        self._write_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _run_in_executor(self, func, *args, **kwargs) -> Any:
        """Run a synchronous Google API call in the default thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, partial(func, *args, **kwargs)
        )

    @staticmethod
    def to_row(record: dict[str, str]) -> list[str]:
        return [record.get(column, "") for column in LEAD_COLUMNS]

    # ------------------------------------------------------------------
    # LeadSink interface
    # ------------------------------------------------------------------

    async def write_lead(self, record: dict[str, str]) -> None:
        values = self._service.spreadsheets().values()

        async with self._write_lock:
            column_a = await self._run_in_executor(
                values.get(
                    spreadsheetId=self._spreadsheet_id,
                    range=f"{self._tab}!A:A",
                ).execute
            )
            next_row = len(column_a.get("values", [])) + 1

            await self._run_in_executor(
                values.update(
                    spreadsheetId=self._spreadsheet_id,
                    range=f"{self._tab}!A{next_row}",
                    valueInputOption="RAW",
                    body={"values": [self.to_row(record)]},
                ).execute
            )
        logger.info("Lead written to %s row %d", self._tab, next_row)
