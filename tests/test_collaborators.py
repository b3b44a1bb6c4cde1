"""Tests for the distance lookup and lead sink adapters."""

import asyncio
import json
import logging
import time
from unittest.mock import MagicMock, patch

import httpx
import pytest

from intake.collaborators.base import LoggingLeadSink
from intake.collaborators.distance_matrix import GoogleDistanceMatrix
from intake.collaborators.google_sheets import GoogleSheetsLeadSink, load_credentials
from intake.models import LEAD_COLUMNS


def _matrix(handler, api_key="key"):
    return GoogleDistanceMatrix(api_key, transport=httpx.MockTransport(handler))


def _ok_payload(meters):
    return {"rows": [{"elements": [{"status": "OK", "distance": {"value": meters}}]}]}


class TestGoogleDistanceMatrix:
    async def test_request_and_rounding(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            seen["path"] = request.url.path
            return httpx.Response(200, json=_ok_payload(23456))

        result = await _matrix(handler).driving_distance_km("V6V 1M7", "V3S 1A1")
        assert result.ok is True
        assert result.km == 23.5
        assert seen["path"] == "/maps/api/distancematrix/json"
        assert seen["params"]["origins"] == "V6V 1M7, BC, Canada"
        assert seen["params"]["destinations"] == "V3S 1A1, BC, Canada"
        assert seen["params"]["mode"] == "driving"
        assert seen["params"]["units"] == "metric"
        assert seen["params"]["key"] == "key"

    async def test_missing_api_key(self):
        def handler(request):
            raise AssertionError("no request expected")

        result = await _matrix(handler, api_key="").driving_distance_km("V6V 1M7", "V3S 1A1")
        assert result.ok is False
        assert result.km is None
        assert result.error == "Missing GOOGLE_MAPS_API_KEY"

    async def test_element_not_found(self):
        payload = {"rows": [{"elements": [{"status": "NOT_FOUND"}]}]}
        result = await _matrix(lambda r: httpx.Response(200, json=payload)).driving_distance_km("A", "B")
        assert result.ok is False
        assert result.error == "DistanceMatrix status=NOT_FOUND"

    async def test_empty_rows(self):
        result = await _matrix(lambda r: httpx.Response(200, json={"rows": []})).driving_distance_km("A", "B")
        assert result.error == "DistanceMatrix status=unknown"

    async def test_missing_distance_value(self):
        payload = {"rows": [{"elements": [{"status": "OK"}]}]}
        result = await _matrix(lambda r: httpx.Response(200, json=payload)).driving_distance_km("A", "B")
        assert result.ok is False
        assert result.error == "No distance value"

    async def test_http_error(self):
        result = await _matrix(lambda r: httpx.Response(503)).driving_distance_km("A", "B")
        assert result.ok is False
        assert result.error == "DistanceMatrix http=503"

    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        result = await _matrix(handler).driving_distance_km("A", "B")
        assert result.ok is False
        assert result.error.startswith("DistanceMatrix request failed")


class TestGoogleSheetsLeadSink:
    def _service(self, existing_rows):
        service = MagicMock()
        values = service.spreadsheets.return_value.values.return_value
        values.get.return_value.execute.return_value = {"values": existing_rows}
        return service, values

    async def test_appends_to_next_empty_row(self):
        service, values = self._service([["timestamp"], ["2026-01-01"]])
        sink = GoogleSheetsLeadSink("sheet-id", service=service, tab="Leads")

        record = {column: f"v-{column}" for column in LEAD_COLUMNS}
        await sink.write_lead(record)

        values.get.assert_called_once_with(spreadsheetId="sheet-id", range="Leads!A:A")
        kwargs = values.update.call_args.kwargs
        assert kwargs["range"] == "Leads!A3"
        assert kwargs["valueInputOption"] == "RAW"
        assert kwargs["body"] == {"values": [[f"v-{column}" for column in LEAD_COLUMNS]]}
        values.update.return_value.execute.assert_called_once()

    async def test_empty_sheet_starts_at_row_one(self):
        service, values = self._service([])
        values.get.return_value.execute.return_value = {}
        sink = GoogleSheetsLeadSink("sheet-id", service=service)
        await sink.write_lead({})
        assert values.update.call_args.kwargs["range"] == "Sheet1!A1"

    async def test_concurrent_leads_get_their_own_rows(self):
        rows = []
        written = []

        def read_column(**kwargs):
            request = MagicMock()

            def execute():
                time.sleep(0.05)
                return {"values": list(rows)}

            request.execute = execute
            return request

        def write_row(range, body, **kwargs):
            request = MagicMock()

            def execute():
                written.append(range)
                rows.extend(body["values"])

            request.execute = execute
            return request

        service, values = self._service([])
        values.get.side_effect = read_column
        values.update.side_effect = write_row
        sink = GoogleSheetsLeadSink("sheet-id", service=service)

        await asyncio.gather(*(sink.write_lead({"year": str(year)}) for year in (1999, 2005, 2012)))

        assert sorted(written) == ["Sheet1!A1", "Sheet1!A2", "Sheet1!A3"]
        assert len(rows) == 3

    def test_row_fills_missing_columns(self):
        row = GoogleSheetsLeadSink.to_row({"year": "1999"})
        assert len(row) == len(LEAD_COLUMNS)
        assert row[LEAD_COLUMNS.index("year")] == "1999"
        assert row[0] == ""

    def test_requires_sheet_id(self):
        with pytest.raises(ValueError):
            GoogleSheetsLeadSink("", service=MagicMock())

    def test_builds_client_from_service_account(self):
        with patch(
            "intake.collaborators.google_sheets.load_credentials"
        ) as mock_creds, patch(
            "intake.collaborators.google_sheets.build"
        ) as mock_build:
            GoogleSheetsLeadSink("sheet-id", service_account="/tmp/sa.json")
        mock_creds.assert_called_once_with("/tmp/sa.json")
        mock_build.assert_called_once_with("sheets", "v4", credentials=mock_creds.return_value)


class TestLoadCredentials:
    def test_inline_json_unescapes_key(self):
        info = {"client_email": "bot@example.iam", "private_key": "-----BEGIN-----\\nabc\\n-----END-----"}
        with patch(
            "intake.collaborators.google_sheets.Credentials.from_service_account_info"
        ) as from_info:
            load_credentials(json.dumps(info))
        passed = from_info.call_args.args[0]
        assert passed["private_key"] == "-----BEGIN-----\nabc\n-----END-----"
        assert from_info.call_args.kwargs["scopes"] == ["https://www.googleapis.com/auth/spreadsheets"]

    def test_path(self):
        with patch(
            "intake.collaborators.google_sheets.Credentials.from_service_account_file"
        ) as from_file:
            load_credentials("/etc/sa.json")
        from_file.assert_called_once_with("/etc/sa.json", scopes=["https://www.googleapis.com/auth/spreadsheets"])


class TestLoggingLeadSink:
    async def test_logs_redacted_caller(self, caplog):
        with caplog.at_level(logging.INFO, logger="intake.collaborators"):
            await LoggingLeadSink().write_lead({
                "caller_number": "+16045551234", "year": "1999", "make": "Toyota",
                "model": "Corolla", "pricing_rule": "AutoOfferAccepted",
                "price_given": "$300", "disposition": "accepted",
            })
        assert "+16***34" in caplog.text
        assert "+16045551234" not in caplog.text
        assert "AutoOfferAccepted" in caplog.text
