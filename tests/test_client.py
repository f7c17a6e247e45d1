from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import httplib2
import pytest
from googleapiclient.errors import HttpError

from sheets_table import GoogleSheetsTable, TransportError
from sheets_table.client import SheetsRemote


class _FailingRequest:
    def execute(self):
        response = httplib2.Response({"status": 429})
        raise HttpError(response, b'{"error": {"message": "Quota exceeded"}}')


class _FailingValues:
    def get(self, **kwargs):
        return _FailingRequest()


class _FailingSpreadsheets:
    def values(self):
        return _FailingValues()


class _FailingService:
    def spreadsheets(self):
        return _FailingSpreadsheets()


@pytest.mark.asyncio
async def test_read_values_only_sends_requested_render_options(remote, fake_service):
    await remote.read_values("spreadsheet-1", "'products'!A:A")

    assert fake_service.requests[-1] == ("values.get", "spreadsheet-1", "'products'!A:A", {})


@pytest.mark.asyncio
async def test_get_spreadsheet_metadata_requests_sheet_properties(remote, fake_service):
    metadata = await remote.get_spreadsheet_metadata("spreadsheet-1")

    assert metadata == {"sheets": [{"properties": {"title": "products", "sheetId": 7}}]}
    method, spreadsheet_id, _, options = fake_service.requests[-1]
    assert method == "spreadsheets.get"
    assert options["fields"] == "sheets.properties(title,sheetId)"
    assert options["includeGridData"] is False


@pytest.mark.asyncio
async def test_update_values_wraps_rows_in_body(remote, fake_service):
    result = await remote.update_values("spreadsheet-1", "'products'!2:2", [(1001, "APL1")], valueInputOption="RAW")

    assert result["updatedData"]["range"] == "products!A2:B2"
    _, _, _, options = fake_service.requests[-1]
    assert options == {"valueInputOption": "RAW", "body": {"values": [[1001, "APL1"]]}}


@pytest.mark.asyncio
async def test_transport_errors_propagate_unwrapped(lock_registry):
    table = GoogleSheetsTable(
        spreadsheet_id="spreadsheet-1",
        sheet_name="products",
        remote=SheetsRemote(_FailingService()),
        lock_registry=lock_registry,
    )

    with pytest.raises(HttpError):
        await table.find_rows()
    with pytest.raises(TransportError):
        await table.insert_row({"id": 1})

    assert not lock_registry.lock_for("spreadsheet-1").locked()
