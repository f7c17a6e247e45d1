from __future__ import annotations

import re
import sys
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sheets_table.client import SheetsRemote
from sheets_table.locks import LockRegistry


class _FakeRequest:
    def __init__(
        self, service: "FakeSheetsService", name: str, spreadsheet_id: str, callback: Callable[[], Any]
    ) -> None:
        self._service = service
        self._name = name
        self._spreadsheet_id = spreadsheet_id
        self._callback = callback

    def execute(self):
        return self._service._run(self._name, self._spreadsheet_id, self._callback)


class _FakeValues:
    def __init__(self, service: "FakeSheetsService") -> None:
        self._service = service

    def get(self, spreadsheetId: str, range: str, **options: Any):  # noqa: N803 - API compatibility
        self._service.requests.append(("values.get", spreadsheetId, range, options))
        return _FakeRequest(self._service, "get", spreadsheetId, lambda: self._service._handle_get(spreadsheetId, range))

    def append(self, spreadsheetId: str, range: str, body: Dict[str, Any], **options: Any):  # noqa: N803
        self._service.requests.append(("values.append", spreadsheetId, range, dict(options, body=body)))
        return _FakeRequest(
            self._service, "append", spreadsheetId, lambda: self._service._handle_append(spreadsheetId, range, body)
        )

    def update(self, spreadsheetId: str, range: str, body: Dict[str, Any], **options: Any):  # noqa: N803
        self._service.requests.append(("values.update", spreadsheetId, range, dict(options, body=body)))
        return _FakeRequest(
            self._service, "update", spreadsheetId, lambda: self._service._handle_update(spreadsheetId, range, body)
        )


class _FakeSpreadsheets:
    def __init__(self, service: "FakeSheetsService") -> None:
        self._service = service

    def values(self) -> _FakeValues:
        return _FakeValues(self._service)

    def get(self, spreadsheetId: str, **options: Any):  # noqa: N803 - API compatibility
        self._service.requests.append(("spreadsheets.get", spreadsheetId, None, options))
        return _FakeRequest(self._service, "metadata", spreadsheetId, lambda: self._service._handle_metadata(spreadsheetId))

    def batchUpdate(self, spreadsheetId: str, body: Dict[str, Any]):  # noqa: N802,N803 - API compatibility
        self._service.requests.append(("spreadsheets.batchUpdate", spreadsheetId, None, body))
        return _FakeRequest(
            self._service, "batch_update", spreadsheetId, lambda: self._service._handle_batch_update(spreadsheetId, body)
        )


def _column_letter(index: int) -> str:
    letters: List[str] = []
    while index:
        index, remainder = divmod(index - 1, 26)
        letters.append(chr(65 + remainder))
    return "".join(reversed(letters))


def _to_cell(value: Any) -> Any:
    return "" if value is None else value


def _trim(row: List[Any]) -> List[Any]:
    trimmed = list(row)
    while trimmed and trimmed[-1] == "":
        trimmed.pop()
    return trimmed


class FakeSheetsService:
    """In-memory stand-in for the Sheets v4 discovery service.

    ``sheets`` maps ``(spreadsheet_id, sheet title)`` to a grid of rows.  The
    optional ``delays`` mapping makes every request on a spreadsheet sleep so
    concurrency tests can control completion order.
    """

    def __init__(self) -> None:
        self.sheets: Dict[Tuple[str, str], List[List[Any]]] = {}
        self.sheet_ids: Dict[Tuple[str, str], int] = {}
        self.requests: List[Tuple[str, str, Optional[str], Dict[str, Any]]] = []
        self.events: List[Tuple[str, str, str]] = []
        self.delays: Dict[str, float] = {}
        self.echo_override: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None
        self._lock = threading.Lock()

    def add_sheet(self, spreadsheet_id: str, title: str, rows: List[List[Any]], sheet_id: int = 0) -> None:
        self.sheets[(spreadsheet_id, title)] = [list(row) for row in rows]
        self.sheet_ids[(spreadsheet_id, title)] = sheet_id

    def grid(self, spreadsheet_id: str, title: str) -> List[List[Any]]:
        return self.sheets[(spreadsheet_id, title)]

    def spreadsheets(self) -> _FakeSpreadsheets:
        return _FakeSpreadsheets(self)

    # Internal helpers -------------------------------------------------
    def _run(self, name: str, spreadsheet_id: str, callback: Callable[[], Any]) -> Any:
        self._record(spreadsheet_id, name, "start")
        delay = self.delays.get(spreadsheet_id)
        if delay:
            time.sleep(delay)
        result = callback()
        self._record(spreadsheet_id, name, "end")
        return result

    def _record(self, spreadsheet_id: str, name: str, phase: str) -> None:
        with self._lock:
            self.events.append((spreadsheet_id, name, phase))

    @staticmethod
    def _split_range(range_spec: str) -> Tuple[str, str]:
        if "!" not in range_spec:
            sheet, cell_range = range_spec, ""
        else:
            sheet, cell_range = range_spec.split("!", 1)
        sheet = sheet.strip()
        if sheet.startswith("'") and sheet.endswith("'") and len(sheet) >= 2:
            sheet = sheet[1:-1].replace("''", "'")
        return sheet, cell_range

    def _echo(self, title: str, row_number: int, row: List[Any]) -> Dict[str, Any]:
        last_column = _column_letter(max(1, len(row)))
        updated = {"range": f"{title}!A{row_number}:{last_column}{row_number}", "values": [_trim(row)]}
        if self.echo_override is not None:
            updated = self.echo_override(updated)
        return updated

    def _handle_get(self, spreadsheet_id: str, range_spec: str) -> Dict[str, Any]:
        title, cell_range = self._split_range(range_spec)
        grid = self.sheets.get((spreadsheet_id, title), [])
        if cell_range == "A:A":
            values = [[row[0]] for row in grid if row and row[0] != ""]
        else:
            values = [_trim(row) for row in grid]
        while values and not values[-1]:
            values.pop()
        return {"values": values} if values else {}

    def _handle_append(self, spreadsheet_id: str, range_spec: str, body: Dict[str, Any]) -> Dict[str, Any]:
        title, _ = self._split_range(range_spec)
        grid = self.sheets.setdefault((spreadsheet_id, title), [])
        row = [_to_cell(value) for value in body["values"][0]]
        grid.append(row)
        return {"updates": {"updatedData": self._echo(title, len(grid), row)}}

    def _handle_update(self, spreadsheet_id: str, range_spec: str, body: Dict[str, Any]) -> Dict[str, Any]:
        title, cell_range = self._split_range(range_spec)
        match = re.match(r"(\d+):(\d+)$", cell_range)
        assert match, cell_range
        row_number = int(match.group(1))
        grid = self.sheets[(spreadsheet_id, title)]
        row = [_to_cell(value) for value in body["values"][0]]
        grid[row_number - 1] = row
        return {"updatedData": self._echo(title, row_number, row)}

    def _handle_metadata(self, spreadsheet_id: str) -> Dict[str, Any]:
        sheets = []
        for (owner, title), sheet_id in self.sheet_ids.items():
            if owner != spreadsheet_id:
                continue
            properties: Dict[str, Any] = {"title": title}
            if sheet_id:
                properties["sheetId"] = sheet_id
            sheets.append({"properties": properties})
        return {"sheets": sheets}

    def _handle_batch_update(self, spreadsheet_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        for request in body["requests"]:
            target = request["deleteDimension"]["range"]
            for (owner, title), sheet_id in self.sheet_ids.items():
                if owner == spreadsheet_id and sheet_id == target["sheetId"]:
                    del self.sheets[(owner, title)][target["startIndex"] : target["endIndex"]]
        return {"spreadsheetId": spreadsheet_id, "replies": [{}]}


PRODUCTS = [
    ["id", "sku", "name", "quantity"],
    [1001, "APL1", "Apple", 10],
    [1002, "BAN1", "Banana", 11],
    [1003, "CHR1", "Cherry", 0],
]


@pytest.fixture
def fake_service() -> FakeSheetsService:
    service = FakeSheetsService()
    service.add_sheet("spreadsheet-1", "products", PRODUCTS, sheet_id=7)
    return service


@pytest.fixture
def remote(fake_service: FakeSheetsService) -> SheetsRemote:
    return SheetsRemote(fake_service)


@pytest.fixture
def lock_registry() -> LockRegistry:
    return LockRegistry()
