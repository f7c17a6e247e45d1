"""Row oriented access to a single Google Sheets worksheet.

:class:`GoogleSheetsTable` treats one sheet as a table whose first row is the
header.  Reads take a fresh snapshot every time and run without locking.
Writes (insert, update, delete) hold the spreadsheet's lock from the initial
read until the write has been confirmed, so two writers on the same
spreadsheet never interleave their read/check/write sequences.

Each write performs exactly one mutating API call.  A failure while checking
the echoed result is raised *after* the data has been written; nothing is
rolled back.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Union

from sheets_table.client import CredentialsSource, SheetsRemote
from sheets_table.errors import NotFoundError
from sheets_table.locks import LockRegistry, default_registry
from sheets_table.ranges import row_range, sheet_range
from sheets_table.rows import (
    ROW_NUMBER,
    Row,
    RowData,
    ensure_row_data,
    process_updated_data,
    row_to_values,
    strip_row_number,
    values_to_row,
)
from sheets_table.settings import TableSettings
from sheets_table.table import (
    SERIAL_NUMBER,
    UNFORMATTED_VALUE,
    ColumnConstraints,
    ColumnSort,
    count_table_rows,
    enforce_constraints,
    open_table,
    sort_rows,
)

logger = logging.getLogger(__name__)

SearchPredicate = Callable[[Row, int, List[Row]], bool]
KeyColumnSelector = Callable[[Row], Hashable]
SortSpec = Union[ColumnSort, Mapping[str, str]]

WRITE_OPTIONS: Dict[str, Any] = {
    "valueInputOption": "RAW",
    "includeValuesInResponse": True,
    "responseValueRenderOption": UNFORMATTED_VALUE,
    "responseDateTimeRenderOption": SERIAL_NUMBER,
}


def _match_all(row: Row, index: int, rows: List[Row]) -> bool:
    return True


def _first_match(rows: List[Row], predicate: SearchPredicate) -> Optional[Row]:
    for index, row in enumerate(rows):
        if predicate(row, index, rows):
            return row
    return None


class GoogleSheetsTable:
    """A Google Sheets worksheet used as a table.

    Parameters
    ----------
    credentials:
        Service account mapping, path to a service account JSON file or a
        credentials object.  Ignored when ``remote`` is given.
    spreadsheet_id:
        ID of the spreadsheet holding the sheet.
    sheet_name:
        Title of the sheet used as the table.
    column_constraints:
        :class:`ColumnConstraints` or a ``{"uniques": [...]}`` mapping checked
        before every insert and update.
    remote:
        Pre-built :class:`SheetsRemote`; mostly useful for tests.
    lock_registry:
        Registry providing the per-spreadsheet write lock.  Defaults to the
        process-wide :data:`sheets_table.locks.default_registry`.
    """

    def __init__(
        self,
        *,
        spreadsheet_id: str,
        sheet_name: str,
        credentials: Optional[CredentialsSource] = None,
        column_constraints: Union[ColumnConstraints, Mapping[str, Iterable[str]], None] = None,
        remote: Optional[SheetsRemote] = None,
        lock_registry: Optional[LockRegistry] = None,
    ) -> None:
        if remote is None:
            if credentials is None:
                raise ValueError("Either credentials or remote must be provided")
            remote = SheetsRemote.from_credentials(credentials)
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self.column_constraints = ColumnConstraints.from_value(column_constraints)
        self._remote = remote
        self._locks = lock_registry if lock_registry is not None else default_registry

    @classmethod
    def from_settings(
        cls,
        settings: TableSettings,
        *,
        remote: Optional[SheetsRemote] = None,
        lock_registry: Optional[LockRegistry] = None,
    ) -> "GoogleSheetsTable":
        if lock_registry is None and settings.lock_timeout is not None:
            lock_registry = LockRegistry(timeout=settings.lock_timeout)
        return cls(
            spreadsheet_id=settings.spreadsheet_id,
            sheet_name=settings.sheet_name,
            credentials=None if remote is not None else settings.credential_path,
            column_constraints=settings.column_constraints(),
            remote=remote,
            lock_registry=lock_registry,
        )

    @property
    def remote(self) -> SheetsRemote:
        return self._remote

    async def _open(self):
        return await open_table(self._remote, self.spreadsheet_id, self.sheet_name)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def count_rows(self) -> int:
        """Return the number of data rows (excluding the header)."""

        return await count_table_rows(self._remote, self.spreadsheet_id, self.sheet_name)

    async def find_rows(
        self,
        predicate: Optional[SearchPredicate] = None,
        sorting: Optional[Sequence[SortSpec]] = None,
    ) -> List[Row]:
        """Return every row matching ``predicate``, optionally sorted.

        ``sorting`` lists sort keys from most to least significant, for
        example ``[ColumnSort.asc("age"), ColumnSort.desc("name")]``.
        """

        table = await self._open()
        predicate = predicate or _match_all
        rows = table.rows
        found = [row for index, row in enumerate(rows) if predicate(row, index, rows)]
        if sorting:
            found = sort_rows(found, table.columns, sorting)
        return found

    async def find_row(self, predicate: SearchPredicate) -> Optional[Row]:
        """Return the first row matching ``predicate`` or ``None``."""

        table = await self._open()
        return _first_match(table.rows, predicate)

    async def find_key_rows(
        self, selector: KeyColumnSelector, keys: Iterable[Hashable]
    ) -> Dict[Hashable, Row]:
        """Map each of ``keys`` to the row whose selected key equals it.

        Keys with no matching row are left out.  When several rows share a
        key, the one furthest down the sheet wins.
        """

        wanted = set(keys)
        table = await self._open()
        rows_by_key: Dict[Hashable, Row] = {}
        for row in table.rows:
            key = selector(row)
            if key in wanted:
                rows_by_key[key] = row
        return rows_by_key

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    async def insert_row(self, new_row: RowData) -> Row:
        """Append ``new_row`` to the table and return it as written."""

        ensure_row_data(new_row)
        async with self._locks.acquire(self.spreadsheet_id):
            table = await self._open()
            enforce_constraints(table.rows, new_row, self.column_constraints)

            row_values = row_to_values(new_row, table.columns)
            result = await self._remote.append_values(
                self.spreadsheet_id,
                sheet_range(self.sheet_name),
                [row_values],
                insertDataOption="INSERT_ROWS",
                **WRITE_OPTIONS,
            )

            updated = process_updated_data(
                (result.get("updates") or {}).get("updatedData"),
                self.sheet_name,
                row_values,
            )
            logger.debug("Inserted row %d into %s", updated.row_number, self.sheet_name)
            return values_to_row(updated.values, table.columns, updated.row_number)

    async def update_row(self, predicate: SearchPredicate, row_updates: RowData) -> Row:
        """Apply ``row_updates`` to the first row matching ``predicate``.

        Raises :class:`NotFoundError` when no row matches.
        """

        ensure_row_data(row_updates)
        async with self._locks.acquire(self.spreadsheet_id):
            table = await self._open()
            existing = _first_match(table.rows, predicate)
            if existing is None:
                raise NotFoundError("Row not found")

            existing.update(row_updates)
            enforce_constraints(table.rows, existing, self.column_constraints)

            row_number = existing[ROW_NUMBER]
            row_values = row_to_values(strip_row_number(existing), table.columns)
            result = await self._remote.update_values(
                self.spreadsheet_id,
                row_range(self.sheet_name, row_number),
                [row_values],
                **WRITE_OPTIONS,
            )

            updated = process_updated_data(result.get("updatedData"), self.sheet_name, row_values)
            logger.debug("Updated row %d in %s", updated.row_number, self.sheet_name)
            return values_to_row(updated.values, table.columns, updated.row_number)

    async def delete_row(self, predicate: SearchPredicate) -> None:
        """Delete the first row matching ``predicate``.

        Raises :class:`NotFoundError` when no row matches or the sheet is
        missing from the spreadsheet metadata.
        """

        async with self._locks.acquire(self.spreadsheet_id):
            table = await self._open()
            existing = _first_match(table.rows, predicate)
            if existing is None:
                raise NotFoundError("Row not found")

            sheet_id = await self._resolve_sheet_id()
            row_number = existing[ROW_NUMBER]
            await self._remote.batch_update(
                self.spreadsheet_id,
                [
                    {
                        "deleteDimension": {
                            "range": {
                                "sheetId": sheet_id,
                                "dimension": "ROWS",
                                "startIndex": row_number - 1,
                                "endIndex": row_number,
                            }
                        }
                    }
                ],
            )
            logger.debug("Deleted row %d from %s", row_number, self.sheet_name)

    async def _resolve_sheet_id(self) -> int:
        metadata = await self._remote.get_spreadsheet_metadata(self.spreadsheet_id)
        for sheet in metadata.get("sheets") or []:
            properties = sheet.get("properties") or {}
            if properties.get("title") == self.sheet_name:
                # the API omits sheetId when it is 0
                return int(properties.get("sheetId", 0))
        raise NotFoundError(f"Sheet with name '{self.sheet_name}' not found")


__all__ = ["GoogleSheetsTable", "KeyColumnSelector", "SearchPredicate", "SortSpec"]
