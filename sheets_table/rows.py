"""Conversion between sheet value arrays and keyed row dictionaries.

Rows are plain dictionaries keyed by header name.  Each row read from a sheet
also carries the reserved :data:`ROW_NUMBER` key holding its 1-based physical
position at read time (row 1 is always the header).

Empty cells are represented by ``None`` when writing.  The Sheets API reports
empty cells as ``""`` (or omits trailing ones entirely), so the two are treated
as equivalent when a write echo is checked.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from sheets_table.errors import DataError, SchemaError
from sheets_table.ranges import parse_range, unquote_title

ROW_NUMBER = "_row_number"

Row = Dict[str, Any]
RowData = Mapping[str, Any]


@dataclass(frozen=True)
class UpdatedData:
    """Values and row number of a row as persisted by a write."""

    values: List[Any]
    row_number: int


def values_to_row(values: Sequence[Any], columns: Sequence[str], row_number: int) -> Row:
    row: Row = {}
    for column, value in zip(columns, values):
        row[column] = value
    row[ROW_NUMBER] = row_number
    return row


def strip_row_number(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Return the data fields of ``row`` without the row number."""

    return {key: value for key, value in row.items() if key != ROW_NUMBER}


def ensure_row_data(row: Mapping[str, Any]) -> None:
    """Reject caller data that uses the reserved row number key."""

    if ROW_NUMBER in row:
        raise SchemaError(f"Row data must not contain the reserved key '{ROW_NUMBER}'")


def row_to_values(row: RowData, columns: Sequence[str]) -> List[Any]:
    """Return the values of ``row`` ordered by ``columns``.

    Raises :class:`SchemaError` naming every key of ``row`` that has no column.
    """

    known = set(columns)
    missing = [key for key in row if key not in known]
    if missing:
        raise SchemaError(
            "Table columns missing that exist as row properties: " + ", ".join(missing)
        )
    return [row.get(column) for column in columns]


def _values_match(submitted: Any, updated: Any) -> bool:
    # True == 1 in Python, but a boolean echoed as a number is a coercion
    if submitted == updated and isinstance(submitted, bool) == isinstance(updated, bool):
        return True
    if submitted is None and updated == "":
        return True
    if submitted == "" and updated is None:
        return True
    return False


def process_updated_data(
    response: Optional[Mapping[str, Any]],
    expected_sheet: str,
    submitted_values: Sequence[Any],
) -> UpdatedData:
    """Check a write echo against the submitted values.

    ``response`` is the ``updatedData`` value range returned by the API when
    ``includeValuesInResponse`` is set.  Returns the persisted values and the
    row number they were written to.
    """

    response = response or {}
    range_text = response.get("range")
    if range_text is None:
        raise DataError("Updated value range has empty range")
    values = response.get("values")
    if values is None:
        raise DataError("Updated value range has empty values")
    if len(values) != 1:
        raise DataError(f"Expected one row of values, but instead got {len(values)}")
    updated_values = list(values[0])

    matches: List[Union[bool, Dict[str, Any]]] = []
    for index, submitted in enumerate(submitted_values):
        # trailing empty cells are left out of the echo
        updated = updated_values[index] if index < len(updated_values) else None
        if _values_match(submitted, updated):
            matches.append(True)
        else:
            matches.append({"submitted": submitted, "updated": updated})
    if any(match is not True for match in matches):
        raise DataError(
            "One or more updated row values don't match corresponding submitted values",
            matches,
        )

    parsed = parse_range(range_text)
    sheet = unquote_title(parsed.sheet)
    if sheet != expected_sheet:
        raise DataError(
            f"Updated range sheet name '{sheet}' doesn't match submitted sheet name '{expected_sheet}'"
        )
    if parsed.start_row != parsed.end_row:
        raise DataError(
            f"Updated range start row ({parsed.start_row}) doesn't match end row ({parsed.end_row})"
        )

    return UpdatedData(values=updated_values, row_number=parsed.start_row)


__all__ = [
    "ROW_NUMBER",
    "Row",
    "RowData",
    "UpdatedData",
    "ensure_row_data",
    "process_updated_data",
    "row_to_values",
    "strip_row_number",
    "values_to_row",
]
