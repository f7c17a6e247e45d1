"""A1 range parsing and construction helpers.

``parse_range`` reads the ranges echoed back by the Sheets API after a write
(``items!A5:C5``) so the caller can confirm which sheet and row were touched.
The builder helpers produce the ranges this package sends to the API.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from sheets_table.errors import FormatError

_RANGE_PATTERN = re.compile(
    r"^(?P<sheet>\S+)!(?P<start_column>[A-Z]+)(?P<start_row>[0-9]+)"
    r":(?P<end_column>[A-Z]+)(?P<end_row>[0-9]+)$"
)


@dataclass(frozen=True)
class Range:
    """Sheet-qualified cell range such as ``bananas!A5:C42``."""

    sheet: str
    start_column: str
    start_row: int
    end_column: str
    end_row: int


def parse_range(text: Optional[str]) -> Range:
    """Parse ``text`` into a :class:`Range`, raising :class:`FormatError` if malformed."""

    match = _RANGE_PATTERN.match(text) if isinstance(text, str) else None
    if match is None:
        raise FormatError("Missing or bad range")
    return Range(
        sheet=match.group("sheet"),
        start_column=match.group("start_column"),
        start_row=int(match.group("start_row")),
        end_column=match.group("end_column"),
        end_row=int(match.group("end_row")),
    )


def quote_title(title: str) -> str:
    """Quote ``title`` exactly as given, doubling any single quotes in it."""

    if not title:
        raise FormatError("Worksheet title must not be empty")
    escaped = title.replace("'", "''")
    return f"'{escaped}'"


def unquote_title(title: str) -> str:
    """Return ``title`` without A1 single-quote wrapping."""

    if len(title) >= 2 and title.startswith("'") and title.endswith("'"):
        return title[1:-1].replace("''", "'")
    return title


def sheet_range(sheet_name: str) -> str:
    """Return a range covering every cell of ``sheet_name``."""

    return quote_title(sheet_name)


def first_column_range(sheet_name: str) -> str:
    return f"{quote_title(sheet_name)}!A:A"


def row_range(sheet_name: str, row_number: int) -> str:
    """Return the range covering the whole of row ``row_number``."""

    if row_number < 1:
        raise ValueError("Row number must be >= 1")
    return f"{quote_title(sheet_name)}!{row_number}:{row_number}"


__all__ = [
    "Range",
    "first_column_range",
    "parse_range",
    "quote_title",
    "row_range",
    "sheet_range",
    "unquote_title",
]
