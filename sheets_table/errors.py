"""Error types raised by the sheets_table package."""
from __future__ import annotations

import json
from typing import Any, List, Sequence

from googleapiclient.errors import HttpError

# Failures reported by the Sheets API itself are never wrapped so callers can
# apply their own retry policy to them.
TransportError = HttpError


class SheetsTableError(Exception):
    """Base error raised when a table operation cannot be completed."""


class FormatError(SheetsTableError):
    """Raised when an A1 range string does not have the expected shape."""


class SchemaError(SheetsTableError):
    """Raised when row data or a sort key names a column the table lacks."""


class NotFoundError(SheetsTableError):
    """Raised when no row (or sheet) matches the requested criteria."""


class CredentialsError(SheetsTableError):
    """Raised when a service account payload is missing required data."""


class LockTimeoutError(SheetsTableError):
    """Raised when a spreadsheet lock could not be acquired in time."""


class DataError(SheetsTableError):
    """Raised when the echo of a write does not match what was submitted.

    The optional ``data`` attribute carries structured details about the
    mismatch (for example the per-position comparison results).
    """

    def __init__(self, message: str, data: Any = None) -> None:
        if data is not None:
            message = f"{message} {json.dumps(data, default=repr)}"
        super().__init__(message)
        self.data = data


class ConstraintError(SheetsTableError):
    """Raised with every constraint violation found for a candidate row."""

    def __init__(self, violations: Sequence[Any]) -> None:
        self.violations: List[Any] = list(violations)
        descriptions = "; ".join(violation.description for violation in self.violations)
        super().__init__(f"Row violates table constraints: {descriptions}")


__all__ = [
    "ConstraintError",
    "CredentialsError",
    "DataError",
    "FormatError",
    "LockTimeoutError",
    "NotFoundError",
    "SchemaError",
    "SheetsTableError",
    "TransportError",
]
