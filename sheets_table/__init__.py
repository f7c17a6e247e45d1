"""Use a Google Sheets worksheet as a lightweight database table."""
from __future__ import annotations

from sheets_table.client import SheetsRemote, build_service
from sheets_table.errors import (
    ConstraintError,
    CredentialsError,
    DataError,
    FormatError,
    LockTimeoutError,
    NotFoundError,
    SchemaError,
    SheetsTableError,
    TransportError,
)
from sheets_table.locks import LockRegistry, default_registry
from sheets_table.logging_config import configure_logging
from sheets_table.ranges import Range, parse_range
from sheets_table.rows import ROW_NUMBER, Row, RowData
from sheets_table.settings import TableSettings, load_settings, save_settings
from sheets_table.table import ColumnConstraints, ColumnSort, ConstraintViolation, Table
from sheets_table.table_client import GoogleSheetsTable

__version__ = "1.0.0"

__all__ = [
    "ColumnConstraints",
    "ColumnSort",
    "ConstraintError",
    "ConstraintViolation",
    "CredentialsError",
    "DataError",
    "FormatError",
    "GoogleSheetsTable",
    "LockRegistry",
    "LockTimeoutError",
    "NotFoundError",
    "ROW_NUMBER",
    "Range",
    "Row",
    "RowData",
    "SchemaError",
    "SheetsRemote",
    "SheetsTableError",
    "Table",
    "TableSettings",
    "TransportError",
    "build_service",
    "configure_logging",
    "default_registry",
    "load_settings",
    "parse_range",
    "save_settings",
]
