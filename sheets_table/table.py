"""Table snapshots, uniqueness constraints and multi-key sorting.

A table is materialised from a single read of the whole sheet: the first row
holds the column names and every following row becomes a row dictionary (see
:mod:`sheets_table.rows`).  Snapshots are never cached; row numbers in a
snapshot are only valid until the next insert or delete.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from sheets_table.errors import ConstraintError, SchemaError
from sheets_table.ranges import first_column_range, sheet_range
from sheets_table.rows import Row, values_to_row

if TYPE_CHECKING:  # pragma: no cover - typing only
    from sheets_table.client import SheetsRemote

logger = logging.getLogger(__name__)

UNFORMATTED_VALUE = "UNFORMATTED_VALUE"
SERIAL_NUMBER = "SERIAL_NUMBER"
ASCENDING = "asc"
DESCENDING = "desc"


@dataclass
class Table:
    """Columns and rows of a sheet as of one read."""

    columns: List[str] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)


@dataclass(frozen=True)
class ColumnConstraints:
    """Columns whose values must stay unique (case-insensitively) in the table."""

    uniques: Tuple[str, ...] = ()

    @classmethod
    def from_value(
        cls, value: Union["ColumnConstraints", Mapping[str, Iterable[str]], None]
    ) -> "ColumnConstraints":
        if value is None:
            return cls()
        if isinstance(value, ColumnConstraints):
            return value
        return cls(uniques=tuple(value.get("uniques") or ()))


@dataclass(frozen=True)
class ConstraintViolation:
    kind: str
    column: str
    description: str


@dataclass(frozen=True)
class ColumnSort:
    """Sort key: a column name and ``asc`` or ``desc``."""

    column: str
    direction: str = ASCENDING

    def __post_init__(self) -> None:
        if self.direction not in (ASCENDING, DESCENDING):
            raise ValueError(f"Sort direction must be 'asc' or 'desc', not {self.direction!r}")

    @classmethod
    def asc(cls, column: str) -> "ColumnSort":
        return cls(column, ASCENDING)

    @classmethod
    def desc(cls, column: str) -> "ColumnSort":
        return cls(column, DESCENDING)

    @classmethod
    def from_value(cls, value: Union["ColumnSort", Mapping[str, str]]) -> "ColumnSort":
        """Accept a :class:`ColumnSort` or a ``{"asc": col}``/``{"desc": col}`` mapping."""

        if isinstance(value, ColumnSort):
            return value
        if len(value) == 1:
            ((direction, column),) = value.items()
            return cls(column, direction)
        raise ValueError(f"Sort mapping must have exactly one of 'asc' or 'desc': {value!r}")


async def open_table(remote: "SheetsRemote", spreadsheet_id: str, sheet_name: str) -> Table:
    """Read the whole of ``sheet_name`` and materialise it as a :class:`Table`."""

    result = await remote.read_values(
        spreadsheet_id,
        sheet_range(sheet_name),
        value_render_option=UNFORMATTED_VALUE,
        date_time_render_option=SERIAL_NUMBER,
    )
    values = result.get("values") or []
    if not values:
        return Table()

    columns = [str(column) for column in values[0]]
    rows = [
        values_to_row(row_values, columns, index + 2)
        for index, row_values in enumerate(values[1:])
    ]
    logger.debug("Opened %s with %d columns and %d rows", sheet_name, len(columns), len(rows))
    return Table(columns=columns, rows=rows)


async def count_table_rows(remote: "SheetsRemote", spreadsheet_id: str, sheet_name: str) -> int:
    """Count data rows by reading only the first column of the sheet."""

    result = await remote.read_values(spreadsheet_id, first_column_range(sheet_name))
    values = result.get("values") or []
    return max(0, len(values) - 1)


def _fold(value: Any) -> str:
    return str(value).casefold()


def enforce_constraints(
    rows: Sequence[Row],
    test_row: Mapping[str, Any],
    constraints: Optional[ColumnConstraints],
) -> None:
    """Raise :class:`ConstraintError` if ``test_row`` breaks a unique column.

    ``test_row`` is skipped by identity, so an updated row taken from ``rows``
    is not compared against itself.  Blank cells compare as ``""`` like any
    other value; only a column the candidate leaves out (``None``) is not
    checked.  Every violation is collected before raising.
    """

    if constraints is None or not constraints.uniques:
        return

    violations: List[ConstraintViolation] = []
    for column in constraints.uniques:
        value = test_row.get(column)
        if value is None:
            continue
        folded = _fold(value)
        for row in rows:
            if row is test_row:
                continue
            other = row.get(column)
            if _fold("" if other is None else other) != folded:
                continue
            violations.append(
                ConstraintViolation(
                    kind="unique",
                    column=column,
                    description=f"A row already exists with {column} = {value}",
                )
            )

    if violations:
        raise ConstraintError(violations)


def _sort_key(column: str):
    # None first, then numbers, then text; other types compare by text
    def key(row: Row) -> Tuple[int, Any]:
        value = row.get(column)
        if value is None or value == "":
            return (0, 0)
        if isinstance(value, (int, float)):
            return (1, value)
        if isinstance(value, str):
            return (2, value)
        return (3, str(value))

    return key


def sort_rows(
    rows: Sequence[Row],
    columns: Sequence[str],
    sorting: Sequence[Union[ColumnSort, Mapping[str, str]]],
) -> List[Row]:
    """Return ``rows`` ordered by ``sorting``, the first entry being the primary key.

    Single-key stable sorts are applied from the last key to the first so that
    earlier keys take precedence and ties keep their previous order.
    """

    specs = [ColumnSort.from_value(entry) for entry in sorting]
    known = set(columns)
    for spec in specs:
        if spec.column not in known:
            raise SchemaError(f"Sort column does not exist: {spec.column}")

    ordered = list(rows)
    for spec in reversed(specs):
        ordered.sort(key=_sort_key(spec.column), reverse=spec.direction == DESCENDING)
    return ordered


__all__ = [
    "ASCENDING",
    "ColumnConstraints",
    "ColumnSort",
    "ConstraintViolation",
    "DESCENDING",
    "Table",
    "count_table_rows",
    "enforce_constraints",
    "open_table",
    "sort_rows",
]
