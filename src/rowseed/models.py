"""Data models and type definitions."""

import datetime
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from rowseed.exceptions import (
    DuplicateRowError,
    FixtureStructureError,
    InvalidRowIdentifierError,
)

CONFLICT_KEY = "~conflict"
DEPENDENCIES_KEY = "~dependencies"
IGNORE_ON_UPDATE_KEY = "~ignore_on_update"
METADATA_KEYS = frozenset({CONFLICT_KEY, DEPENDENCIES_KEY, IGNORE_ON_UPDATE_KEY})

# A cell is SQL NULL, text, or a list of strings (metadata keys only).
Cell = str | list[str] | None
Row = dict[str, Cell]

# table -> ordered primary key columns
PrimaryKeys = dict[str, list[str]]


def table_name(row_id: str) -> str:
    """
    Get the table a row identifier belongs to.

    Args:
        row_id: Row identifier such as 'users:literal(1)'

    Returns:
        Text before the first ':'

    Raises:
        InvalidRowIdentifierError: If the identifier has no ':'
    """
    table, sep, _ = row_id.partition(":")
    if not sep or not table:
        raise InvalidRowIdentifierError(row_id)
    return table


def literal_row_id(table: str, values: list[str]) -> str:
    """Build the 'table:literal(a.b)' identifier used by exports."""
    return f"{table}:literal({'.'.join(values)})"


def _normalize_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return str(value)


def normalize_cell(value: Any, row_id: str, column: str) -> Cell:
    """
    Convert a loosely typed document value into a Cell.

    Args:
        value: Value as parsed from YAML
        row_id: Owning row (for error messages)
        column: Column name (for error messages)

    Returns:
        None, a string, or a list of strings

    Raises:
        FixtureStructureError: For nested mappings or lists of non-scalars
    """
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        items = []
        for item in value:
            if item is None or isinstance(item, (dict, list, tuple)):
                raise FixtureStructureError(
                    f"column '{column}' must be a list of strings", row_id
                )
            items.append(_normalize_scalar(item))
        return items
    if isinstance(value, dict):
        raise FixtureStructureError(f"column '{column}' cannot be a mapping", row_id)
    return _normalize_scalar(value)


def normalize_row(row_id: str, raw_row: Any) -> Row:
    """Validate one document row and normalize its cells."""
    if raw_row is None:
        return {}
    if not isinstance(raw_row, dict):
        raise FixtureStructureError("row must be a mapping of column to value", row_id)

    row: Row = {}
    for column, value in raw_row.items():
        row[str(column)] = normalize_cell(value, row_id, str(column))

    if isinstance(row.get(CONFLICT_KEY), list):
        raise FixtureStructureError(f"'{CONFLICT_KEY}' must be a comma separated string", row_id)
    for key in (DEPENDENCIES_KEY, IGNORE_ON_UPDATE_KEY):
        if key in row and not isinstance(row[key], list):
            raise FixtureStructureError(f"'{key}' must be a list of strings", row_id)
    return row


@dataclass
class FixtureSet:
    """
    Every declarative row of a run, keyed by row identifier.

    Order is irrelevant: execution order comes from the dependency graph.

    Attributes:
        rows: Row identifier -> row
    """

    rows: dict[str, Row] = field(default_factory=dict)

    def add(self, row_id: str, row: Row) -> None:
        """
        Add a row.

        Raises:
            DuplicateRowError: If the row identifier already exists
        """
        if row_id in self.rows:
            raise DuplicateRowError(row_id)
        self.rows[row_id] = row

    def merge(self, other: "FixtureSet") -> None:
        """Merge another fixture set into this one, rejecting duplicates."""
        for row_id, row in other.rows.items():
            self.add(row_id, row)

    def table_counts(self) -> dict[str, int]:
        """Number of rows per table."""
        return dict(Counter(table_name(row_id) for row_id in self.rows))

    def __len__(self) -> int:
        return len(self.rows)

    def __contains__(self, row_id: object) -> bool:
        return row_id in self.rows

    @classmethod
    def from_document(cls, document: Any) -> "FixtureSet":
        """
        Build a fixture set from a parsed '{rows: {...}}' document.

        Raises:
            FixtureStructureError: If the document shape is wrong
        """
        if document is None:
            return cls()
        if not isinstance(document, dict):
            raise FixtureStructureError("document must be a mapping with a 'rows' key")
        raw_rows = document.get("rows") or {}
        if not isinstance(raw_rows, dict):
            raise FixtureStructureError("'rows' must be a mapping of row identifier to row")

        fixture_set = cls()
        for row_id, raw_row in raw_rows.items():
            fixture_set.add(str(row_id), normalize_row(str(row_id), raw_row))
        return fixture_set

    def to_document(self) -> dict[str, Any]:
        """Convert to the '{rows: {...}}' document shape."""
        return {"rows": {row_id: dict(row) for row_id, row in self.rows.items()}}


@dataclass(frozen=True)
class ForeignKeyConstraint:
    """
    Foreign key constraint metadata (supports composite keys).

    Attributes:
        name: Constraint name
        from_table: Referencing table
        from_columns: Referencing columns, in constraint order
        to_table: Referenced table
        to_columns: Referenced columns, paired with from_columns
    """

    name: str
    from_table: str
    from_columns: tuple[str, ...]
    to_table: str
    to_columns: tuple[str, ...]

    @property
    def column_pairs(self) -> list[tuple[str, str]]:
        """(from column, to column) pairs in constraint order."""
        return list(zip(self.from_columns, self.to_columns))

    @property
    def is_single_column(self) -> bool:
        """Whether this constraint has exactly one column pair."""
        return len(self.from_columns) == 1


@dataclass
class TableForeignKeys:
    """
    Columns and foreign keys of one table.

    Attributes:
        columns: All column names in ordinal order
        foreign_keys: Constraint name -> constraint
    """

    columns: list[str] = field(default_factory=list)
    foreign_keys: dict[str, ForeignKeyConstraint] = field(default_factory=dict)
