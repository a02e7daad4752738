"""Export live rows back into a fixture set.

Every exported row is keyed ``table:literal(<primary key values>)``.
Foreign keys are turned back into references in two passes: single-column
keys pointing at a table's sole primary key are written inline as
``other_table:literal(<value>)``; every other foreign key (composite, or
targeting a unique non-key column) is queued and resolved into
``~dependencies`` once all tables have been read.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable

from psycopg import Connection, sql

from rowseed.exceptions import UnresolvedDependencyError
from rowseed.introspection import SchemaCatalog
from rowseed.models import (
    DEPENDENCIES_KEY,
    IGNORE_ON_UPDATE_KEY,
    FixtureSet,
    ForeignKeyConstraint,
    PrimaryKeys,
    Row,
    TableForeignKeys,
    literal_row_id,
)

logger = logging.getLogger(__name__)

# (target table, constraint name, comma-joined values)
ConstraintKey = tuple[str, str, str]


class ColumnSelector:
    """
    Match columns against 'column' (any table) or 'table.column' entries.

    Example:
        >>> selector = ColumnSelector(["created_at", "users.password"])
        >>> selector.matches("posts", "created_at")
        True
        >>> selector.matches("posts", "password")
        False
    """

    def __init__(self, entries: Iterable[str] = ()):
        self.global_columns: set[str] = set()
        self.table_columns: dict[str, set[str]] = defaultdict(set)
        for entry in entries:
            table, sep, column = entry.partition(".")
            if sep:
                self.table_columns[table].add(column)
            else:
                self.global_columns.add(entry)

    def matches(self, table: str, column: str) -> bool:
        return column in self.global_columns or column in self.table_columns.get(table, ())

    def __bool__(self) -> bool:
        return bool(self.global_columns or self.table_columns)


def _present(values: list[str | None]) -> bool:
    return all(value is not None and value != "" for value in values)


class FixtureExporter:
    """Rebuild a fixture set from the live schema and data."""

    def __init__(
        self,
        conn: Connection,
        schema: str = "public",
        exclude_tables: Iterable[str] = (),
        exclude_columns: Iterable[str] = (),
        ignore_on_update: Iterable[str] = (),
    ):
        """
        Initialize exporter.

        Args:
            conn: PostgreSQL connection (inside the caller's transaction)
            schema: Schema to export
            exclude_tables: Tables to leave out entirely
            exclude_columns: 'column' or 'table.column' entries to leave out; a
                table left without columns is skipped like an excluded table
            ignore_on_update: 'column' or 'table.column' entries to keep stable
                across exports and exempt from UPDATE on import
        """
        self.conn = conn
        self.schema = schema
        self.catalog = SchemaCatalog(conn, schema)
        self.exclude_tables = set(exclude_tables)
        self.exclude_columns = ColumnSelector(exclude_columns)
        self.ignore_on_update = ColumnSelector(ignore_on_update)

    def export(self, prior: FixtureSet | None = None) -> FixtureSet:
        """
        Export every table with a primary key.

        Args:
            prior: Previous export; values of ignore-on-update columns are
                taken from it for rows it contains

        Returns:
            Exported fixture set

        Raises:
            UnresolvedDependencyError: If a foreign key points at a row
                that was not exported
            SchemaCatalogError: If a catalog query fails
        """
        catalog_keys = self.catalog.foreign_keys()
        excluded = set(self.exclude_tables)
        for table in self.catalog.primary_keys():
            info = catalog_keys.get(table, TableForeignKeys())
            if table not in excluded and all(
                self.exclude_columns.matches(table, column) for column in info.columns
            ):
                # References to a skipped table are dropped like excluded ones.
                logger.debug(f"Skipping table '{table}': every column is excluded")
                excluded.add(table)

        primary_keys: PrimaryKeys = {
            table: columns
            for table, columns in self.catalog.primary_keys().items()
            if table not in excluded
        }
        foreign_keys: dict[str, TableForeignKeys] = {}
        for table, info in catalog_keys.items():
            if table in excluded:
                continue
            foreign_keys[table] = TableForeignKeys(
                columns=list(info.columns),
                foreign_keys={
                    name: fk
                    for name, fk in info.foreign_keys.items()
                    if fk.to_table not in excluded
                },
            )

        incoming: dict[str, list[ForeignKeyConstraint]] = defaultdict(list)
        for info in foreign_keys.values():
            for fk in info.foreign_keys.values():
                incoming[fk.to_table].append(fk)

        fixture_set = FixtureSet()
        lookup: dict[ConstraintKey, str] = {}
        deferred: list[tuple[str, Row, ConstraintKey]] = []

        for table in sorted(primary_keys):
            info = foreign_keys.get(table, TableForeignKeys())
            columns = [
                column
                for column in info.columns
                if not self.exclude_columns.matches(table, column)
            ]

            inline = self._inline_constraints(info, primary_keys)
            deferrable = [
                fk
                for fk in info.foreign_keys.values()
                if not (fk.is_single_column and inline.get(fk.from_columns[0]) is fk)
            ]

            records = self._select(table, columns)
            logger.debug(f"Exporting {len(records)} rows from '{table}'")
            for record in records:
                values = dict(zip(columns, record))
                row_id, row = self._build_row(table, values, primary_keys[table], inline)

                for fk in incoming.get(table, []):
                    target_values = [values.get(column) for column in fk.to_columns]
                    if _present(target_values):
                        lookup[(table, fk.name, ",".join(target_values))] = row_id

                for fk in deferrable:
                    source_values = [values.get(column) for column in fk.from_columns]
                    if _present(source_values):
                        key = (fk.to_table, fk.name, ",".join(source_values))
                        deferred.append((row_id, row, key))

                self._apply_ignore_on_update(table, row_id, row, prior)
                fixture_set.add(row_id, row)

        # Every table has been read, so every lookup entry now exists.
        for row_id, row, key in deferred:
            target = lookup.get(key)
            if target is None:
                raise UnresolvedDependencyError(*key)
            if target == row_id:
                continue
            dependencies = row.setdefault(DEPENDENCIES_KEY, [])
            if target not in dependencies:
                dependencies.append(target)

        logger.info(f"Exported {len(fixture_set)} rows from {len(primary_keys)} tables")
        return fixture_set

    def _select(self, table: str, columns: list[str]) -> list[tuple]:
        query = sql.SQL("SELECT {columns} FROM {table}").format(
            columns=sql.SQL(", ").join(
                sql.SQL("CAST({} AS TEXT)").format(sql.Identifier(column)) for column in columns
            ),
            table=sql.Identifier(self.schema, table),
        )
        with self.conn.cursor() as cur:
            cur.execute(query)
            return cur.fetchall()

    @staticmethod
    def _inline_target(fk: ForeignKeyConstraint, primary_keys: PrimaryKeys) -> bool:
        """Whether fk is single-column and points at its target's sole primary key."""
        return fk.is_single_column and primary_keys.get(fk.to_table) == [fk.to_columns[0]]

    def _inline_constraints(
        self, info: TableForeignKeys, primary_keys: PrimaryKeys
    ) -> dict[str, ForeignKeyConstraint]:
        """Column -> constraint written inline as a reference."""
        inline = {}
        for fk in info.foreign_keys.values():
            if self._inline_target(fk, primary_keys):
                inline[fk.from_columns[0]] = fk
        return inline

    def _build_row(
        self,
        table: str,
        values: dict[str, str | None],
        table_pk: list[str],
        inline: dict[str, ForeignKeyConstraint],
    ) -> tuple[str, Row]:
        row_id = literal_row_id(table, [values.get(column) or "" for column in table_pk])

        row: Row = {}
        dependencies: list[str] = []
        for column, value in values.items():
            # Nulls are kept: the column may have a non-null default.
            if value is None:
                row[column] = None
                continue
            fk = inline.get(column)
            if table_pk == [column]:
                # Implied by the row identifier on import.
                if fk is not None and value != "":
                    dependencies.append(literal_row_id(fk.to_table, [value]))
                continue
            if fk is not None and value != "":
                row[column] = literal_row_id(fk.to_table, [value])
                continue
            row[column] = value

        if dependencies:
            row[DEPENDENCIES_KEY] = dependencies
        return row_id, row

    def _apply_ignore_on_update(
        self, table: str, row_id: str, row: Row, prior: FixtureSet | None
    ) -> None:
        if not self.ignore_on_update:
            return
        designated = [
            column
            for column in row
            if column not in (DEPENDENCIES_KEY, IGNORE_ON_UPDATE_KEY)
            and self.ignore_on_update.matches(table, column)
        ]
        if not designated:
            return
        prior_row = prior.rows.get(row_id) if prior is not None else None
        if prior_row is not None:
            for column in designated:
                if column in prior_row:
                    row[column] = prior_row[column]
        row[IGNORE_ON_UPDATE_KEY] = designated


def export_fixtures(
    conn: Connection,
    exclude_tables: Iterable[str] = (),
    exclude_columns: Iterable[str] = (),
    ignore_on_update: Iterable[str] = (),
    prior: FixtureSet | None = None,
    schema: str = "public",
) -> FixtureSet:
    """
    Export the schema's rows to a fixture set (see FixtureExporter).

    Example:
        >>> with psycopg.connect(url) as conn:
        ...     fixtures = export_fixtures(conn, exclude_tables=["audit_log"])
        ...     write_fixture_file(fixtures, "fixtures/rowseed.yml")
    """
    exporter = FixtureExporter(
        conn,
        schema=schema,
        exclude_tables=exclude_tables,
        exclude_columns=exclude_columns,
        ignore_on_update=ignore_on_update,
    )
    return exporter.export(prior)
