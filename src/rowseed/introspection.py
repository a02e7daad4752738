"""Schema catalog: primary keys, foreign keys and enum labels."""

import logging

import psycopg
from psycopg import Connection

from rowseed.exceptions import SchemaCatalogError
from rowseed.models import ForeignKeyConstraint, PrimaryKeys, TableForeignKeys

logger = logging.getLogger(__name__)

PRIMARY_KEYS_QUERY = """
    SELECT kcu.table_name, kcu.column_name
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage kcu
      ON tc.constraint_name = kcu.constraint_name
      AND tc.table_schema = kcu.table_schema
      AND tc.table_name = kcu.table_name
    WHERE tc.constraint_type = 'PRIMARY KEY'
      AND tc.table_schema = %s
    ORDER BY kcu.table_name, kcu.ordinal_position
"""

COLUMNS_QUERY = """
    SELECT c.table_name, c.column_name
    FROM information_schema.columns c
    JOIN information_schema.tables t
      ON t.table_schema = c.table_schema
      AND t.table_name = c.table_name
    WHERE c.table_schema = %s
      AND t.table_type = 'BASE TABLE'
    ORDER BY c.table_name, c.ordinal_position
"""

# unnest(conkey, confkey) keeps composite key columns paired and ordered.
FOREIGN_KEYS_QUERY = """
    SELECT
        con.conname,
        src.relname AS from_table,
        dst.relname AS to_table,
        src_att.attname AS from_column,
        dst_att.attname AS to_column
    FROM pg_catalog.pg_constraint con
    JOIN pg_catalog.pg_class src ON src.oid = con.conrelid
    JOIN pg_catalog.pg_class dst ON dst.oid = con.confrelid
    JOIN pg_catalog.pg_namespace ns ON ns.oid = src.relnamespace
    CROSS JOIN LATERAL unnest(con.conkey, con.confkey)
        WITH ORDINALITY AS k(from_attnum, to_attnum, position)
    JOIN pg_catalog.pg_attribute src_att
      ON src_att.attrelid = con.conrelid AND src_att.attnum = k.from_attnum
    JOIN pg_catalog.pg_attribute dst_att
      ON dst_att.attrelid = con.confrelid AND dst_att.attnum = k.to_attnum
    WHERE con.contype = 'f'
      AND ns.nspname = %s
    ORDER BY src.relname, con.conname, k.position
"""

ENUM_VALUES_QUERY = """
    SELECT t.typname, e.enumlabel
    FROM pg_catalog.pg_type t
    JOIN pg_catalog.pg_enum e ON e.enumtypid = t.oid
    JOIN pg_catalog.pg_namespace ns ON ns.oid = t.typnamespace
    WHERE ns.nspname = %s
    ORDER BY t.typname, e.enumsortorder
"""


class SchemaCatalog:
    """
    Read-only snapshot of the schema, taken inside the active transaction.

    Each query runs once per catalog instance; results are cached.
    """

    def __init__(self, conn: Connection, schema: str = "public"):
        """
        Initialize catalog.

        Args:
            conn: PostgreSQL connection (inside the caller's transaction)
            schema: Schema name
        """
        self.conn = conn
        self.schema = schema
        self._primary_keys: PrimaryKeys | None = None
        self._foreign_keys: dict[str, TableForeignKeys] | None = None
        self._enum_values: dict[str, list[str]] | None = None

    def _fetch(self, what: str, query: str) -> list[tuple]:
        try:
            with self.conn.cursor() as cur:
                cur.execute(query, (self.schema,))
                return cur.fetchall()
        except psycopg.Error as e:
            raise SchemaCatalogError(what, str(e)) from e

    def primary_keys(self) -> PrimaryKeys:
        """
        Get primary key columns of every table (cached).

        Returns:
            Table -> primary key columns in key order
        """
        if self._primary_keys is not None:
            return self._primary_keys

        result: PrimaryKeys = {}
        for table, column in self._fetch("primary keys", PRIMARY_KEYS_QUERY):
            result.setdefault(table, []).append(column)

        logger.debug(f"Found primary keys for {len(result)} tables in schema '{self.schema}'")
        self._primary_keys = result
        return result

    def foreign_keys(self) -> dict[str, TableForeignKeys]:
        """
        Get columns and foreign keys of every table (cached).

        Returns:
            Table -> TableForeignKeys (all columns, constraint name -> constraint)
        """
        if self._foreign_keys is not None:
            return self._foreign_keys

        result: dict[str, TableForeignKeys] = {}
        for table, column in self._fetch("columns", COLUMNS_QUERY):
            result.setdefault(table, TableForeignKeys()).columns.append(column)

        pairs: dict[tuple[str, str], list[tuple[str, str, str]]] = {}
        for name, from_table, to_table, from_column, to_column in self._fetch(
            "foreign keys", FOREIGN_KEYS_QUERY
        ):
            pairs.setdefault((from_table, name), []).append((to_table, from_column, to_column))

        for (from_table, name), columns in pairs.items():
            result.setdefault(from_table, TableForeignKeys()).foreign_keys[name] = (
                ForeignKeyConstraint(
                    name=name,
                    from_table=from_table,
                    from_columns=tuple(from_column for _, from_column, _ in columns),
                    to_table=columns[0][0],
                    to_columns=tuple(to_column for _, _, to_column in columns),
                )
            )

        logger.debug(f"Found {len(pairs)} foreign keys in schema '{self.schema}'")
        self._foreign_keys = result
        return result

    def enum_values(self) -> dict[str, list[str]]:
        """
        Get labels of every enum type (cached).

        Returns:
            Enum type -> labels in declaration order
        """
        if self._enum_values is not None:
            return self._enum_values

        result: dict[str, list[str]] = {}
        for type_name, label in self._fetch("enum values", ENUM_VALUES_QUERY):
            result.setdefault(type_name, []).append(label)

        self._enum_values = result
        return result

    def clear_cache(self) -> None:
        """Clear cached catalog data."""
        self._primary_keys = None
        self._foreign_keys = None
        self._enum_values = None
