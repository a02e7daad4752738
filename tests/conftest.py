"""Pytest configuration and shared fixtures."""

import os
from typing import Any

import psycopg
import pytest
from psycopg import Connection

TEST_DATABASE_URL = os.getenv("ROWSEED_TEST_DATABASE_URL", "postgresql://localhost/rowseed_test")
TEST_SCHEMA = "rowseed_test"


class FakeCursor:
    """Cursor answering queries from FakeConnection.responses."""

    def __init__(self, conn: "FakeConnection"):
        self.conn = conn
        self._rows: list[tuple] = []

    def __enter__(self) -> "FakeCursor":
        return self

    def __exit__(self, *exc: Any) -> None:
        pass

    def execute(self, query: Any, params: Any = None) -> None:
        text = query if isinstance(query, str) else query.as_string(None)
        self.conn.executed.append(text)
        for fragment, result in self.conn.responses:
            if fragment in text:
                if isinstance(result, Exception):
                    raise result
                self._rows = list(result)
                return
        self._rows = []

    def fetchall(self) -> list[tuple]:
        return self._rows


class FakeConnection:
    """
    Stand-in for a psycopg connection.

    Queries containing a registered fragment return the registered rows
    (or raise the registered exception); every query text is recorded.
    """

    def __init__(self, responses: list[tuple[str, Any]] | None = None):
        self.responses = list(responses or [])
        self.executed: list[str] = []
        self.committed = False
        self.rolled_back = False

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def commit(self) -> None:
        self.committed = True

    def rollback(self) -> None:
        self.rolled_back = True

    def __enter__(self) -> "FakeConnection":
        return self

    def __exit__(self, *exc: Any) -> None:
        pass


def build_schema_responses(
    primary_keys: dict[str, list[str]],
    columns: dict[str, list[str]],
    foreign_keys: list[tuple[str, str, str, list[str], list[str]]] = (),
    data: dict[str, list[tuple]] | None = None,
    schema: str = "public",
) -> list[tuple[str, Any]]:
    """
    Build FakeConnection responses describing a schema and its rows.

    Args:
        primary_keys: Table -> primary key columns
        columns: Table -> all columns in ordinal order
        foreign_keys: (name, from table, to table, from columns, to columns)
        data: Table -> rows, each a tuple in column order
        schema: Schema name used in SELECT statements
    """
    pk_rows = [(table, column) for table, cols in primary_keys.items() for column in cols]
    column_rows = [(table, column) for table, cols in columns.items() for column in cols]
    fk_rows = [
        (name, from_table, to_table, from_column, to_column)
        for name, from_table, to_table, from_columns, to_columns in foreign_keys
        for from_column, to_column in zip(from_columns, to_columns)
    ]
    responses: list[tuple[str, Any]] = [
        ("'PRIMARY KEY'", pk_rows),
        ("information_schema.columns", column_rows),
        ("contype = 'f'", fk_rows),
    ]
    for table, rows in (data or {}).items():
        responses.append((f'FROM "{schema}"."{table}"', rows))
    return responses


@pytest.fixture
def fake_conn():
    """Factory for FakeConnection instances."""
    return FakeConnection


@pytest.fixture
def db_conn() -> Connection:
    """
    Provide a test database connection inside a transaction.

    Skips the test when no database is reachable. Everything is rolled
    back afterwards.
    """
    try:
        conn = psycopg.connect(TEST_DATABASE_URL, autocommit=False, connect_timeout=3)
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL not available at {TEST_DATABASE_URL}: {e}")

    yield conn

    # Rollback any changes
    conn.rollback()
    conn.close()


@pytest.fixture
def test_schema(db_conn: Connection) -> str:
    """
    Create an empty schema and put it first on the search path.

    Returns the schema name.
    """
    with db_conn.cursor() as cur:
        cur.execute(f"DROP SCHEMA IF EXISTS {TEST_SCHEMA} CASCADE")
        cur.execute(f"CREATE SCHEMA {TEST_SCHEMA}")
        cur.execute(f"SET LOCAL search_path TO {TEST_SCHEMA}")

    return TEST_SCHEMA


@pytest.fixture
def schema_responses():
    """Helper building FakeConnection responses for a schema."""
    return build_schema_responses
