"""Import orchestration: fixtures -> ordered upserts -> execution."""

import datetime
import logging

import psycopg
from psycopg import Connection, sql

from rowseed.builder import build_statement
from rowseed.dependency import DependencyGraph
from rowseed.exceptions import StatementExecutionError, UnknownRowReferenceError
from rowseed.generators.registry import GeneratorRegistry
from rowseed.introspection import SchemaCatalog
from rowseed.models import FixtureSet, PrimaryKeys

logger = logging.getLogger(__name__)


def build_statements(
    fixture_set: FixtureSet,
    primary_keys: PrimaryKeys,
    registry: GeneratorRegistry | None = None,
    now: datetime.datetime | None = None,
) -> tuple[list[str], DependencyGraph]:
    """
    Build every upsert statement in dependency order.

    Args:
        fixture_set: Rows to import
        primary_keys: Table -> primary key columns
        registry: Fake-data generators (defaults to the global registry)
        now: Reference time for naturalDate()

    Returns:
        (statements prerequisites-first, dependency graph)

    Raises:
        UnknownRowReferenceError: If a row depends on an undefined row
        RowseedError: Any structural, resolution or schema error
    """
    graph = DependencyGraph()
    for row_id in fixture_set.rows:
        graph.add_row(row_id)

    statements: dict[str, str] = {}
    for row_id, row in fixture_set.rows.items():
        statements[row_id] = build_statement(
            primary_keys, row_id, row, graph=graph, registry=registry, now=now
        )

    for row_id in fixture_set.rows:
        for dependency in graph.get_dependencies(row_id):
            if dependency not in statements:
                raise UnknownRowReferenceError(row_id, dependency)

    ordered = [statements[row_id] for row_id in graph.execution_order()]
    return ordered, graph


def run_fixtures(
    conn: Connection,
    fixture_set: FixtureSet,
    schema: str = "public",
    statement_timeout_ms: int | None = None,
    registry: GeneratorRegistry | None = None,
) -> list[str]:
    """
    Run fixtures inside the caller's transaction, without committing.

    Statements run one at a time in dependency order; the first failure
    aborts the run and leaves the transaction for the caller to roll back.

    Args:
        conn: PostgreSQL connection with an open transaction
        fixture_set: Rows to import
        schema: Schema to introspect
        statement_timeout_ms: Per-statement timeout for this transaction
        registry: Fake-data generators (defaults to the global registry)

    Returns:
        Executed statements in order

    Raises:
        StatementExecutionError: If a statement fails
        RowseedError: Any error raised while building statements
    """
    primary_keys = SchemaCatalog(conn, schema).primary_keys()
    statements, _ = build_statements(fixture_set, primary_keys, registry=registry)

    with conn.cursor() as cur:
        if statement_timeout_ms is not None:
            cur.execute(
                sql.SQL("SET LOCAL statement_timeout = {}").format(
                    sql.Literal(int(statement_timeout_ms))
                )
            )
        for statement in statements:
            logger.debug(statement)
            try:
                cur.execute(statement)
            except psycopg.Error as e:
                raise StatementExecutionError(statement, str(e)) from e

    logger.info(f"Ran {len(statements)} statements for {len(fixture_set)} rows")
    return statements
