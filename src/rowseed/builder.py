"""Build one idempotent upsert statement per fixture row."""

import datetime

from psycopg import sql

from rowseed.dependency import DependencyGraph
from rowseed.exceptions import (
    ConflictTargetError,
    FixtureStructureError,
    GeneratorError,
    UnknownGeneratorError,
)
from rowseed.generators.registry import GeneratorRegistry
from rowseed.models import (
    CONFLICT_KEY,
    DEPENDENCIES_KEY,
    IGNORE_ON_UPDATE_KEY,
    METADATA_KEYS,
    PrimaryKeys,
    Row,
    table_name,
)
from rowseed.values import resolve


def conflict_columns(primary_keys: PrimaryKeys, row_id: str, row: Row) -> list[str]:
    """
    Determine the conflict target of a row.

    Resolution order:
        1. Explicit '~conflict' (comma separated)
        2. The table's primary key columns
        3. A column whose raw value is the row's own identifier

    Raises:
        ConflictTargetError: If none of the above applies
    """
    explicit = row.get(CONFLICT_KEY)
    if isinstance(explicit, str) and explicit.strip():
        return [part.strip() for part in explicit.split(",") if part.strip()]

    table_pk = primary_keys.get(table_name(row_id))
    if table_pk:
        return list(table_pk)

    for column, value in row.items():
        if column not in METADATA_KEYS and value == row_id:
            return [column]

    raise ConflictTargetError(row_id)


def build_statement(
    primary_keys: PrimaryKeys,
    row_id: str,
    row: Row,
    graph: DependencyGraph | None = None,
    registry: GeneratorRegistry | None = None,
    now: datetime.datetime | None = None,
) -> str:
    """
    Build the upsert statement for one row.

    Every cell goes through the value resolver. When a graph is given,
    the row's references and '~dependencies' are recorded as edges.

    Args:
        primary_keys: Table -> primary key columns from the schema catalog
        row_id: Row identifier ('table:expression')
        row: Column -> cell
        graph: Dependency graph to record edges into
        registry: Fake-data generators (defaults to the global registry)
        now: Reference time for naturalDate()

    Returns:
        INSERT ... ON CONFLICT ... DO UPDATE statement

    Raises:
        InvalidRowIdentifierError: If row_id has no table
        ConflictTargetError: If no conflict target can be determined
        FixtureStructureError: If a data column holds a list
        UnknownGeneratorError: If a value function is unknown
        GeneratorError: If a value function fails

    Example:
        build_statement({"users": ["id"]}, "users:literal(1)", {"name": "Alice"})
        produces:

            INSERT INTO "users" ("id", "name")
                VALUES ('1', 'Alice')
                ON CONFLICT ("id")
                DO UPDATE SET "id" = '1', "name" = 'Alice';
    """
    table = table_name(row_id)

    dependencies = row.get(DEPENDENCIES_KEY) or []
    if not isinstance(dependencies, list):
        raise FixtureStructureError(f"'{DEPENDENCIES_KEY}' must be a list of strings", row_id)
    if graph is not None:
        graph.add_row(row_id)
        for dependency in dependencies:
            graph.add_dependency(row_id, dependency)

    cells: dict[str, object] = {}
    # Single-column primary keys default to the row identifier.
    table_pk = primary_keys.get(table, [])
    if len(table_pk) == 1 and table_pk[0] not in row:
        cells[table_pk[0]] = row_id
    for column, value in row.items():
        if column not in METADATA_KEYS:
            cells[column] = value

    targets = conflict_columns(primary_keys, row_id, row)
    ignored = set(row.get(IGNORE_ON_UPDATE_KEY) or [])

    literals: dict[str, sql.Composable] = {}
    for column, raw in cells.items():
        if raw is None:
            literals[column] = sql.NULL
            continue
        if not isinstance(raw, str):
            raise FixtureStructureError(f"column '{column}' must be a scalar value", row_id)
        try:
            resolved = resolve(raw, registry=registry, now=now)
        except UnknownGeneratorError as e:
            raise UnknownGeneratorError(e.name, e.argument, row_id, column) from e
        except GeneratorError as e:
            raise GeneratorError(e.name, e.argument, e.reason, row_id, column) from e
        if resolved.is_reference and graph is not None:
            graph.add_dependency(row_id, raw)
        literals[column] = sql.Literal(resolved.value)

    updates = [
        sql.SQL("{} = {}").format(sql.Identifier(column), literal)
        for column, literal in literals.items()
        if column not in ignored
    ]
    if updates:
        action = sql.SQL("DO UPDATE SET {}").format(sql.SQL(", ").join(updates))
    else:
        action = sql.SQL("DO NOTHING")

    query = sql.SQL(
        "INSERT INTO {table} ({columns})\n"
        "    VALUES ({values})\n"
        "    ON CONFLICT ({targets})\n"
        "    {action};"
    ).format(
        table=sql.Identifier(table),
        columns=sql.SQL(", ").join(sql.Identifier(column) for column in literals),
        values=sql.SQL(", ").join(literals.values()),
        targets=sql.SQL(", ").join(sql.Identifier(column) for column in targets),
        action=action,
    )
    return query.as_string(None)
