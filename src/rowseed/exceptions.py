"""Custom exceptions with helpful error messages."""


class RowseedError(Exception):
    """Base exception for rowseed errors."""

    pass


def _location(row_id: str | None, column: str | None) -> str:
    if row_id is None:
        return ""
    if column is None:
        return f" in row '{row_id}'"
    return f" in row '{row_id}', column '{column}'"


class FixtureStructureError(RowseedError):
    """Fixture document or cell has a shape rowseed cannot use."""

    def __init__(self, message: str, row_id: str | None = None):
        self.row_id = row_id
        location = f" (row '{row_id}')" if row_id else ""
        super().__init__(
            f"Invalid fixture structure{location}: {message}\n\n"
            f"Suggestions:\n"
            f"1. Cells must be null, a scalar, or (for metadata keys) a list of strings\n"
            f"2. Documents must have the shape: rows: {{'table:literal(1)': {{column: value}}}}"
        )


class InvalidRowIdentifierError(RowseedError):
    """Row identifier does not name a table."""

    def __init__(self, row_id: str):
        self.row_id = row_id
        super().__init__(
            f"Invalid row identifier '{row_id}'.\n\n"
            f"Suggestions:\n"
            f"1. Row identifiers look like 'table:literal(1)' or 'users:uuid(alice)'\n"
            f"2. The text before the first ':' must be the table name"
        )


class DuplicateRowError(RowseedError):
    """Same row identifier defined more than once."""

    def __init__(self, row_id: str):
        self.row_id = row_id
        super().__init__(
            f"Row '{row_id}' is defined more than once.\n\n"
            f"Suggestions:\n"
            f"1. Search your fixture files and templates for '{row_id}'\n"
            f"2. Templated rows share the same namespace as regular rows"
        )


class UnknownRowReferenceError(RowseedError):
    """Row references another row that is not part of the fixture set."""

    def __init__(self, row_id: str, reference: str):
        self.row_id = row_id
        self.reference = reference
        super().__init__(
            f"Row '{row_id}' depends on '{reference}', "
            f"but '{reference}' is not defined.\n\n"
            f"Suggestions:\n"
            f"1. Add a row named '{reference}' to your fixtures\n"
            f"2. Check the reference for typos (table name and function argument)"
        )


class UnknownGeneratorError(RowseedError):
    """Value function name is not a builtin or registered generator."""

    def __init__(
        self, name: str, argument: str, row_id: str | None = None, column: str | None = None
    ):
        self.name = name
        self.argument = argument
        self.row_id = row_id
        self.column = column
        super().__init__(
            f"Unknown value function '{name}({argument})'{_location(row_id, column)}.\n\n"
            f"Suggestions:\n"
            f"1. Builtins are uuid(), int(), literal() and naturalDate()\n"
            f"2. Use rowseed.list_generators() to see registered fake-data generators\n"
            f"3. Register your own: register_generator('{name}', lambda seed: ...)"
        )


class GeneratorError(RowseedError):
    """Generator failed to produce a value."""

    def __init__(
        self,
        name: str,
        argument: str,
        reason: str,
        row_id: str | None = None,
        column: str | None = None,
    ):
        self.name = name
        self.argument = argument
        self.reason = reason
        self.row_id = row_id
        self.column = column
        super().__init__(
            f"Value function '{name}({argument})'{_location(row_id, column)} failed: {reason}"
        )


class SchemaCatalogError(RowseedError):
    """Schema introspection query failed."""

    def __init__(self, what: str, reason: str):
        super().__init__(
            f"Could not read {what} from the database catalog: {reason}\n\n"
            f"Suggestions:\n"
            f"1. Check database connection settings\n"
            f"2. Ensure the current role can read pg_catalog and information_schema"
        )


class ConflictTargetError(RowseedError):
    """No conflict target could be determined for a row."""

    def __init__(self, row_id: str):
        self.row_id = row_id
        super().__init__(
            f"Cannot determine column to conflict with for '{row_id}'.\n\n"
            f"Suggestions:\n"
            f"1. Give the table a primary key\n"
            f"2. Set '~conflict' on the row, e.g. '~conflict: email'\n"
            f"3. Set a column to the row's own identifier: 'id: {row_id}'"
        )


class StatementExecutionError(RowseedError):
    """Statement failed while running fixtures."""

    def __init__(self, statement: str, reason: str):
        self.statement = statement
        super().__init__(f"Error when running query {statement}\n{reason}")


class UnresolvedDependencyError(RowseedError):
    """Exported row references a row that was never exported."""

    def __init__(self, table: str, constraint: str, values: str):
        self.key = (table, constraint, values)
        super().__init__(
            f"Row has missing dependency on constraint map key "
            f"[{table} {constraint} {values}].\n\n"
            f"Suggestions:\n"
            f"1. Do not exclude table '{table}' from the export\n"
            f"2. Check that the referenced row exists"
        )
