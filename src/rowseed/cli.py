"""CLI commands for rowseed."""

import logging
import shutil
import sys
from pathlib import Path

import click
import psycopg

from rowseed.config import Config
from rowseed.exceptions import RowseedError
from rowseed.export import export_fixtures
from rowseed.introspection import SchemaCatalog
from rowseed.loader import (
    FIXTURE_SUFFIXES,
    load_fixture_directory,
    load_fixture_file,
    write_fixture_file,
)
from rowseed.orchestrator import run_fixtures

logger = logging.getLogger("rowseed")

EXPORT_FILE_NAME = "rowseed.yml"


def _configure_logging(config: Config, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.logging.level.upper(), None)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _fail(message: str, error: Exception) -> None:
    logger.error(f"{message}: {error}")
    sys.exit(1)


@click.group()
@click.version_option(package_name="rowseed")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to rowseed.toml (default: search upward from the current directory)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None) -> None:
    """rowseed - deterministic fixture seeding and export for PostgreSQL."""
    ctx.obj = Config.from_toml(config_path) if config_path else Config.find_and_load()


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--verbose", "-v", is_flag=True, help="Log every statement")
@click.option("--soft", "-s", is_flag=True, help="Run without committing (dry run)")
@click.pass_obj
def load(config: Config, path: Path, verbose: bool, soft: bool) -> None:
    """Load fixtures from PATH into the database."""
    _configure_logging(config, verbose)
    database = config.database

    try:
        conn = psycopg.connect(database.url)
    except psycopg.Error as e:
        _fail("Could not connect to database", e)

    with conn:
        try:
            enums = SchemaCatalog(conn, database.schema_name).enum_values()
            fixture_set = load_fixture_directory(path, enums=enums)
            run_fixtures(
                conn,
                fixture_set,
                schema=database.schema_name,
                statement_timeout_ms=database.statement_timeout_ms,
            )
        except (RowseedError, OSError) as e:
            conn.rollback()
            _fail("Could not run fixtures", e)

        if soft:
            conn.rollback()
            logger.info("Not committing transaction due to --soft flag")
        else:
            conn.commit()

    logger.info(f"Load complete, {len(fixture_set)} rows processed")


def _check_export_directory(directory: Path) -> Path | None:
    """
    Make sure the export directory can be replaced, without touching it.

    Only directories containing nothing but YAML files may be replaced.

    Returns:
        Path of the previous export file, if one exists
    """
    if not directory.exists():
        return None
    if not directory.is_dir():
        raise click.ClickException(f"Export directory is not a directory: {directory}")

    for entry in directory.rglob("*"):
        if entry.is_file() and entry.suffix not in FIXTURE_SUFFIXES:
            raise click.ClickException(
                f"rowseed can only safely delete directories that only contain "
                f"YAML files, found: {entry}"
            )
    existing = directory / EXPORT_FILE_NAME
    return existing if existing.is_file() else None


def _reset_export_directory(directory: Path) -> None:
    """Empty a directory already accepted by _check_export_directory."""
    if directory.exists():
        shutil.rmtree(directory)
    directory.mkdir(parents=True, exist_ok=True)


@cli.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.option("--exclude", "exclude_tables", multiple=True, help="Table to exclude (repeatable)")
@click.option(
    "--exclude-column",
    "exclude_columns",
    multiple=True,
    help="Column to exclude, as COLUMN or TABLE.COLUMN (repeatable)",
)
@click.option(
    "--ignore-on-update",
    "ignore_on_update",
    multiple=True,
    help="Column to keep stable across exports, as COLUMN or TABLE.COLUMN (repeatable)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_obj
def export(
    config: Config,
    path: Path,
    exclude_tables: tuple[str, ...],
    exclude_columns: tuple[str, ...],
    ignore_on_update: tuple[str, ...],
    verbose: bool,
) -> None:
    """Export the database to PATH/rowseed.yml.

    PATH is only replaced once the export has succeeded.
    """
    _configure_logging(config, verbose)
    database = config.database
    exclude_tables = exclude_tables or tuple(config.export.exclude_tables)
    exclude_columns = exclude_columns or tuple(config.export.exclude_columns)
    ignore_on_update = ignore_on_update or tuple(config.export.ignore_on_update)

    previous = _check_export_directory(path)
    prior = None
    if previous is not None:
        try:
            prior = load_fixture_file(previous)
        except RowseedError as e:
            _fail("Could not read previous export", e)

    try:
        conn = psycopg.connect(database.url)
    except psycopg.Error as e:
        _fail("Could not connect to database", e)

    with conn:
        try:
            fixture_set = export_fixtures(
                conn,
                exclude_tables=exclude_tables,
                exclude_columns=exclude_columns,
                ignore_on_update=ignore_on_update,
                prior=prior,
                schema=database.schema_name,
            )
        except (RowseedError, psycopg.Error) as e:
            _fail("Could not assemble fixtures from database", e)
        finally:
            # Export is read-only.
            conn.rollback()

    _reset_export_directory(path)
    write_fixture_file(fixture_set, path / EXPORT_FILE_NAME)
    logger.info(f"Export complete, {len(fixture_set)} rows exported")


if __name__ == "__main__":
    cli()
