"""
rowseed - Deterministic Fixture Seeding for PostgreSQL

Turns declarative YAML rows into dependency-ordered, idempotent upserts,
and exports live rows back into the same declarative format.
"""

from rowseed.builder import build_statement
from rowseed.dependency import DependencyGraph
from rowseed.export import export_fixtures
from rowseed.generators.registry import (
    clear_generators,
    list_generators,
    register_generator,
)
from rowseed.introspection import SchemaCatalog
from rowseed.loader import load_fixture_directory, load_fixture_file, write_fixture_file
from rowseed.models import FixtureSet, ForeignKeyConstraint
from rowseed.orchestrator import build_statements, run_fixtures
from rowseed.values import resolve

__version__ = "0.1.0"

__all__ = [
    "DependencyGraph",
    "FixtureSet",
    "ForeignKeyConstraint",
    "SchemaCatalog",
    "build_statement",
    "build_statements",
    "clear_generators",
    "export_fixtures",
    "list_generators",
    "load_fixture_directory",
    "load_fixture_file",
    "register_generator",
    "resolve",
    "run_fixtures",
    "write_fixture_file",
]
