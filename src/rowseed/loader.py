"""Load fixture documents from YAML files and directories."""

import logging
import re
from pathlib import Path
from typing import Any

import jinja2
import yaml

from rowseed.exceptions import DuplicateRowError, FixtureStructureError
from rowseed.models import FixtureSet, normalize_row

logger = logging.getLogger(__name__)

TEMPLATE_KEY = "template"
TEMPLATE_FILE_PATTERN = re.compile(r"^template_(\S+)\.ya?ml$")
FIXTURE_SUFFIXES = (".yml", ".yaml")


def _int_slice(count: Any) -> list[int]:
    """0..count-1, for looping a fixed number of times inside templates."""
    return list(range(int(count)))


def _parse_yaml(text: str, source: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise FixtureStructureError(f"{source} is not valid YAML: {e}") from e


def load_fixture_file(path: str | Path) -> FixtureSet:
    """
    Load one fixture document.

    Args:
        path: YAML file with a top-level 'rows' mapping

    Returns:
        FixtureSet (templated rows are not expanded)

    Raises:
        FixtureStructureError: If the document shape is wrong
        DuplicateRowError: If a row identifier repeats
    """
    path = Path(path)
    return FixtureSet.from_document(_parse_yaml(path.read_text(), str(path)))


class TemplateExpander:
    """
    Expand rows that name a template into the rows the template renders.

    Templates are Jinja2 files named 'template_<name>.yml'. A row
    'users:literal(1)' with 'template: user' renders template_user.yml
    with the row's own values plus 'rowId' and must produce a document
    of the usual '{rows: ...}' shape.
    """

    def __init__(self, directory: str | Path, enums: dict[str, list[str]] | None = None):
        """
        Initialize expander.

        Args:
            directory: Directory searched recursively for template files
            enums: Enum type -> labels, exposed to templates as 'enums'
        """
        templates: dict[str, str] = {}
        for path in sorted(Path(directory).rglob("template_*")):
            match = TEMPLATE_FILE_PATTERN.match(path.name)
            if match and path.is_file():
                templates[match.group(1)] = path.read_text()

        self.env = jinja2.Environment(
            loader=jinja2.DictLoader(templates),
            undefined=jinja2.StrictUndefined,
            keep_trailing_newline=True,
        )
        self.env.globals["intSlice"] = _int_slice
        self.env.globals["enums"] = enums or {}

    @property
    def names(self) -> list[str]:
        return self.env.list_templates()

    def expand(self, row_id: str, row: dict[str, Any]) -> FixtureSet:
        """
        Render the template a row names.

        Raises:
            FixtureStructureError: If the template is missing or fails to render
        """
        name = row[TEMPLATE_KEY]
        variables = {key: value for key, value in row.items() if key != TEMPLATE_KEY}
        variables["rowId"] = row_id
        try:
            rendered = self.env.get_template(str(name)).render(**variables)
        except jinja2.TemplateNotFound as e:
            raise FixtureStructureError(f"template '{name}' does not exist", row_id) from e
        except jinja2.TemplateError as e:
            raise FixtureStructureError(f"template '{name}' failed: {e}", row_id) from e

        return FixtureSet.from_document(_parse_yaml(rendered, f"template '{name}'"))


def _merge_document(
    target: FixtureSet, document: Any, source: str, expander: TemplateExpander
) -> None:
    if document is None:
        return
    if not isinstance(document, dict) or not isinstance(document.get("rows") or {}, dict):
        raise FixtureStructureError(f"{source} must be a mapping with a 'rows' mapping")

    for row_id, raw_row in (document.get("rows") or {}).items():
        row_id = str(row_id)
        if row_id in target:
            raise DuplicateRowError(row_id)
        if isinstance(raw_row, dict) and TEMPLATE_KEY in raw_row:
            target.merge(expander.expand(row_id, raw_row))
        else:
            target.add(row_id, normalize_row(row_id, raw_row))


def load_fixture_directory(
    directory: str | Path, enums: dict[str, list[str]] | None = None
) -> FixtureSet:
    """
    Load every fixture document under a directory into one fixture set.

    Args:
        directory: Directory searched recursively for *.yml / *.yaml
        enums: Enum labels made available to templates

    Returns:
        Merged FixtureSet with templated rows expanded

    Raises:
        DuplicateRowError: If any row identifier is defined twice
        FixtureStructureError: If a document or template is malformed
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Fixture directory not found: {directory}")

    expander = TemplateExpander(directory, enums)
    fixture_set = FixtureSet()
    paths = sorted(p for p in directory.rglob("*") if p.suffix in FIXTURE_SUFFIXES and p.is_file())
    for path in paths:
        if TEMPLATE_FILE_PATTERN.match(path.name):
            continue
        logger.debug(f"Loading fixtures from {path}")
        _merge_document(fixture_set, _parse_yaml(path.read_text(), str(path)), str(path), expander)

    logger.debug(f"Loaded {len(fixture_set)} rows from {directory}")
    return fixture_set


def dump_fixture_set(fixture_set: FixtureSet) -> str:
    """Serialize a fixture set as YAML with 2-space indentation and sorted keys."""
    return yaml.safe_dump(
        fixture_set.to_document(),
        indent=2,
        sort_keys=True,
        default_flow_style=False,
        allow_unicode=True,
    )


def write_fixture_file(fixture_set: FixtureSet, path: str | Path) -> Path:
    """Write a fixture set to a YAML file, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_fixture_set(fixture_set))
    return path
