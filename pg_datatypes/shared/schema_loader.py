"""Schema snapshot loading utilities.

A snapshot is a YAML file describing tables the same way live
introspection reports them, which allows generating types without a
database connection:

    tables:
      - name: users
        columns:
          - name: id
            type: serial
            nullable: false
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterator, Sequence

import yaml

from .errors import SchemaError, SchemaValidationError
from .models import Column, Table

logger = logging.getLogger(__name__)


def load_schema(schema_path: Path) -> dict[str, Any]:
    """Load a YAML document whose root must be a mapping.

    Args:
        schema_path: Path to the YAML file.

    Returns:
        The parsed dictionary.

    Raises:
        SchemaError: If the file cannot be read or parsed.
    """
    try:
        content = schema_path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaError(f"Failed to read schema file: {e}", str(schema_path)) from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SchemaError(f"Invalid YAML: {e}", str(schema_path)) from e

    if not isinstance(data, dict):
        raise SchemaError("Schema root must be a mapping", str(schema_path))

    return data


def collect_schema_paths(inputs: Sequence[Path]) -> list[Path]:
    """Collect all snapshot files from the given inputs.

    Args:
        inputs: Paths to snapshot files or directories.

    Returns:
        List of unique, resolved snapshot file paths.

    Raises:
        FileNotFoundError: If any input path doesn't exist.
    """

    def _iter_paths() -> Iterator[Path]:
        for raw in inputs:
            path = raw.resolve()
            if not path.exists():
                raise FileNotFoundError(f"Schema path '{raw}' does not exist")
            if path.is_dir():
                yield from sorted(
                    p
                    for p in path.iterdir()
                    if p.is_file() and p.suffix in (".yaml", ".yml")
                )
            else:
                yield path

    # Use dict to preserve order while deduplicating
    seen: dict[Path, None] = {}
    for path in _iter_paths():
        seen.setdefault(path, None)

    return list(seen.keys())


def _parse_column(raw: Any, table_name: str, schema_path: str) -> Column:
    if not isinstance(raw, dict):
        raise SchemaValidationError(
            f"column entries of table '{table_name}' must be mappings",
            schema_path,
        )

    name = raw.get("name")
    if not name:
        raise SchemaValidationError(
            f"column in table '{table_name}' is missing required 'name'",
            schema_path,
        )

    type_name = raw.get("type")
    if not type_name:
        raise SchemaValidationError(
            "column is missing required 'type'",
            schema_path,
            field=f"{table_name}.{name}",
        )

    nullable = raw.get("nullable", True)
    if not isinstance(nullable, bool):
        raise SchemaValidationError(
            f"'nullable' must be true or false, got {nullable!r}",
            schema_path,
            field=f"{table_name}.{name}",
        )

    return Column(
        name=str(name),
        type=str(type_name),
        nullable=nullable,
    )


def parse_tables(data: dict[str, Any], schema_path: str) -> list[Table]:
    """Turn a loaded snapshot document into tables, keeping file order."""
    raw_tables = data.get("tables")
    if not isinstance(raw_tables, list):
        raise SchemaValidationError("schema must provide a 'tables' list", schema_path)

    tables: list[Table] = []
    for raw in raw_tables:
        if not isinstance(raw, dict) or not raw.get("name"):
            raise SchemaValidationError(
                "every table needs a 'name'",
                schema_path,
            )
        table_name = str(raw["name"])
        raw_columns = raw.get("columns") or []
        if not isinstance(raw_columns, list):
            raise SchemaValidationError(
                "'columns' must be a list",
                schema_path,
                field=table_name,
            )
        tables.append(
            Table.of(
                table_name,
                (_parse_column(col, table_name, schema_path) for col in raw_columns),
            )
        )

    return tables


def load_tables_from_snapshot(inputs: Sequence[Path]) -> list[Table]:
    """Load tables from snapshot files or directories of snapshot files."""
    tables: list[Table] = []
    for path in collect_schema_paths(inputs):
        loaded = parse_tables(load_schema(path), str(path))
        logger.debug("Loaded %d table(s) from %s", len(loaded), path)
        tables.extend(loaded)
    return tables
