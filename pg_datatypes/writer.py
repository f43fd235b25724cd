"""Writes generated units to disk, one directory per table."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final, Mapping

from .shared import PersistenceError

logger = logging.getLogger(__name__)

FILE_SUFFIX: Final[str] = ".go"


def unit_path(root: Path, table_name: str) -> Path:
    """Destination of a table's unit: ``<root>/<table>/<table>.go``."""
    return root / table_name / f"{table_name}{FILE_SUFFIX}"


def write_units(root: Path, units: Mapping[str, str], dry_run: bool = False) -> list[Path]:
    """Write every unit under ``root``, overwriting existing files.

    Writing stops at the first failure; files written before it are kept.

    Args:
        root: Destination root directory.
        units: Mapping of table name to unit text.
        dry_run: Only compute the destination paths.

    Returns:
        Destination paths in mapping order.

    Raises:
        PersistenceError: If a directory or file cannot be written, or a
            table name would place its unit outside ``root``.
    """
    paths: list[Path] = []
    resolved_root = root.resolve()

    for table_name, content in units.items():
        path = unit_path(root, table_name)
        if not path.resolve().is_relative_to(resolved_root):
            raise PersistenceError("Unit path escapes the output root", path)
        paths.append(path)
        if dry_run:
            continue

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Failed to create directory: {e}", path.parent) from e

        try:
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Failed to write unit: {e}", path) from e

        logger.info("Wrote %s", path)

    return paths
