"""Custom exceptions for the type generator."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    def __init__(self, message: str, schema_path: str | None = None) -> None:
        self.schema_path = schema_path
        full_message = f"{message}" if not schema_path else f"[{schema_path}] {message}"
        super().__init__(full_message)


class SchemaValidationError(SchemaError):
    """Raised when a table or column definition is unusable."""

    def __init__(
        self,
        message: str,
        schema_path: str | None = None,
        field: str | None = None,
    ) -> None:
        self.field = field
        if field:
            message = f"Field '{field}': {message}"
        super().__init__(message, schema_path)


class IdentifierCollisionError(SchemaValidationError):
    """Raised when several columns normalize to the same Go identifier."""

    def __init__(
        self,
        table: str,
        identifier: str,
        columns: Sequence[str],
        schema_path: str | None = None,
    ) -> None:
        self.table = table
        self.identifier = identifier
        self.columns = tuple(columns)
        names = ", ".join(f"'{name}'" for name in self.columns)
        super().__init__(
            f"columns {names} of table '{table}' all map to identifier '{identifier}'",
            schema_path,
        )


class IntrospectionError(SchemaError):
    """Raised when the database schema cannot be read."""


class PersistenceError(SchemaError):
    """Raised when a generated unit cannot be written."""

    def __init__(self, message: str, path: Path) -> None:
        self.path = path
        super().__init__(f"{message} ({path})")


class ConfigError(SchemaError):
    """Raised for missing or contradictory run settings."""
