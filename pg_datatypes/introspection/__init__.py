"""Schema Introspection - Reads table definitions from PostgreSQL."""

from .main import (
    SCHEMA_QUERY,
    SchemaIntrospector,
    column_type_from_row,
    group_rows,
)

__all__ = [
    "SCHEMA_QUERY",
    "SchemaIntrospector",
    "column_type_from_row",
    "group_rows",
]
