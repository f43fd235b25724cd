"""Shared utilities for the type generator."""

from .config import (
    GeneratorConfig,
    ENV_CONNECTION,
    ENV_SCHEMA,
)
from .errors import (
    SchemaError,
    SchemaValidationError,
    IdentifierCollisionError,
    IntrospectionError,
    PersistenceError,
    ConfigError,
)
from .models import (
    Column,
    Table,
)
from .naming import (
    GO_KEYWORDS,
    is_go_identifier,
    to_pascal_case,
    quote_go_string,
)
from .schema_loader import (
    load_schema,
    collect_schema_paths,
    parse_tables,
    load_tables_from_snapshot,
)

__all__ = [
    # Configuration
    "GeneratorConfig",
    "ENV_CONNECTION",
    "ENV_SCHEMA",
    # Errors
    "SchemaError",
    "SchemaValidationError",
    "IdentifierCollisionError",
    "IntrospectionError",
    "PersistenceError",
    "ConfigError",
    # Schema model
    "Column",
    "Table",
    # Naming utilities
    "GO_KEYWORDS",
    "is_go_identifier",
    "to_pascal_case",
    "quote_go_string",
    # Snapshot loading
    "load_schema",
    "collect_schema_paths",
    "parse_tables",
    "load_tables_from_snapshot",
]
