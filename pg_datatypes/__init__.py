"""Generate Go type definitions and column-name constants from a PostgreSQL schema."""

from .codegen import build_unit, build_units, generate, map_column_type
from .shared import Column, GeneratorConfig, Table, to_pascal_case

__all__ = [
    "Column",
    "Table",
    "GeneratorConfig",
    "build_unit",
    "build_units",
    "generate",
    "map_column_type",
    "to_pascal_case",
]
