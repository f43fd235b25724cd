"""Go Code Generator - Generates Go type units from a PostgreSQL schema."""

from .main import (
    ColumnSpec,
    UnitSpec,
    GeneratorContext,
    build_unit,
    build_unit_spec,
    build_units,
    generate,
    main,
)
from .type_mapper import (
    GoType,
    MappedType,
    GO_TYPES,
    IMPORT_ORDER,
    map_column_type,
    normalize_type_name,
    order_imports,
)

__all__ = [
    "ColumnSpec",
    "UnitSpec",
    "GeneratorContext",
    "build_unit",
    "build_unit_spec",
    "build_units",
    "generate",
    "main",
    "GoType",
    "MappedType",
    "GO_TYPES",
    "IMPORT_ORDER",
    "map_column_type",
    "normalize_type_name",
    "order_imports",
]
