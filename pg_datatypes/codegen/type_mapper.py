"""PostgreSQL to Go type mapping."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Final, Iterable

logger = logging.getLogger(__name__)

IMPORT_JSON: Final[str] = "encoding/json"
IMPORT_DECIMAL: Final[str] = "github.com/shopspring/decimal"
IMPORT_TIME: Final[str] = "time"
IMPORT_UUID: Final[str] = "github.com/google/uuid"

# Order in which imports appear in a generated unit
IMPORT_ORDER: Final[tuple[str, ...]] = (
    IMPORT_JSON,
    IMPORT_DECIMAL,
    IMPORT_TIME,
    IMPORT_UUID,
)

FALLBACK_TYPE: Final[str] = "string"
FALLBACK_ARRAY_TYPE: Final[str] = "[]interface{}"
NULLABLE_PREFIX: Final[str] = "*"


@dataclass(frozen=True, slots=True)
class GoType:
    """A Go type expression and the import it depends on, if any."""

    expr: str
    import_path: str | None = None


@dataclass(frozen=True, slots=True)
class MappedType:
    """The resolved Go type for one column."""

    expr: str
    import_path: str | None
    known: bool


def _entries(go_type: GoType, *names: str) -> dict[str, GoType]:
    return dict.fromkeys(names, go_type)


_STRING = GoType("string")
_TIME = GoType("time.Time", IMPORT_TIME)

# Keys are normalized type names (see normalize_type_name)
GO_TYPES: Final[dict[str, GoType]] = {
    # Integer types
    **_entries(GoType("int16"), "smallint", "int2", "smallserial", "serial2"),
    **_entries(GoType("int32"), "integer", "int", "int4", "serial", "serial4"),
    **_entries(GoType("int64"), "bigint", "int8", "bigserial", "serial8"),
    # Floating point types
    **_entries(GoType("float32"), "real", "float4"),
    **_entries(GoType("float64"), "double precision", "float8"),
    # Decimal types
    **_entries(GoType("decimal.Decimal", IMPORT_DECIMAL), "numeric", "decimal"),
    # String types
    **_entries(_STRING, "character varying", "varchar", "character", "char", "text"),
    # Boolean type
    **_entries(GoType("bool"), "boolean", "bool"),
    # Date/time types
    **_entries(
        _TIME,
        "timestamp",
        "timestamp with time zone",
        "timestamptz",
        "timestamp without time zone",
        "date",
        "time",
        "time with time zone",
        "timetz",
        "time without time zone",
    ),
    "interval": GoType("time.Duration", IMPORT_TIME),
    "uuid": GoType("uuid.UUID", IMPORT_UUID),
    **_entries(GoType("json.RawMessage", IMPORT_JSON), "json", "jsonb"),
    "bytea": GoType("[]byte"),
    # Network, geometric and range types have no stdlib Go counterpart
    **_entries(_STRING, "inet", "cidr", "macaddr", "macaddr8"),
    **_entries(_STRING, "point", "line", "lseg", "box", "path", "polygon", "circle"),
    **_entries(
        _STRING,
        "int4range",
        "int8range",
        "numrange",
        "tsrange",
        "tstzrange",
        "daterange",
    ),
    # Array types
    **_entries(GoType("[]string"), "text[]", "varchar[]", "character varying[]"),
    **_entries(GoType("[]int32"), "integer[]", "int4[]"),
    **_entries(GoType("[]int64"), "bigint[]", "int8[]"),
    **_entries(GoType("[]int16"), "smallint[]", "int2[]"),
    **_entries(GoType("[]bool"), "boolean[]", "bool[]"),
    **_entries(GoType("[]float32"), "real[]", "float4[]"),
    **_entries(GoType("[]float64"), "double precision[]", "float8[]"),
    # Money is kept textual to avoid float rounding
    "money": _STRING,
    "enum": _STRING,
    "xml": _STRING,
    **_entries(_STRING, "bit", "bit varying", "varbit"),
    # PostgreSQL internal types
    **_entries(_STRING, "tsvector", "tsquery", "pg_lsn", "pg_snapshot", "txid_snapshot"),
}


@lru_cache(maxsize=1024)
def normalize_type_name(raw_type: str) -> str:
    """Lowercase, trim and drop any length/precision suffix.

    Examples:
        >>> normalize_type_name(" VARCHAR(255) ")
        'varchar'
        >>> normalize_type_name("numeric(10,2)")
        'numeric'
    """
    normalized = raw_type.strip().lower()
    idx = normalized.find("(")
    if idx != -1:
        normalized = normalized[:idx]
    return normalized.strip()


@lru_cache(maxsize=1024)
def resolve_go_type(raw_type: str) -> GoType | None:
    """Look up the Go type for a raw database type, or None if unknown."""
    return GO_TYPES.get(normalize_type_name(raw_type))


def map_column_type(raw_type: str, nullable: bool) -> MappedType:
    """Map a PostgreSQL column type to a Go type expression.

    Unknown types are not an error: arrays fall back to ``[]interface{}``
    and everything else to ``string``. Neither fallback needs an import.

    Args:
        raw_type: Type name as reported by the database, e.g. ``varchar(100)``.
        nullable: Whether the column accepts NULL.

    Returns:
        The Go type expression (pointer form when nullable) and the
        import path it requires.
    """
    go_type = resolve_go_type(raw_type)
    known = go_type is not None

    if go_type is None:
        normalized = normalize_type_name(raw_type)
        fallback = FALLBACK_ARRAY_TYPE if normalized.endswith("[]") else FALLBACK_TYPE
        logger.debug("Unknown column type %r, using %s", raw_type, fallback)
        go_type = GoType(fallback)

    expr = f"{NULLABLE_PREFIX}{go_type.expr}" if nullable else go_type.expr
    return MappedType(expr=expr, import_path=go_type.import_path, known=known)


def order_imports(import_paths: Iterable[str | None]) -> list[str]:
    """Deduplicate import paths and put them in the preferred order."""
    wanted = {path for path in import_paths if path}
    ordered = [path for path in IMPORT_ORDER if path in wanted]
    # Anything outside the preferred order goes last, alphabetically
    ordered.extend(sorted(wanted.difference(IMPORT_ORDER)))
    return ordered
