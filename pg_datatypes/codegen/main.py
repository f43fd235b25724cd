"""
Go Type Generator - Generates Go type definitions from a PostgreSQL schema.

Each table becomes one Go package holding:
- a type alias per column, mapped from the column's database type
- a column-name struct type and its populated instance ``C``
- a ``Table`` constant with the table's name

Unit text depends only on the table it is built from, so tables can be
rendered in parallel without affecting the output.
"""

from __future__ import annotations

import argparse
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..introspection import SchemaIntrospector
from ..shared import (
    GeneratorConfig,
    IdentifierCollisionError,
    SchemaError,
    SchemaValidationError,
    Table,
    is_go_identifier,
    load_tables_from_snapshot,
    quote_go_string,
    to_pascal_case,
)
from ..writer import write_units
from .type_mapper import map_column_type, order_imports

logger = logging.getLogger(__name__)

# Template configuration
TEMPLATE_DIR: Final[Path] = Path(__file__).parent / "templates"
UNIT_TEMPLATE: Final[str] = "unit.go.j2"

COLUMN_NAMES_SUFFIX: Final[str] = "ColumnNames"

# Package-level names every unit declares besides the column aliases
LOOKUP_VAR: Final[str] = "C"
TABLE_VAR: Final[str] = "Table"


@dataclass(frozen=True, slots=True)
class ColumnSpec:
    """A column ready for rendering."""

    name: str
    field_name: str
    type_expr: str
    import_path: str | None


@dataclass(frozen=True, slots=True)
class UnitSpec:
    """Everything the unit template needs for one table."""

    table_name: str
    struct_name: str
    imports: tuple[str, ...]
    columns: tuple[ColumnSpec, ...]

    @property
    def package_name(self) -> str:
        return self.table_name


@dataclass
class GeneratorContext:
    """Context for code generation with cached resources."""

    template_env: Environment = field(init=False)

    def __post_init__(self) -> None:
        self.template_env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
            auto_reload=False,  # Disable auto-reload for performance
            enable_async=False,
        )
        self.template_env.filters["go_string"] = quote_go_string
        # Pre-compile templates
        self._unit_template = self.template_env.get_template(UNIT_TEMPLATE)

    @property
    def unit_template(self):
        return self._unit_template


def _build_columns(table: Table, struct_name: str) -> list[ColumnSpec]:
    """Map every column of a table, rejecting names Go cannot tell apart."""
    columns: list[ColumnSpec] = []
    seen: dict[str, str] = {
        LOOKUP_VAR: f"var {LOOKUP_VAR}",
        TABLE_VAR: f"var {TABLE_VAR}",
        struct_name: f"type {struct_name}",
    }

    for column in table.columns:
        field_name = to_pascal_case(column.name)
        if not is_go_identifier(field_name):
            raise SchemaValidationError(
                f"column name does not produce a Go identifier in table '{table.name}'",
                field=column.name,
            )
        if field_name in seen:
            raise IdentifierCollisionError(
                table.name,
                field_name,
                [seen[field_name], column.name],
            )
        seen[field_name] = column.name

        mapped = map_column_type(column.type, column.nullable)
        columns.append(
            ColumnSpec(
                name=column.name,
                field_name=field_name,
                type_expr=mapped.expr,
                import_path=mapped.import_path,
            )
        )

    return columns


def _check_table_name(table: Table) -> None:
    # The name becomes both the Go package and the output directory
    if not is_go_identifier(table.name):
        raise SchemaValidationError(
            f"table name '{table.name}' is not a valid Go package name"
        )


def build_unit_spec(table: Table) -> UnitSpec:
    """Resolve names, types and imports for one table."""
    _check_table_name(table)
    struct_name = f"{table.name}{COLUMN_NAMES_SUFFIX}"
    columns = _build_columns(table, struct_name)
    return UnitSpec(
        table_name=table.name,
        struct_name=struct_name,
        imports=tuple(order_imports(col.import_path for col in columns)),
        columns=tuple(columns),
    )


def build_unit(table: Table, ctx: GeneratorContext | None = None) -> str:
    """Render the Go source unit for a single table.

    This function is thread-safe for parallel execution.
    """
    ctx = ctx or GeneratorContext()
    spec = build_unit_spec(table)
    logger.debug("Rendering unit for table %s (%d columns)", table.name, len(spec.columns))
    return ctx.unit_template.render(
        package_name=spec.package_name,
        table_name=spec.table_name,
        struct_name=spec.struct_name,
        imports=spec.imports,
        columns=spec.columns,
    )


def build_units(
    tables: Sequence[Table],
    parallel: bool = False,
    max_workers: int | None = None,
) -> dict[str, str]:
    """Render one unit per table.

    Args:
        tables: Tables in the order units should be produced.
        parallel: Whether to render tables in a thread pool.
        max_workers: Maximum number of parallel workers.

    Returns:
        Mapping of table name to unit text, in input order.
    """
    seen: set[str] = set()
    for table in tables:
        _check_table_name(table)
        if table.name in seen:
            raise SchemaValidationError(f"table '{table.name}' is defined more than once")
        seen.add(table.name)

    ctx = GeneratorContext()

    if not (parallel and len(tables) > 1):
        return {table.name: build_unit(table, ctx) for table in tables}

    units: dict[str, str] = {}
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            (table.name, executor.submit(build_unit, table, ctx))
            for table in tables
        ]
        # Collect in submission order so output never depends on scheduling
        for table_name, future in futures:
            try:
                units[table_name] = future.result()
            except SchemaError:
                raise
            except Exception as e:
                raise SchemaError(
                    f"Failed to generate unit for table '{table_name}': {e}"
                ) from e

    return units


def load_tables(config: GeneratorConfig) -> list[Table]:
    """Read tables from snapshots if given, otherwise from the database."""
    if config.snapshots:
        return load_tables_from_snapshot(config.snapshots)

    introspector = SchemaIntrospector(
        config.connection or "",
        schema_name=config.schema_name,
        connect_timeout=config.connect_timeout,
    )
    return introspector.get_tables()


def generate(config: GeneratorConfig) -> list[Path]:
    """Run the whole pipeline: load, filter, build, write.

    Nothing is written unless every table was loaded and rendered.

    Returns:
        Paths of the written (or, in dry-run mode, planned) files.
    """
    output = config.validate()

    tables = config.select_tables(load_tables(config))
    logger.info("Generating Go types for %d table(s)", len(tables))

    units = build_units(tables, parallel=config.parallel, max_workers=config.workers)
    return write_units(output, units, dry_run=config.dry_run)


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pg-datatypes",
        description="Generate Go types from PostgreSQL database schema",
    )
    parser.add_argument(
        "-d",
        "--db",
        dest="connection",
        default=None,
        help="PostgreSQL connection string (or set DB_CONNECTION_STRING)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output directory path",
    )
    parser.add_argument(
        "--schema",
        dest="schema_name",
        default=None,
        help="Database schema to introspect (default: public)",
    )
    parser.add_argument(
        "--schema-file",
        dest="snapshots",
        type=Path,
        action="append",
        default=None,
        help="YAML schema snapshot file or directory to use instead of a database",
    )
    parser.add_argument(
        "--include",
        action="append",
        default=None,
        help="Only generate tables matching this glob (repeatable)",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        help="Skip tables matching this glob (repeatable)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML config file with default settings",
    )
    parser.add_argument(
        "--connect-timeout",
        type=int,
        default=None,
        help="Connection timeout in seconds",
    )
    parser.add_argument(
        "--no-parallel",
        action="store_true",
        help="Disable parallel processing",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Maximum number of parallel workers",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show which files would be written without writing them",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log output (-v for progress, -vv for debug)",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> GeneratorConfig:
    """Combine config file, environment and flags, in rising precedence."""
    config = GeneratorConfig.from_file(args.config) if args.config else GeneratorConfig()
    config = config.with_environment()
    return config.with_overrides(
        connection=args.connection,
        output=args.output,
        schema_name=args.schema_name,
        snapshots=tuple(args.snapshots) if args.snapshots else None,
        include=tuple(args.include) if args.include else None,
        exclude=tuple(args.exclude) if args.exclude else None,
        connect_timeout=args.connect_timeout,
        parallel=False if args.no_parallel else None,
        workers=args.workers,
        dry_run=True if args.dry_run else None,
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = _build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        config = resolve_config(args)
        paths = generate(config)
    except (SchemaError, FileNotFoundError) as e:
        raise SystemExit(f"Error: {e}") from e

    if config.dry_run:
        for path in paths:
            print(f"  Would write: {path}")
        print(f"\nRun without --dry-run to write {len(paths)} file(s).")
    else:
        print(f"Generated {len(paths)} table unit(s) into {config.output}")


if __name__ == "__main__":
    main()
