"""
PostgreSQL schema introspection.

Reads base tables and their columns from ``information_schema`` in one
query and groups the rows into ``Table`` objects. Table order follows the
query's ORDER BY; column order follows ``ordinal_position``.
"""

from __future__ import annotations

import logging
from typing import Any, Final, Iterable, Mapping

import psycopg
from psycopg.rows import dict_row

from ..shared import Column, IntrospectionError, Table

logger = logging.getLogger(__name__)

SCHEMA_QUERY: Final[str] = """
    SELECT
        t.table_name,
        c.column_name,
        c.data_type,
        c.udt_name,
        c.is_nullable
    FROM
        information_schema.tables t
    JOIN
        information_schema.columns c
        ON c.table_schema = t.table_schema
        AND c.table_name = t.table_name
    WHERE
        t.table_schema = %(schema)s
        AND t.table_type = 'BASE TABLE'
    ORDER BY
        t.table_name, c.ordinal_position
"""


def column_type_from_row(row: Mapping[str, Any]) -> str:
    """Pick the type name the type mapper understands best.

    ``data_type`` only says ``ARRAY`` or ``USER-DEFINED`` for arrays and
    enums/extension types; ``udt_name`` carries the real name there
    (``_int4`` for an ``integer[]`` column).
    """
    data_type = str(row["data_type"])
    udt_name = row.get("udt_name")

    if data_type == "ARRAY" and udt_name:
        return f"{str(udt_name).lstrip('_')}[]"
    if data_type == "USER-DEFINED" and udt_name:
        return str(udt_name)
    return data_type


def group_rows(rows: Iterable[Mapping[str, Any]]) -> list[Table]:
    """Group flat (table, column) rows into tables, keeping row order."""
    order: list[str] = []
    columns: dict[str, list[Column]] = {}

    for row in rows:
        table_name = str(row["table_name"])
        if table_name not in columns:
            order.append(table_name)
            columns[table_name] = []
        columns[table_name].append(
            Column(
                name=str(row["column_name"]),
                type=column_type_from_row(row),
                nullable=row["is_nullable"] == "YES",
            )
        )

    return [Table.of(name, columns[name]) for name in order]


class SchemaIntrospector:
    """Reads table definitions from a live PostgreSQL database.

    Usage:
        introspector = SchemaIntrospector("postgresql://localhost/app")
        tables = introspector.get_tables()
    """

    def __init__(
        self,
        conninfo: str,
        schema_name: str = "public",
        connect_timeout: int = 10,
    ) -> None:
        self.conninfo = conninfo
        self.schema_name = schema_name
        self.connect_timeout = connect_timeout

    def get_tables(self) -> list[Table]:
        """Return all base tables of the configured schema.

        Raises:
            IntrospectionError: If connecting or querying fails.
        """
        logger.info("Connecting to database...")
        try:
            with psycopg.connect(
                self.conninfo,
                connect_timeout=self.connect_timeout,
                row_factory=dict_row,
            ) as conn:
                with conn.cursor() as cur:
                    cur.execute(SCHEMA_QUERY, {"schema": self.schema_name})
                    rows = cur.fetchall()
        except psycopg.Error as e:
            raise IntrospectionError(f"Failed to read database schema: {e}") from e

        tables = group_rows(rows)
        logger.info("Found %d table(s) in schema %s", len(tables), self.schema_name)
        return tables
