"""
Generate Go types from a PostgreSQL database schema.

Usage:
    python -m pg_datatypes --db <conninfo> --output <dir> [options]
    python -m pg_datatypes --schema-file schema.yaml --output <dir>

Examples:
    python -m pg_datatypes -d postgresql://localhost/app -o internal/tables
    python -m pg_datatypes -o internal/tables --exclude 'schema_*' --dry-run
"""

from pg_datatypes.codegen.main import main

if __name__ == "__main__":
    main()
