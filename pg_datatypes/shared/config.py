"""Run configuration for the type generator."""

from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Final, Iterable, Mapping, Sequence

import yaml

from .errors import ConfigError
from .models import Table

ENV_CONNECTION: Final[str] = "DB_CONNECTION_STRING"
ENV_SCHEMA: Final[str] = "DB_SCHEMA"

DEFAULT_SCHEMA_NAME: Final[str] = "public"
DEFAULT_CONNECT_TIMEOUT: Final[int] = 10


@dataclass(frozen=True)
class GeneratorConfig:
    """Everything one generator run needs, passed explicitly to the pipeline."""

    connection: str | None = None
    output: Path | None = None
    schema_name: str = DEFAULT_SCHEMA_NAME
    snapshots: tuple[Path, ...] = ()
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT
    parallel: bool = True
    workers: int | None = None
    dry_run: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], base_dir: Path | None = None) -> GeneratorConfig:
        """Build a config from a loaded YAML config file.

        Relative paths are resolved against ``base_dir`` (the config file's
        directory) so a config file behaves the same from any working directory.
        """
        known = {
            "connection", "output", "schema", "schema_files", "include",
            "exclude", "connect_timeout", "parallel", "workers",
        }
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config key(s): {', '.join(unknown)}")

        def _path(value: Any) -> Path:
            path = Path(str(value))
            if base_dir is not None and not path.is_absolute():
                path = base_dir / path
            return path

        def _strings(key: str) -> tuple[str, ...]:
            value = data.get(key) or []
            if isinstance(value, str):
                return (value,)
            if not isinstance(value, list):
                raise ConfigError(f"'{key}' must be a string or a list of strings")
            return tuple(str(item) for item in value)

        try:
            connect_timeout = int(data.get("connect_timeout", DEFAULT_CONNECT_TIMEOUT))
            workers = int(data["workers"]) if data.get("workers") is not None else None
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        parallel = data.get("parallel", True)
        if not isinstance(parallel, bool):
            raise ConfigError(f"'parallel' must be true or false, got {parallel!r}")

        return cls(
            connection=data.get("connection"),
            output=_path(data["output"]) if data.get("output") else None,
            schema_name=str(data.get("schema", DEFAULT_SCHEMA_NAME)),
            snapshots=tuple(_path(p) for p in _strings("schema_files")),
            include=_strings("include"),
            exclude=_strings("exclude"),
            connect_timeout=connect_timeout,
            parallel=parallel,
            workers=workers,
        )

    @classmethod
    def from_file(cls, path: Path) -> GeneratorConfig:
        """Load a YAML config file."""
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Failed to read config file: {e}", str(path)) from e

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}", str(path)) from e

        # An empty file means "no settings"
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Config file root must be a mapping", str(path))

        return cls.from_mapping(data, base_dir=path.resolve().parent)

    def with_environment(self, environ: Mapping[str, str] | None = None) -> GeneratorConfig:
        """Overlay environment variables on top of this config."""
        environ = os.environ if environ is None else environ
        updates: dict[str, Any] = {}
        if environ.get(ENV_CONNECTION):
            updates["connection"] = environ[ENV_CONNECTION]
        if environ.get(ENV_SCHEMA):
            updates["schema_name"] = environ[ENV_SCHEMA]
        return replace(self, **updates) if updates else self

    def with_overrides(self, **overrides: Any) -> GeneratorConfig:
        """Apply explicit (command-line) settings; ``None`` means "not given"."""
        updates = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **updates) if updates else self

    def validate(self) -> Path:
        """Check that the config describes a runnable generation.

        Returns:
            The output root.
        """
        if self.output is None:
            raise ConfigError("Output path is required. Use --output.")
        if not self.connection and not self.snapshots:
            raise ConfigError(
                "Database connection string is required. Use --db, set "
                f"{ENV_CONNECTION}, or pass --schema-file."
            )
        if self.workers is not None and self.workers < 1:
            raise ConfigError("--workers must be at least 1")
        return self.output

    def select_tables(self, tables: Iterable[Table]) -> list[Table]:
        """Apply include/exclude glob filters, keeping the original order."""
        return [
            table
            for table in tables
            if _matches(table.name, self.include, default=True)
            and not _matches(table.name, self.exclude, default=False)
        ]


def _matches(name: str, patterns: Sequence[str], default: bool) -> bool:
    if not patterns:
        return default
    return any(fnmatch.fnmatchcase(name, pattern) for pattern in patterns)
