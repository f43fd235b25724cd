"""Schema model shared by introspection, code generation and tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable


@dataclass(frozen=True, slots=True)
class Column:
    """A table column as reported by the schema source."""

    name: str
    type: str
    nullable: bool


@dataclass(frozen=True, slots=True)
class Table:
    """A table with its columns in ordinal order."""

    name: str
    columns: tuple[Column, ...] = field(default_factory=tuple)

    @classmethod
    def of(cls, name: str, columns: Iterable[Column]) -> Table:
        """Build a table from any iterable of columns."""
        return cls(name=name, columns=tuple(columns))

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]
