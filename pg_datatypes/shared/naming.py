"""Naming utilities for code generation."""

from __future__ import annotations

import json
from functools import lru_cache

GO_KEYWORDS: frozenset[str] = frozenset({
    "break",
    "case",
    "chan",
    "const",
    "continue",
    "default",
    "defer",
    "else",
    "fallthrough",
    "for",
    "func",
    "go",
    "goto",
    "if",
    "import",
    "interface",
    "map",
    "package",
    "range",
    "return",
    "select",
    "struct",
    "switch",
    "type",
    "var",
})


@lru_cache(maxsize=1024)
def to_pascal_case(value: str) -> str:
    """Convert a snake_case identifier to PascalCase.

    Only the first character of each underscore-separated segment is
    changed, so mixed-case input keeps its inner capitals.

    Uses caching for repeated calls with the same input.

    Examples:
        >>> to_pascal_case("first_name")
        'FirstName'
        >>> to_pascal_case("google_user_id")
        'GoogleUserId'
        >>> to_pascal_case("userId")
        'UserId'
    """
    return "".join(part[:1].upper() + part[1:] for part in value.split("_") if part)


@lru_cache(maxsize=1024)
def is_go_identifier(value: str) -> bool:
    """Whether a name can be used as a Go package or declaration name."""
    return value.isidentifier() and value not in GO_KEYWORDS


@lru_cache(maxsize=256)
def quote_go_string(value: str) -> str:
    """Quote a string for Go literal embedding. Cached for performance.

    Non-ASCII characters stay as UTF-8; Go has no surrogate-pair escapes.
    """
    return json.dumps(value, ensure_ascii=False)
