"""Helpers for deriving module and class names for generated code."""

from __future__ import annotations

import keyword
import re
from pathlib import Path
from typing import Pattern

_CAMEL_BOUNDARY: Pattern[str] = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NON_WORD: Pattern[str] = re.compile(r"[^A-Za-z0-9_]+")
_UNDERSCORE_COLLAPSE = re.compile(r"_{2,}")

RESERVED_MEMBER_NAMES: frozenset[str] = frozenset(
    {"successor", "predecessor", "canonical_sequence", "sequence_from"}
)


def member_name_problem(name: str) -> str | None:
    """Return why ``name`` cannot be emitted as an enum member, or ``None``."""
    if not name.isidentifier():
        return "it is not a valid Python identifier"
    if name.startswith("_"):
        return "names starting with an underscore are reserved by Enum"
    if keyword.iskeyword(name):
        return "it is a Python keyword"
    if name in RESERVED_MEMBER_NAMES:
        return "it collides with a generated rotation method"
    return None


def snake_case(value: str, *, fallback: str = "module") -> str:
    """Normalise ``value`` into a lowercase module-friendly name."""
    source = (value or "").strip()
    if not source:
        source = fallback
    words = _CAMEL_BOUNDARY.sub("_", source)
    slug = _NON_WORD.sub("_", words).lower()
    slug = _UNDERSCORE_COLLAPSE.sub("_", slug).strip("_")
    if not slug:
        slug = fallback
    if slug[0].isdigit():
        slug = f"_{slug}"
    return slug


def output_path_for(source_path: Path, *, suffix: str, extension: str = ".py") -> Path:
    """Return the companion module path written next to ``source_path``."""
    stem = snake_case(source_path.stem)
    return source_path.with_name(f"{stem}{suffix}{extension}")


def mixin_name(type_name: str, suffix: str) -> str:
    return f"{type_name}{suffix}"
