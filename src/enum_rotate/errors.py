"""Diagnostics raised while generating rotation capabilities.

Every fault detected during generation is an ``EnumRotateError``. Errors carry
the offending type name, an optional ``SourceSpan`` and free-form notes, and
render as compiler-style diagnostics::

    error: Expected 3 items in the iteration order but got 2
      --> palette.py:4:1
      = note: Enum `Color` has 3 members

``RotationInvariantError`` is not part of that hierarchy: it signals
a broken internal invariant (for example a stale generated table) and must not
be swallowed by per-declaration error handling.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Tuple

__all__ = [
    "AnnotationParseError",
    "AnnotationSemanticError",
    "CardinalityMismatchError",
    "ConfigError",
    "DuplicateAnnotationError",
    "DuplicateMemberReferenceError",
    "EmissionError",
    "EnumRotateError",
    "ForeignMemberError",
    "InvalidMemberError",
    "MissingMemberError",
    "NotAnEnumError",
    "PayloadMemberError",
    "RotationInvariantError",
    "SchemaError",
    "ShapeError",
    "SourceError",
    "SourceSpan",
]


@dataclass(frozen=True, slots=True)
class SourceSpan:
    """Location of a construct inside a source file."""

    path: str | None = None
    line: int | None = None
    column: int | None = None

    def shifted(self, columns: int) -> "SourceSpan":
        """Return a span moved ``columns`` characters to the right."""
        if self.column is None:
            return self
        return SourceSpan(path=self.path, line=self.line, column=self.column + columns)

    def __str__(self) -> str:
        parts = [self.path or "<unknown>"]
        if self.line is not None:
            parts.append(str(self.line))
            if self.column is not None:
                parts.append(str(self.column + 1))
        return ":".join(parts)


class EnumRotateError(RuntimeError):
    """Base class for generation faults tied to a single declaration or file."""

    kind = "error"

    def __init__(
        self,
        message: str,
        *,
        type_name: str | None = None,
        span: SourceSpan | None = None,
        notes: Iterable[str] = (),
    ) -> None:
        super().__init__(message)
        self.message = message
        self.type_name = type_name
        self.span = span
        self.notes: Tuple[str, ...] = tuple(notes)

    def render(self) -> str:
        """Format the error the way a compiler diagnostic reads."""
        lines = [f"error: {self.message}"]
        if self.span is not None:
            lines.append(f"  --> {self.span}")
        lines.extend(f"  = note: {note}" for note in self.notes)
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Return a serialisable view of the error."""

        span = self.span
        return {
            "kind": self.kind,
            "error": type(self).__name__,
            "message": self.message,
            "type": self.type_name,
            "path": span.path if span else None,
            "line": span.line if span else None,
            "column": span.column + 1 if span and span.column is not None else None,
            "notes": list(self.notes),
        }


class SourceError(EnumRotateError):
    """Raised when a whole source file cannot be read."""

    kind = "source"


class SchemaError(SourceError):
    """Raised when a YAML schema document does not validate."""


class ShapeError(EnumRotateError):
    """Raised when a declaration cannot carry a rotation mapping at all."""

    kind = "shape"


class NotAnEnumError(ShapeError):
    """The annotated type is not a closed enumeration."""


class PayloadMemberError(ShapeError):
    """A member of the enumeration carries associated data."""


class InvalidMemberError(ShapeError):
    """A member name is duplicated, aliased, reserved or not an identifier."""


class AnnotationParseError(EnumRotateError):
    """Malformed ``#[iteration_order(...)]`` annotation text."""

    kind = "annotation-parse"


class DuplicateAnnotationError(EnumRotateError):
    """More than one iteration order annotation on one declaration."""

    kind = "annotation-duplicate"


class AnnotationSemanticError(EnumRotateError):
    """The iteration order is not a permutation of the declared members."""

    kind = "annotation-semantic"


class CardinalityMismatchError(AnnotationSemanticError):
    pass


class ForeignMemberError(AnnotationSemanticError):
    pass


class DuplicateMemberReferenceError(AnnotationSemanticError):
    pass


class MissingMemberError(AnnotationSemanticError):
    pass


class EmissionError(EnumRotateError):
    """Raised when generated code fails to parse before it is written."""

    kind = "emission"


class ConfigError(EnumRotateError):
    """Raised when configuration cannot be loaded or validated."""

    kind = "config"


class RotationInvariantError(RuntimeError):
    """A member was missing from a rotation table that must cover every member."""
