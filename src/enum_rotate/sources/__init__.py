"""Source readers that turn files into front-end neutral declarations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from ..config import GeneratorConfig
from ..declaration import TypeSource
from ..errors import SourceError, SourceSpan
from .live import read_live_class
from .python_source import read_python_source, read_python_types
from .schema import read_schema_document, read_schema_source

__all__ = [
    "SourceDocument",
    "SourceKind",
    "read_live_class",
    "read_python_types",
    "read_schema_document",
    "read_source",
]


class SourceKind(str, Enum):
    """Front-ends a source file can be read with."""

    PYTHON = "python"
    SCHEMA = "schema"


@dataclass(frozen=True, slots=True)
class SourceDocument:
    """Declarations read from one file."""

    path: Path
    kind: SourceKind
    types: Tuple[TypeSource, ...]
    docstring: str | None = None


SourceReader = Callable[[Path, GeneratorConfig], SourceDocument]


def _read_python(path: Path, config: GeneratorConfig) -> SourceDocument:
    return SourceDocument(path=path, kind=SourceKind.PYTHON, types=read_python_source(path, config))


def _read_schema(path: Path, config: GeneratorConfig) -> SourceDocument:
    document, types = read_schema_source(path)
    return SourceDocument(path=path, kind=SourceKind.SCHEMA, types=types, docstring=document.module)


_READERS: Dict[str, SourceReader] = {
    ".py": _read_python,
    ".yaml": _read_schema,
    ".yml": _read_schema,
}


def read_source(path: Path, config: Optional[GeneratorConfig] = None) -> SourceDocument:
    """Dispatch ``path`` to the reader registered for its suffix."""
    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        valid = ", ".join(sorted(_READERS))
        raise SourceError(
            f"Unsupported source file {path.name}. Expected one of: {valid}",
            span=SourceSpan(path=path.as_posix()),
        )
    return reader(path, config or GeneratorConfig())
