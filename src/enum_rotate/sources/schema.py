"""Declaration reader for YAML schema documents.

Schema documents describe types declaratively and are validated with the
Pydantic models below before any declaration is read::

    module: Colour palette used by the renderer.
    types:
      - name: Color
        attributes:
          - "#[iteration_order(Blue, Red, Green)]"
        members: [Red, Green, Blue]
      - name: Geometry
        members:
          - Point
          - Shape: [u32]

Line numbers are recovered from the composed YAML node tree so diagnostics
point back at the schema entry that caused them.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..declaration import Attribute, TypeShape, TypeSource, VariantSource
from ..errors import SchemaError, SourceError, SourceSpan

__all__ = ["SchemaDocument", "TypeSchema", "read_schema_document", "read_schema_source"]

LOGGER = logging.getLogger(__name__)

MemberEntry = Union[str, Dict[str, Optional[List[Any]]]]

_BOOL_TAG = "tag:yaml.org,2002:bool"


class SchemaModel(BaseModel):
    """Base Pydantic model with strict field handling."""

    model_config = ConfigDict(extra="forbid")


class TypeSchema(SchemaModel):
    """One declared type within a schema document."""

    name: str
    kind: Literal["enum", "struct", "union"] = "enum"
    members: List[MemberEntry] = Field(default_factory=list)
    attributes: List[str] = Field(default_factory=list)

    @field_validator("members")
    @classmethod
    def _single_key_entries(cls, value: List[MemberEntry]) -> List[MemberEntry]:
        for entry in value:
            if isinstance(entry, dict) and len(entry) != 1:
                raise ValueError(
                    "members with fields must be written as a single-key mapping, e.g. `Shape: [u32]`"
                )
        return value


class SchemaDocument(SchemaModel):
    module: Optional[str] = None
    types: List[TypeSchema] = Field(default_factory=list)


class SchemaLoader(yaml.SafeLoader):
    """Safe loader that resolves only ``true``/``false`` as booleans.

    YAML 1.1 also reads ``yes``, ``no``, ``on`` and ``off`` as booleans, which
    turns members such as ``On`` and ``Off`` into ``True`` and ``False``.
    """


SchemaLoader.yaml_implicit_resolvers = {
    first: [(tag, pattern) for tag, pattern in resolvers if tag != _BOOL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
SchemaLoader.add_implicit_resolver(
    _BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


class _Marks:
    """Line/column lookup for the ``types`` entries of a composed document."""

    def __init__(self, path: str, root: yaml.Node | None) -> None:
        self._path = path
        self._types: List[yaml.Node] = []
        if isinstance(root, yaml.MappingNode):
            for key, value in root.value:
                if key.value == "types" and isinstance(value, yaml.SequenceNode):
                    self._types = list(value.value)

    def type_span(self, index: int) -> SourceSpan:
        node = self._type_node(index)
        return self._span(node) if node is not None else SourceSpan(path=self._path)

    def entry_spans(self, index: int, key: str) -> List[SourceSpan]:
        node = self._type_node(index)
        if not isinstance(node, yaml.MappingNode):
            return []
        for item_key, item_value in node.value:
            if item_key.value == key and isinstance(item_value, yaml.SequenceNode):
                return [self._span(child) for child in item_value.value]
        return []

    def _type_node(self, index: int) -> yaml.Node | None:
        if 0 <= index < len(self._types):
            return self._types[index]
        return None

    def _span(self, node: yaml.Node) -> SourceSpan:
        column = node.start_mark.column
        if isinstance(node, yaml.ScalarNode) and node.style in ("'", '"'):
            column += 1
        return SourceSpan(path=self._path, line=node.start_mark.line + 1, column=column)


def _variant(entry: MemberEntry, span: SourceSpan | None) -> VariantSource:
    if isinstance(entry, str):
        return VariantSource(name=entry, span=span)
    (name, fields), = entry.items()
    return VariantSource(name=name, fields=tuple(str(item) for item in fields or ()), span=span)


def _span_at(spans: List[SourceSpan], index: int) -> SourceSpan | None:
    return spans[index] if index < len(spans) else None


def read_schema_document(text: str, *, path: str = "<string>") -> Tuple[SchemaDocument, Tuple[TypeSource, ...]]:
    """Validate ``text`` and convert every schema entry into a ``TypeSource``."""
    try:
        data: Any = yaml.load(text, Loader=SchemaLoader)
        root = yaml.compose(text, Loader=SchemaLoader)
    except yaml.YAMLError as error:
        mark = getattr(error, "problem_mark", None)
        span = SourceSpan(path=path, line=mark.line + 1, column=mark.column) if mark else SourceSpan(path=path)
        raise SchemaError(f"Failed to parse schema {path}: {error}", span=span) from error

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SchemaError(
            f"Schema {path} must be a mapping at the top level.",
            span=SourceSpan(path=path, line=1),
        )
    try:
        document = SchemaDocument.model_validate(data)
    except ValidationError as error:
        problems = error.errors()
        notes = [f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}" for item in problems]
        if any("members" in item["loc"] for item in problems):
            notes.append("quote member names that YAML reads as numbers, booleans or null, e.g. \"null\"")
        raise SchemaError(
            f"Schema {path} did not validate",
            span=SourceSpan(path=path),
            notes=notes,
        ) from error

    marks = _Marks(path, root)
    sources: List[TypeSource] = []
    for index, entry in enumerate(document.types):
        member_spans = marks.entry_spans(index, "members")
        attribute_spans = marks.entry_spans(index, "attributes")
        sources.append(
            TypeSource(
                name=entry.name,
                shape=TypeShape(entry.kind),
                variants=tuple(
                    _variant(member, _span_at(member_spans, position))
                    for position, member in enumerate(entry.members)
                ),
                attributes=tuple(
                    Attribute(text=text_value, span=_span_at(attribute_spans, position))
                    for position, text_value in enumerate(entry.attributes)
                ),
                span=marks.type_span(index),
            )
        )
    LOGGER.debug("Loaded %d type(s) from schema %s", len(sources), path)
    return document, tuple(sources)


def read_schema_source(path: Path) -> Tuple[SchemaDocument, Tuple[TypeSource, ...]]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as error:
        raise SourceError(f"Unable to read {path}: {error}", span=SourceSpan(path=str(path))) from error
    return read_schema_document(text, path=path.as_posix())
