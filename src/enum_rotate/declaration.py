"""Declaration records and the reader that turns them into member lists."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .errors import InvalidMemberError, NotAnEnumError, PayloadMemberError, SourceSpan
from .utils.naming import member_name_problem

__all__ = [
    "Attribute",
    "Declaration",
    "TypeShape",
    "TypeSource",
    "VariantSource",
    "read_declaration",
]

LOGGER = logging.getLogger(__name__)

_ATTRIBUTE_NAME = re.compile(r"^\s*#\s*\[\s*([A-Za-z_][A-Za-z0-9_]*)")


class TypeShape(str, Enum):
    """Shapes a declaration can take in any of the source front-ends."""

    ENUM = "enum"
    STRUCT = "struct"
    UNION = "union"
    CLASS = "class"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True, slots=True)
class Attribute:
    """Raw annotation text such as ``#[iteration_order(Red, Green)]``."""

    text: str
    span: SourceSpan | None = None

    @property
    def name(self) -> str | None:
        """Return the bare marker name of the annotation, if it has one."""
        match = _ATTRIBUTE_NAME.match(self.text)
        if match is None:
            return None
        return match.group(1)


@dataclass(frozen=True, slots=True)
class VariantSource:
    """One declared alternative together with any associated fields."""

    name: str
    fields: Tuple[str, ...] = ()
    span: SourceSpan | None = None
    alias_of: str | None = None

    @property
    def is_unit(self) -> bool:
        return not self.fields


@dataclass(frozen=True, slots=True)
class TypeSource:
    """Front-end neutral view of one annotated type declaration."""

    name: str
    shape: TypeShape
    variants: Tuple[VariantSource, ...] = ()
    attributes: Tuple[Attribute, ...] = ()
    span: SourceSpan | None = None


@dataclass(frozen=True, slots=True)
class Declaration:
    """Ordered, validated member names of one enumeration."""

    name: str
    members: Tuple[str, ...]
    span: SourceSpan | None = None

    @property
    def cardinality(self) -> int:
        return len(self.members)

    def __contains__(self, member: object) -> bool:
        return member in self.members


def read_declaration(source: TypeSource) -> Declaration:
    """Extract the member list of ``source`` or raise a shape error.

    The whole type is rejected when any single member is unfit; a partial
    member list would produce an unsound mapping.
    """

    if source.shape is not TypeShape.ENUM:
        raise NotAnEnumError(
            f"{source.shape.label} {source.name} is not an enum, "
            "EnumRotate can only be derived for enums",
            type_name=source.name,
            span=source.span,
        )

    seen: set[str] = set()
    members: list[str] = []
    for variant in source.variants:
        if variant.alias_of is not None:
            raise InvalidMemberError(
                f"Member {variant.name} is an alias of {variant.alias_of}",
                type_name=source.name,
                span=variant.span or source.span,
                notes=(f"Every member of `{source.name}` needs its own value",),
            )
        if not variant.is_unit:
            raise PayloadMemberError(
                f"Member {variant.name} is not a unit member, "
                "all members must be payload-free to derive EnumRotate",
                type_name=source.name,
                span=variant.span or source.span,
                notes=(f"`{variant.name}` carries fields ({', '.join(variant.fields)})",),
            )
        problem = member_name_problem(variant.name)
        if problem is not None:
            raise InvalidMemberError(
                f"Member {variant.name!r} of `{source.name}` cannot be used: {problem}",
                type_name=source.name,
                span=variant.span or source.span,
            )
        if variant.name in seen:
            raise InvalidMemberError(
                f"Member {variant.name} is declared more than once",
                type_name=source.name,
                span=variant.span or source.span,
            )
        seen.add(variant.name)
        members.append(variant.name)

    LOGGER.debug("Read %d member(s) from %s", len(members), source.name)
    return Declaration(name=source.name, members=tuple(members), span=source.span)
