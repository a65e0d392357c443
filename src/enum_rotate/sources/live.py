"""Declaration reader for classes that already exist at import time."""

from __future__ import annotations

import sys
from enum import Enum
from typing import Iterable, List, Tuple

from ..declaration import Attribute, TypeShape, TypeSource, VariantSource
from ..errors import SourceSpan

__all__ = ["read_live_class"]


def _class_span(cls: type) -> SourceSpan:
    module = sys.modules.get(cls.__module__)
    return SourceSpan(path=getattr(module, "__file__", None) or cls.__module__)


def read_live_class(cls: type, attributes: Iterable[Attribute] = ()) -> TypeSource:
    """Describe ``cls`` the way the source readers describe declarations.

    Tuple values are the payload idiom of ``Enum`` (they are passed to the
    member's ``__init__``) and are reported as fields. Names in ``__members__``
    whose member carries a different name are reported as aliases of that
    member; composite ``Flag`` members keep their own name and are members.
    """

    span = _class_span(cls)
    if not (isinstance(cls, type) and issubclass(cls, Enum)):
        return TypeSource(name=cls.__name__, shape=TypeShape.CLASS, attributes=tuple(attributes), span=span)

    variants: List[VariantSource] = []
    aliases: List[VariantSource] = []
    for name, member in cls.__members__.items():
        # multi-bit Flag members are named members even though _member_names_ omits them
        if member.name != name:
            aliases.append(VariantSource(name=name, span=span, alias_of=member.name))
            continue
        value = member._value_
        fields: Tuple[str, ...] = ()
        if isinstance(value, tuple) and value:
            fields = tuple(repr(item) for item in value)
        variants.append(VariantSource(name=name, fields=fields, span=span))
    variants.extend(aliases)
    return TypeSource(
        name=cls.__name__,
        shape=TypeShape.ENUM,
        variants=tuple(variants),
        attributes=tuple(attributes),
        span=span,
    )
