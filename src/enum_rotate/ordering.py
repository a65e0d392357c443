"""Parsing and validation of ``#[iteration_order(...)]`` annotations."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from .declaration import Attribute, Declaration
from .errors import (
    AnnotationParseError,
    CardinalityMismatchError,
    DuplicateAnnotationError,
    DuplicateMemberReferenceError,
    ForeignMemberError,
    MissingMemberError,
    SourceSpan,
)

__all__ = [
    "ITERATION_ORDER",
    "IterationOrder",
    "find_order_annotation",
    "format_attribute",
    "parse_attribute",
    "parse_iteration_order",
    "resolve_order",
    "validate_order",
]

LOGGER = logging.getLogger(__name__)

ITERATION_ORDER = "iteration_order"

_TOKEN_PATTERN = re.compile(
    r"(?P<ident>[^\W\d]\w*)|(?P<punct>[#\[\](),])|(?P<space>\s+)|(?P<other>.)"
)


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str
    text: str
    column: int

    def describe(self) -> str:
        if self.kind == "end":
            return "end of annotation"
        return f"`{self.text}`"


@dataclass(frozen=True, slots=True)
class IterationOrder:
    """Parsed member list of one ordering annotation."""

    members: Tuple[str, ...]
    span: SourceSpan | None = None

    def __len__(self) -> int:
        return len(self.members)


def _tokenize(text: str) -> List[_Token]:
    tokens: List[_Token] = []
    for match in _TOKEN_PATTERN.finditer(text):
        kind = match.lastgroup or "other"
        if kind == "space":
            continue
        tokens.append(_Token(kind=kind, text=match.group(), column=match.start()))
    tokens.append(_Token(kind="end", text="", column=len(text)))
    return tokens


class _AttributeParser:
    """Recursive-descent reader for ``#[name(IDENT, ...)]``."""

    def __init__(self, attribute: Attribute, *, allow_trailing_comma: bool) -> None:
        self._attribute = attribute
        self._tokens = _tokenize(attribute.text)
        self._index = 0
        self._allow_trailing_comma = allow_trailing_comma

    def parse(self) -> Tuple[str, Tuple[str, ...]]:
        self._expect_punct("#")
        self._expect_punct("[")
        name = self._expect_ident("Expected annotation name")
        if self._peek().text != "(":
            raise self._error(
                f"Expected parenthesized member list after `{name}`",
                self._peek(),
                notes=(f"Write the annotation as #[{name}(Member1, Member2, ...)]",),
            )
        self._advance()

        members: List[str] = []
        while self._peek().text != ")":
            if self._peek().kind == "end":
                raise self._error("Expected closing parenthesis `)`", self._peek())
            members.append(self._expect_ident("Expected identifier"))
            following = self._peek()
            if following.text == ")":
                break
            if following.kind == "end":
                raise self._error("Expected closing parenthesis `)`", following)
            if following.text != ",":
                raise self._error("Expected comma (,)", following)
            self._advance()
            if self._peek().text == ")" and not self._allow_trailing_comma:
                raise self._error("Trailing comma is not allowed in the member list", following)
        self._advance()
        self._expect_punct("]")
        trailing = self._peek()
        if trailing.kind != "end":
            raise self._error("Unexpected text after the annotation", trailing)
        return name, tuple(members)

    def _peek(self) -> _Token:
        return self._tokens[self._index]

    def _advance(self) -> _Token:
        token = self._tokens[self._index]
        if token.kind != "end":
            self._index += 1
        return token

    def _expect_punct(self, text: str) -> None:
        token = self._peek()
        if token.text != text or token.kind != "punct":
            raise self._error(f"Expected `{text}`", token)
        self._advance()

    def _expect_ident(self, message: str) -> str:
        token = self._peek()
        if token.kind != "ident":
            raise self._error(message, token)
        self._advance()
        return token.text

    def _error(self, message: str, token: _Token, *, notes: Sequence[str] = ()) -> AnnotationParseError:
        span = self._attribute.span.shifted(token.column) if self._attribute.span else None
        return AnnotationParseError(
            f"{message}, found {token.describe()}",
            span=span,
            notes=(f"in annotation {self._attribute.text.strip()}", *notes),
        )


def parse_attribute(
    attribute: Attribute, *, allow_trailing_comma: bool = True
) -> Tuple[str, Tuple[str, ...]]:
    """Parse any ``#[name(IDENT, ...)]`` annotation into its name and identifiers."""
    parser = _AttributeParser(attribute, allow_trailing_comma=allow_trailing_comma)
    return parser.parse()


def parse_iteration_order(
    attribute: Attribute, *, allow_trailing_comma: bool = True
) -> IterationOrder:
    name, members = parse_attribute(attribute, allow_trailing_comma=allow_trailing_comma)
    if name != ITERATION_ORDER:
        raise AnnotationParseError(
            f"Expected an {ITERATION_ORDER} annotation, found `{name}`",
            span=attribute.span,
        )
    return IterationOrder(members=members, span=attribute.span)


def format_attribute(name: str, members: Iterable[str]) -> str:
    """Render annotation text that ``parse_attribute`` reads back."""
    return f"#[{name}({', '.join(members)})]"


def find_order_annotation(
    attributes: Iterable[Attribute], *, type_name: str | None = None
) -> Optional[Attribute]:
    """Return the single iteration order annotation, rejecting repeats."""
    matches: Iterator[Attribute] = (item for item in attributes if item.name == ITERATION_ORDER)
    first = next(matches, None)
    repeated = next(matches, None)
    if repeated is not None:
        raise DuplicateAnnotationError(
            f'Duplicate "{ITERATION_ORDER}" annotation, please specify at most one iteration order',
            type_name=type_name,
            span=repeated.span,
            notes=(f"first annotation: {first.text.strip()}",) if first else (),
        )
    return first


def validate_order(declaration: Declaration, order: IterationOrder) -> Tuple[str, ...]:
    """Check that ``order`` is a permutation of the declared members."""

    name = declaration.name
    expected = declaration.cardinality
    got = len(order)
    if got != expected:
        raise CardinalityMismatchError(
            f"Expected {expected} items in the iteration order but got {got}",
            type_name=name,
            span=order.span,
            notes=(
                f"Enum `{name}` has {expected} members",
                "Each member should appear exactly once in the iteration order",
            ),
        )

    invalid = next((member for member in order.members if member not in declaration), None)
    if invalid is not None:
        raise ForeignMemberError(
            f"Invalid member for enum `{name}`: {invalid}",
            type_name=name,
            span=order.span,
            notes=(f"The iteration order can only contain members of `{name}`",),
        )

    seen: set[str] = set()
    for member in order.members:
        if member in seen:
            raise DuplicateMemberReferenceError(
                f"Member {member} appears more than once in the iteration order",
                type_name=name,
                span=order.span,
                notes=(f"Each member of `{name}` should appear exactly once in the iteration order",),
            )
        seen.add(member)

    missing = next((member for member in declaration.members if member not in seen), None)
    if missing is not None:
        raise MissingMemberError(
            f"Member {missing} not covered",
            type_name=name,
            span=order.span,
            notes=(f"Each member of `{name}` should appear exactly once in the iteration order",),
        )
    return order.members


def resolve_order(
    declaration: Declaration,
    attributes: Sequence[Attribute] = (),
    *,
    allow_trailing_comma: bool = True,
) -> Tuple[str, ...]:
    """Return the order used for generation: the annotation's, else declaration order."""
    attribute = find_order_annotation(attributes, type_name=declaration.name)
    if attribute is None:
        LOGGER.debug("No %s annotation on %s; using declaration order", ITERATION_ORDER, declaration.name)
        return declaration.members

    try:
        order = parse_iteration_order(attribute, allow_trailing_comma=allow_trailing_comma)
    except AnnotationParseError as error:
        if error.type_name is None:
            error.type_name = declaration.name
        raise
    resolved = validate_order(declaration, order)
    LOGGER.debug("Resolved custom order for %s: %s", declaration.name, ", ".join(resolved))
    return resolved
