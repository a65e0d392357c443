"""Runtime support imported by generated rotation modules.

Generated code subclasses ``EnumRotate`` and fills in three class-level
tables keyed by member name. The mixin is placed before ``Enum`` in the bases
of the user's enumeration::

    class Color(ColorRotate, Enum):
        Red = auto()
        Green = auto()
        Blue = auto()

    Color.Blue.successor()            # Color.Red
    list(Color.Green.sequence_from()) # [Color.Green, Color.Blue, Color.Red]
"""

from __future__ import annotations

from typing import Any, ClassVar, Iterator, Mapping, Sequence, Tuple, TypeVar

from .errors import RotationInvariantError

__all__ = ["EnumRotate", "RotationSequence", "install_rotation"]

T = TypeVar("T")


class RotationSequence(Iterator[T]):
    """Single forward pass over an ordered buffer; call the producer again to restart."""

    __slots__ = ("_items", "_cursor")

    def __init__(self, items: Sequence[T]) -> None:
        self._items: Tuple[T, ...] = tuple(items)
        self._cursor = 0

    def __iter__(self) -> "RotationSequence[T]":
        return self

    def __next__(self) -> T:
        if self._cursor >= len(self._items):
            raise StopIteration
        item = self._items[self._cursor]
        self._cursor += 1
        return item

    def __len__(self) -> int:
        return len(self._items) - self._cursor

    def __repr__(self) -> str:
        return f"RotationSequence({list(self._items[self._cursor:])!r})"


class EnumRotate:
    """Cyclic navigation over the members of an enumeration."""

    __rotation_order__: ClassVar[Tuple[str, ...]] = ()
    __rotation_next__: ClassVar[Mapping[str, str]] = {}
    __rotation_prev__: ClassVar[Mapping[str, str]] = {}

    def successor(self) -> Any:
        """Return the member that follows this one, wrapping at the end."""
        return _member(type(self), _lookup(type(self), type(self).__rotation_next__, self))

    def predecessor(self) -> Any:
        """Return the member that precedes this one, wrapping at the start."""
        return _member(type(self), _lookup(type(self), type(self).__rotation_prev__, self))

    @classmethod
    def canonical_sequence(cls) -> RotationSequence[Any]:
        """Iterate every member once in rotation order."""
        return RotationSequence([_member(cls, name) for name in cls.__rotation_order__])

    def sequence_from(self) -> RotationSequence[Any]:
        """Iterate every member once, starting here and wrapping around."""
        cls = type(self)
        order = cls.__rotation_order__
        name = _name_of(self)
        if name not in order:
            raise _stale(cls, name)
        index = order.index(name)
        rotated = order[index:] + order[:index]
        return RotationSequence([_member(cls, item) for item in rotated])


_CAPABILITY_METHODS = ("successor", "predecessor", "canonical_sequence", "sequence_from")


def install_rotation(
    cls: type,
    order: Sequence[str],
    successors: Mapping[str, str],
    predecessors: Mapping[str, str],
) -> type:
    """Attach rotation tables (and, if missing, the capability methods) to ``cls``."""
    cls.__rotation_order__ = tuple(order)  # type: ignore[attr-defined]
    cls.__rotation_next__ = dict(successors)  # type: ignore[attr-defined]
    cls.__rotation_prev__ = dict(predecessors)  # type: ignore[attr-defined]
    if not issubclass(cls, EnumRotate):
        for name in _CAPABILITY_METHODS:
            setattr(cls, name, EnumRotate.__dict__[name])
    return cls


def _name_of(member: object) -> str:
    return getattr(member, "name")


def _stale(cls: type, name: str) -> RotationInvariantError:
    return RotationInvariantError(
        f"Member {name} of {cls.__name__} is missing from its rotation table; "
        "regenerate the rotation module"
    )


def _lookup(cls: type, table: Mapping[str, str], member: object) -> str:
    name = _name_of(member)
    try:
        return table[name]
    except KeyError as error:
        raise _stale(cls, name) from error


def _member(cls: Any, name: str) -> Any:
    try:
        return cls[name]
    except KeyError as error:
        raise _stale(cls, name) from error
