"""Construction of the successor/predecessor tables from a resolved order."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Sequence, Tuple, TypeVar

from .errors import RotationInvariantError

__all__ = ["RotationMapping", "rotate_left", "synthesize"]

T = TypeVar("T")


def rotate_left(order: Sequence[str], count: int) -> Tuple[str, ...]:
    """Return ``order`` rotated left by ``count`` positions."""
    items = tuple(order)
    if not items:
        return items
    shift = count % len(items)
    return items[shift:] + items[:shift]


@dataclass(frozen=True, slots=True)
class RotationMapping:
    """Paired lookup tables forming a single cycle over ``order``.

    Both tables are derived from one left rotation of ``order`` so the
    successor and predecessor functions are inverse by construction. For an
    empty order every table is empty and the member-taking operations are
    unreachable.
    """

    order: Tuple[str, ...]
    successors: Mapping[str, str] = field(default_factory=dict)
    predecessors: Mapping[str, str] = field(default_factory=dict)
    positions: Mapping[str, int] = field(default_factory=dict)

    @property
    def cardinality(self) -> int:
        return len(self.order)

    def successor(self, member: str) -> str:
        return self._lookup(self.successors, member)

    def predecessor(self, member: str) -> str:
        return self._lookup(self.predecessors, member)

    def canonical_sequence(self) -> Tuple[str, ...]:
        return self.order

    def sequence_from(self, member: str) -> Tuple[str, ...]:
        """Return every member once, starting at ``member`` and wrapping around."""
        return rotate_left(self.order, self._lookup(self.positions, member))

    def rotations(self) -> Dict[str, Tuple[str, ...]]:
        """Return ``sequence_from`` for every member, keyed by starting member."""
        return {member: self.sequence_from(member) for member in self.order}

    def _lookup(self, table: Mapping[str, T], member: str) -> T:
        try:
            return table[member]
        except KeyError as error:
            raise RotationInvariantError(
                f"{member!r} is not part of the rotation {list(self.order)!r}"
            ) from error


def synthesize(order: Sequence[str]) -> RotationMapping:
    """Build the rotation mapping for a resolved member order."""
    members = tuple(order)
    shifted = rotate_left(members, 1)
    successors = dict(zip(members, shifted))
    predecessors = dict(zip(shifted, members))
    positions = {member: index for index, member in enumerate(members)}
    if len(successors) != len(members):
        raise RotationInvariantError(f"Resolved order contains repeated members: {list(members)!r}")
    return RotationMapping(
        order=members,
        successors=MappingProxyType(successors),
        predecessors=MappingProxyType(predecessors),
        positions=MappingProxyType(positions),
    )
