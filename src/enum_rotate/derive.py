"""Import-time derivation: run the generator on a live ``Enum`` class."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional, Sequence, TypeVar, Union, overload

from .config import GeneratorConfig
from .declaration import Attribute
from .generator import plan_capability
from .ordering import ITERATION_ORDER, format_attribute
from .runtime import install_rotation
from .sources.live import read_live_class

__all__ = ["derive_rotation"]

E = TypeVar("E", bound=type)


def _order_attribute(order: Sequence[Union[str, Enum]]) -> Attribute:
    names = [item.name if isinstance(item, Enum) else str(item) for item in order]
    return Attribute(text=format_attribute(ITERATION_ORDER, names))


@overload
def derive_rotation(cls: E) -> E: ...


@overload
def derive_rotation(
    cls: None = None,
    *,
    order: Optional[Sequence[Union[str, Enum]]] = None,
    config: Optional[GeneratorConfig] = None,
) -> Callable[[E], E]: ...


def derive_rotation(cls=None, *, order=None, config=None):  # type: ignore[no-untyped-def]
    """Class decorator that installs the rotation capability on an ``Enum``.

    The same pipeline as the code generator runs when the class is created,
    so shape and ordering errors surface as ``EnumRotateError`` at import::

        @derive_rotation(order=("Blue", "Red", "Green"))
        class Color(Enum):
            Red = auto()
            Green = auto()
            Blue = auto()
    """

    def apply(target: E) -> E:
        attributes = (_order_attribute(order),) if order is not None else ()
        plan = plan_capability(read_live_class(target, attributes), config)
        install_rotation(target, plan.canonical_order, plan.successor_table, plan.predecessor_table)
        return target

    if cls is None:
        return apply
    return apply(cls)
