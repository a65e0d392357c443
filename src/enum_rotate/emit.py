"""Render generated rotation modules and write them to disk."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence

import libcst as cst

from .config import GeneratorConfig
from .errors import EmissionError, SourceSpan
from .generator import CapabilityPlan
from .utils.naming import mixin_name

__all__ = ["render_enum_module", "render_mixin_module", "write_module"]

LOGGER = logging.getLogger(__name__)

_INDENT = "    "


def _literal(name: str) -> str:
    return json.dumps(name, ensure_ascii=False)


def _render_order(order: Sequence[str]) -> str:
    if not order:
        return "()"
    if len(order) == 1:
        return f"({_literal(order[0])},)"
    return "(" + ", ".join(_literal(name) for name in order) + ")"


def _render_table(table: Mapping[str, str], order: Sequence[str], indent: str) -> List[str]:
    if not order:
        return ["{}"]
    lines = ["{"]
    for name in order:
        lines.append(f"{indent}{_INDENT}{_literal(name)}: {_literal(table[name])},")
    lines.append(f"{indent}}}")
    return lines


def _table_block(plan: CapabilityPlan, indent: str) -> List[str]:
    order = plan.canonical_order
    lines = [f"{indent}__rotation_order__ = {_render_order(order)}"]
    successor_lines = _render_table(plan.successor_table, order, indent)
    lines.append(f"{indent}__rotation_next__ = {successor_lines[0]}")
    lines.extend(successor_lines[1:])
    # predecessor entries use the successor key order
    predecessor_lines = _render_table(plan.predecessor_table, order, indent)
    lines.append(f"{indent}__rotation_prev__ = {predecessor_lines[0]}")
    lines.extend(predecessor_lines[1:])
    return lines


def _header(config: GeneratorConfig, origin: Optional[str], docstring: str) -> List[str]:
    lines = [f"# {config.header}"]
    if origin:
        lines.append(f"# Source: {origin}")
    lines.extend(
        [
            f'"""{docstring}"""',
            "",
            "from __future__ import annotations",
            "",
        ]
    )
    return lines


def _exports(names: Iterable[str]) -> List[str]:
    rendered = ", ".join(_literal(name) for name in names)
    return [f"__all__ = [{rendered}]", "", ""]


def render_mixin_module(
    plans: Sequence[CapabilityPlan],
    *,
    config: Optional[GeneratorConfig] = None,
    origin: Optional[str] = None,
) -> str:
    """Render one ``EnumRotate`` mixin per plan for classes declared in Python."""
    settings = config or GeneratorConfig()
    names = [mixin_name(plan.type_name, settings.mixin_suffix) for plan in plans]
    lines = _header(settings, origin, f"Rotation mixins for {origin or 'annotated enums'}.")
    lines.extend([f"from {settings.runtime_module} import EnumRotate", ""])
    lines.extend(_exports(names))
    for plan, name in zip(plans, names):
        lines.append(f"class {name}(EnumRotate):")
        lines.append(f'{_INDENT}"""Cyclic navigation for ``{plan.type_name}``."""')
        lines.append("")
        lines.extend(_table_block(plan, _INDENT))
        lines.extend(["", ""])
    return _finish(lines, origin)


def render_enum_module(
    plans: Sequence[CapabilityPlan],
    *,
    config: Optional[GeneratorConfig] = None,
    origin: Optional[str] = None,
    docstring: Optional[str] = None,
) -> str:
    """Render complete ``Enum`` classes for types declared in a schema."""
    settings = config or GeneratorConfig()
    summary = (docstring or "").strip().replace('"""', "'''") or f"Enumerations generated from {origin or 'a schema'}."
    lines = _header(settings, origin, summary)
    lines.extend(
        [
            "from enum import Enum, auto",
            "",
            f"from {settings.runtime_module} import EnumRotate",
            "",
        ]
    )
    lines.extend(_exports(plan.type_name for plan in plans))
    for plan in plans:
        lines.append(f"class {plan.type_name}(EnumRotate, Enum):")
        lines.append(f'{_INDENT}"""Enumeration ``{plan.type_name}`` with cyclic navigation."""')
        lines.append("")
        # members in declaration order; rotation order lives in the tables
        for variant in plan.source.variants:
            lines.append(f"{_INDENT}{variant.name} = auto()")
        if plan.source.variants:
            lines.append("")
        lines.extend(_table_block(plan, _INDENT))
        lines.extend(["", ""])
    return _finish(lines, origin)


def _finish(lines: List[str], origin: Optional[str]) -> str:
    while lines and not lines[-1]:
        lines.pop()
    code = "\n".join(lines) + "\n"
    try:
        cst.parse_module(code)
    except cst.ParserSyntaxError as error:
        raise EmissionError(
            f"Generated code for {origin or 'module'} does not parse: {error.message}",
            span=SourceSpan(path=origin),
            notes=(f"line {error.raw_line}, column {error.raw_column}",),
        ) from error
    return code


def write_module(path: Path, content: str) -> bool:
    """Write ``content`` to ``path`` when it differs; return whether it changed."""
    if path.exists() and path.read_text(encoding="utf-8") == content:
        LOGGER.debug("%s already up to date", path)
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    LOGGER.info("Wrote %s", path)
    return True
