"""Per-declaration pipeline: read, resolve the order, synthesize the tables."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .config import GeneratorConfig
from .declaration import TypeSource, read_declaration
from .errors import EnumRotateError
from .ordering import resolve_order
from .synthesis import RotationMapping, synthesize

__all__ = [
    "CapabilityPlan",
    "DeclarationOutcome",
    "GenerationReport",
    "generate",
    "plan_capability",
]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CapabilityPlan:
    """Everything the emitter needs to implement rotation for one type."""

    type_name: str
    mapping: RotationMapping
    source: TypeSource

    @property
    def successor_table(self) -> Mapping[str, str]:
        return self.mapping.successors

    @property
    def predecessor_table(self) -> Mapping[str, str]:
        return self.mapping.predecessors

    @property
    def canonical_order(self) -> Tuple[str, ...]:
        return self.mapping.canonical_sequence()

    @property
    def rotations(self) -> Dict[str, Tuple[str, ...]]:
        return self.mapping.rotations()


@dataclass(slots=True)
class DeclarationOutcome:
    """Result of running the pipeline for a single declaration."""

    type_name: str
    plan: CapabilityPlan | None = None
    error: EnumRotateError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.plan is not None


@dataclass(slots=True)
class GenerationReport:
    """Outcomes for every declaration processed in one run."""

    outcomes: List[DeclarationOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(outcome.ok for outcome in self.outcomes)

    @property
    def plans(self) -> List[CapabilityPlan]:
        return [outcome.plan for outcome in self.outcomes if outcome.plan is not None]

    @property
    def errors(self) -> List[EnumRotateError]:
        return [outcome.error for outcome in self.outcomes if outcome.error is not None]

    def extend(self, other: "GenerationReport") -> None:
        self.outcomes.extend(other.outcomes)

    def format_summary(self) -> str:
        generated = len(self.plans)
        failed = len(self.errors)
        lines = [f"{generated} type(s) generated, {failed} failed."]
        for outcome in self.outcomes:
            status = "ok" if outcome.ok else "error"
            lines.append(f"- {outcome.type_name}: {status}")
        return "\n".join(lines)


def plan_capability(source: TypeSource, config: Optional[GeneratorConfig] = None) -> CapabilityPlan:
    """Run the full pipeline for ``source``; the first fault aborts the type."""
    settings = config or GeneratorConfig()
    declaration = read_declaration(source)
    order = resolve_order(
        declaration,
        source.attributes,
        allow_trailing_comma=settings.allow_trailing_comma,
    )
    mapping = synthesize(order)
    LOGGER.debug("Synthesized rotation for %s over %d member(s)", source.name, mapping.cardinality)
    return CapabilityPlan(type_name=source.name, mapping=mapping, source=source)


def generate(
    sources: Iterable[TypeSource], config: Optional[GeneratorConfig] = None
) -> GenerationReport:
    """Plan every declaration independently, recording faults per type."""
    report = GenerationReport()
    for source in sources:
        try:
            plan = plan_capability(source, config)
        except EnumRotateError as error:
            if error.type_name is None:
                error.type_name = source.name
            LOGGER.info("Skipping %s: %s", source.name, error.message)
            report.outcomes.append(DeclarationOutcome(type_name=source.name, error=error))
            continue
        report.outcomes.append(DeclarationOutcome(type_name=source.name, plan=plan))
    return report
