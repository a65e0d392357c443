"""Cyclic successor/predecessor navigation for payload-free enumerations."""

from .derive import derive_rotation
from .errors import EnumRotateError, RotationInvariantError
from .generator import CapabilityPlan, GenerationReport, generate, plan_capability
from .runtime import EnumRotate, RotationSequence

__all__ = [
    "CapabilityPlan",
    "EnumRotate",
    "EnumRotateError",
    "GenerationReport",
    "RotationInvariantError",
    "RotationSequence",
    "derive_rotation",
    "generate",
    "plan_capability",
]
