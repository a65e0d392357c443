from __future__ import annotations

import logging
import textwrap

import pytest

from enum_rotate.config import GeneratorConfig
from enum_rotate.declaration import Attribute, TypeShape, TypeSource, VariantSource
from enum_rotate.errors import (
    AnnotationParseError,
    CardinalityMismatchError,
    NotAnEnumError,
    PayloadMemberError,
)
from enum_rotate.generator import generate, plan_capability
from enum_rotate.sources import read_python_types, read_schema_document

from conftest import PALETTE_SOURCE


def _enum(name: str, *members: str, attributes: tuple[str, ...] = ()) -> TypeSource:
    return TypeSource(
        name=name,
        shape=TypeShape.ENUM,
        variants=tuple(VariantSource(member) for member in members),
        attributes=tuple(Attribute(text) for text in attributes),
    )


def test_plan_uses_custom_order() -> None:
    plan = plan_capability(
        _enum("Color", "Red", "Green", "Blue", attributes=("#[iteration_order(Blue, Red, Green)]",))
    )

    assert plan.type_name == "Color"
    assert plan.canonical_order == ("Blue", "Red", "Green")
    assert dict(plan.successor_table) == {"Blue": "Red", "Red": "Green", "Green": "Blue"}
    assert dict(plan.predecessor_table) == {"Red": "Blue", "Green": "Red", "Blue": "Green"}
    assert plan.rotations["Green"] == ("Green", "Blue", "Red")


def test_plan_without_annotation_uses_declaration_order() -> None:
    plan = plan_capability(_enum("Color", "Red", "Green", "Blue"))

    assert plan.canonical_order == ("Red", "Green", "Blue")
    assert plan.successor_table["Blue"] == "Red"
    assert plan.predecessor_table["Red"] == "Blue"


def test_plan_for_empty_enum_is_empty() -> None:
    plan = plan_capability(_enum("Never"))

    assert plan.canonical_order == ()
    assert dict(plan.successor_table) == {}


def test_trailing_comma_setting_is_honoured() -> None:
    source = _enum("Color", "Red", "Green", attributes=("#[iteration_order(Green, Red,)]",))

    assert plan_capability(source).canonical_order == ("Green", "Red")
    with pytest.raises(AnnotationParseError):
        plan_capability(source, GeneratorConfig(allow_trailing_comma=False))


def test_failures_are_isolated_per_declaration(caplog: pytest.LogCaptureFixture) -> None:
    sources = [
        _enum("Good", "A", "B"),
        _enum("Short", "A", "B", "C", attributes=("#[iteration_order(A, B)]",)),
        TypeSource(name="Point", shape=TypeShape.STRUCT),
        _enum("AlsoGood", "X"),
    ]

    with caplog.at_level(logging.INFO, logger="enum_rotate.generator"):
        report = generate(sources)

    assert not report.ok
    assert [plan.type_name for plan in report.plans] == ["Good", "AlsoGood"]
    assert [type(error) for error in report.errors] == [CardinalityMismatchError, NotAnEnumError]
    assert [error.type_name for error in report.errors] == ["Short", "Point"]
    assert "Skipping Short" in caplog.text
    assert report.format_summary().splitlines() == [
        "2 type(s) generated, 2 failed.",
        "- Good: ok",
        "- Short: error",
        "- Point: error",
        "- AlsoGood: ok",
    ]


def test_python_module_end_to_end() -> None:
    report = generate(read_python_types(PALETTE_SOURCE, path="palette.py"))

    assert report.ok
    color, direction = report.plans
    assert color.successor_table["Blue"] == "Red"
    assert direction.canonical_order == ("NORTH", "EAST", "SOUTH", "WEST")
    assert direction.predecessor_table["NORTH"] == "WEST"


def test_payload_member_in_schema_fails_only_that_type() -> None:
    text = textwrap.dedent(
        """
        types:
          - name: Geometry
            members:
              - Point
              - Shape: [u32]
          - name: Switch
            members: [On, Off]
        """
    )
    _, types = read_schema_document(text, path="geometry.yaml")

    report = generate(types)

    (error,) = report.errors
    assert isinstance(error, PayloadMemberError)
    assert error.message.startswith("Member Shape is not a unit member")
    assert error.span is not None and error.span.line == 6
    assert [plan.type_name for plan in report.plans] == ["Switch"]


def test_errors_render_as_diagnostics() -> None:
    _, types = read_schema_document(
        'types:\n  - name: Color\n    attributes: ["#[iteration_order(Red, Green)]"]\n'
        "    members: [Red, Green, Blue]\n",
        path="palette.yaml",
    )

    (error,) = generate(types).errors
    rendered = error.render().splitlines()

    assert rendered[0] == "error: Expected 3 items in the iteration order but got 2"
    assert rendered[1] == "  --> palette.yaml:3:19"
    assert "  = note: Enum `Color` has 3 members" in rendered
    assert error.to_dict()["line"] == 3
