from __future__ import annotations

import textwrap
from enum import Flag
from pathlib import Path

import pytest

from enum_rotate.config import GeneratorConfig
from enum_rotate.declaration import TypeShape
from enum_rotate.errors import InvalidMemberError, SourceError, SourceSpan
from enum_rotate.generator import generate
from enum_rotate.sources import SourceKind, read_live_class, read_python_types, read_source

from conftest import PALETTE_SOURCE


def test_only_marked_classes_are_collected() -> None:
    types = read_python_types(PALETTE_SOURCE, path="palette.py")

    assert [item.name for item in types] == ["Color", "Direction"]
    color, direction = types
    assert color.shape is TypeShape.ENUM
    assert [variant.name for variant in color.variants] == ["Red", "Green", "Blue"]
    assert [variant.name for variant in direction.variants] == ["NORTH", "EAST", "SOUTH", "WEST"]
    assert direction.attributes == ()


def test_order_annotation_keeps_its_source_position() -> None:
    color = read_python_types(PALETTE_SOURCE, path="palette.py")[0]

    assert [attribute.text for attribute in color.attributes] == ["#[iteration_order(Blue, Red, Green)]"]
    assert color.attributes[0].span == SourceSpan(path="palette.py", line=5, column=0)
    assert color.span == SourceSpan(path="palette.py", line=6, column=6)


def test_annotations_around_decorators_are_collected() -> None:
    source = textwrap.dedent(
        """
        from enum import Enum, unique


        #[derive(EnumRotate)]
        @unique
        #[iteration_order(B, A)]
        class Letters(Enum):
            A = 1
            B = 2
        """
    ).lstrip("\n")

    (letters,) = read_python_types(source)

    assert [attribute.name for attribute in letters.attributes] == ["iteration_order"]
    assert letters.attributes[0].span.line == 6


def test_derive_list_must_name_the_marker() -> None:
    source = textwrap.dedent(
        """
        from enum import Enum


        #[derive(Debug)]
        class Level(Enum):
            LOW = 1
        """
    )

    assert read_python_types(source) == ()


def test_custom_marker_and_bases_come_from_config() -> None:
    source = textwrap.dedent(
        """
        import enum


        #[derive(Cycle)]
        class Phase(enum.Enum):
            NEW = 1
            FULL = 2


        #[derive(Cycle)]
        class Tone(Choices):
            LOW = 1
        """
    )
    config = GeneratorConfig(derive_marker="Cycle", enum_bases=["Enum"])

    phase, tone = read_python_types(source, config=config)

    assert phase.shape is TypeShape.ENUM
    assert tone.shape is TypeShape.CLASS


def test_non_enum_class_is_reported_as_class() -> None:
    source = textwrap.dedent(
        """
        #[derive(EnumRotate)]
        class Point:
            x = 0
            y = 0
        """
    )

    (point,) = read_python_types(source)

    assert point.shape is TypeShape.CLASS
    assert point.variants == ()


def test_tuple_values_are_reported_as_fields() -> None:
    source = textwrap.dedent(
        """
        from enum import Enum


        #[derive(EnumRotate)]
        class Planet(Enum):
            MERCURY = (3.303e23, 2.4397e6)
            VENUS = (4.869e24, 6.0518e6)

            def __init__(self, mass, radius):
                self.mass = mass
                self.radius = radius
        """
    )

    (planet,) = read_python_types(source)

    assert planet.variants[0].fields == ("3.303e23", "2.4397e6")
    assert not planet.variants[0].is_unit


def test_repeated_literal_values_and_chained_targets_are_aliases() -> None:
    source = textwrap.dedent(
        """
        from enum import Enum


        #[derive(EnumRotate)]
        class Color(Enum):
            Red = 1
            Crimson = 1
            Green = Lime = 2
            _ignore_ = ["tmp"]
            Blue: int = 3
        """
    )

    (color,) = read_python_types(source)
    aliases = {variant.name: variant.alias_of for variant in color.variants}

    assert aliases == {
        "Red": None,
        "Crimson": "Red",
        "Green": None,
        "Lime": "Green",
        "Blue": None,
    }


def test_syntax_errors_are_source_errors() -> None:
    with pytest.raises(SourceError) as excinfo:
        read_python_types("class (:\n", path="broken.py")

    assert excinfo.value.span is not None
    assert excinfo.value.span.path == "broken.py"
    assert "Failed to parse broken.py" in excinfo.value.message


def test_read_source_dispatches_on_suffix(palette_path: Path, tmp_path: Path) -> None:
    document = read_source(palette_path)

    assert document.kind is SourceKind.PYTHON
    assert [item.name for item in document.types] == ["Color", "Direction"]

    with pytest.raises(SourceError, match="Unsupported source file notes.txt"):
        read_source(tmp_path / "notes.txt")


def test_equal_literals_spelled_differently_are_aliases() -> None:
    source = textwrap.dedent(
        """
        from enum import Enum


        #[derive(EnumRotate)]
        class Level(Enum):
            LOW = 1
            ONE = 1.0
            HIGH = 0x2
            TWO = 2
            UP = +2
            LABEL = "a" "b"
            OTHER = 'ab'
            TRUTHY = True
        """
    )

    (level,) = read_python_types(source)
    aliases = {variant.name: variant.alias_of for variant in level.variants}

    assert aliases == {
        "LOW": None,
        "ONE": "LOW",
        "HIGH": None,
        "TWO": "HIGH",
        "UP": "HIGH",
        "LABEL": None,
        "OTHER": "LABEL",
        "TRUTHY": "LOW",
    }


def test_differently_spelled_alias_fails_generation() -> None:
    source = textwrap.dedent(
        """
        from enum import Enum


        #[derive(EnumRotate)]
        class Level(Enum):
            LOW = 1
            ONE = 1.0
        """
    )

    report = generate(read_python_types(source))

    (error,) = report.errors
    assert isinstance(error, InvalidMemberError)
    assert "ONE is an alias of LOW" in error.message
    assert report.plans == []


def test_annotations_above_the_first_statement_are_read() -> None:
    source = (
        "#[derive(EnumRotate)]\n"
        "#[iteration_order(Blue, Red)]\n"
        "class Color(Enum):\n"
        "    Red = 1\n"
        "    Blue = 2\n"
    )

    (color,) = read_python_types(source, path="first.py")

    assert color.name == "Color"
    assert [attribute.text for attribute in color.attributes] == ["#[iteration_order(Blue, Red)]"]
    assert color.attributes[0].span == SourceSpan(path="first.py", line=2, column=0)


def test_composite_flag_members_match_the_live_reader() -> None:
    source = textwrap.dedent(
        """
        from enum import Flag


        #[derive(EnumRotate)]
        class Perm(Flag):
            R = 1
            W = 2
            RW = 3
        """
    )

    class Perm(Flag):
        R = 1
        W = 2
        RW = 3

    (parsed,) = read_python_types(source)
    live = read_live_class(Perm)

    assert [(variant.name, variant.alias_of) for variant in parsed.variants] == [
        (variant.name, variant.alias_of) for variant in live.variants
    ]
    assert [variant.name for variant in live.variants] == ["R", "W", "RW"]


def test_unicode_member_names_are_read() -> None:
    source = textwrap.dedent(
        """
        from enum import Enum


        #[derive(EnumRotate)]
        #[iteration_order(Thé, Café)]
        class Drink(Enum):
            Café = 1
            Thé = 2
        """
    )

    (plan,) = generate(read_python_types(source)).plans

    assert plan.canonical_order == ("Thé", "Café")
