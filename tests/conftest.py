from __future__ import annotations

import importlib.util
import sys
import textwrap
from pathlib import Path
from types import ModuleType
from typing import Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


PALETTE_SOURCE = textwrap.dedent(
    """
    from enum import Enum, auto


    #[derive(EnumRotate)]
    #[iteration_order(Blue, Red, Green)]
    class Color(Enum):
        Red = auto()
        Green = auto()
        Blue = auto()


    #[derive(EnumRotate)]
    class Direction(Enum):
        NORTH = "n"
        EAST = "e"
        SOUTH = "s"
        WEST = "w"


    class Untouched(Enum):
        A = 1
        B = 2
    """
).lstrip("\n")


PALETTE_SCHEMA = textwrap.dedent(
    """
    module: Colour palette used by the renderer.
    types:
      - name: Color
        attributes:
          - "#[iteration_order(Blue, Red, Green)]"
        members: [Red, Green, Blue]
      - name: Nothing
        members: []
    """
).lstrip("\n")


@pytest.fixture()
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write ``content`` under ``tmp_path`` and return the created path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def palette_path(write_file: Callable[[str, str], Path]) -> Path:
    """Python module with two annotated enums and one plain enum."""
    return write_file("palette.py", PALETTE_SOURCE)


@pytest.fixture()
def schema_path(write_file: Callable[[str, str], Path]) -> Path:
    """YAML schema with a reordered enum and an empty enum."""
    return write_file("palette.yaml", PALETTE_SCHEMA)


@pytest.fixture()
def import_generated(tmp_path: Path) -> Callable[[Path], ModuleType]:
    """Import a generated module from disk under a name unique to the test."""

    counter = {"value": 0}

    def _import(path: Path) -> ModuleType:
        counter["value"] += 1
        name = f"_generated_{abs(hash(tmp_path))}_{counter['value']}_{path.stem}"
        spec = importlib.util.spec_from_file_location(name, path)
        assert spec is not None and spec.loader is not None
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        spec.loader.exec_module(module)
        return module

    return _import
