"""Configuration loading for the generator and its CLI."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError

__all__ = [
    "DEFAULT_CONFIG_NAME",
    "EnumRotateConfig",
    "GeneratorConfig",
    "LoggingConfig",
    "load_config",
]

DEFAULT_CONFIG_NAME = "enum_rotate.yaml"
PYPROJECT_NAME = "pyproject.toml"

LOGGER = logging.getLogger(__name__)


class ConfigModel(BaseModel):
    """Base Pydantic model with strict field handling."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class GeneratorConfig(ConfigModel):
    """Knobs that shape how declarations are read and modules are emitted."""

    derive_marker: str = "EnumRotate"
    enum_bases: List[str] = Field(
        default_factory=lambda: ["Enum", "IntEnum", "StrEnum", "Flag", "IntFlag"]
    )
    allow_trailing_comma: bool = True
    output_suffix: str = "_rotate"
    mixin_suffix: str = "Rotate"
    runtime_module: str = "enum_rotate.runtime"
    header: str = "Generated by enum-rotate; do not edit."

    @field_validator("derive_marker", "mixin_suffix")
    @classmethod
    def _require_identifier(cls, value: str) -> str:
        if not value.isidentifier():
            raise ValueError(f"{value!r} is not a valid identifier")
        return value


class LoggingConfig(ConfigModel):
    level: str = "WARNING"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown logging level {value!r}")
        return normalized


class EnumRotateConfig(ConfigModel):
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise ConfigError(f"Failed to parse config {path}: {error}") from error
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {path} must be a mapping at the top level.")
    return data


def _load_pyproject(path: Path) -> Optional[Dict[str, Any]]:
    """Return the ``[tool.enum_rotate]`` table of ``path`` if present."""
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as error:
        raise ConfigError(f"Failed to parse {path}: {error}") from error
    section = data.get("tool", {}).get("enum_rotate")
    if section is None:
        return None
    if not isinstance(section, dict):
        raise ConfigError(f"[tool.enum_rotate] in {path} must be a table.")
    return section


def _validate(data: Dict[str, Any], origin: Path | None) -> EnumRotateConfig:
    try:
        return EnumRotateConfig.model_validate(data)
    except ValidationError as error:
        where = f" in {origin}" if origin else ""
        raise ConfigError(f"Invalid configuration{where}: {error}") from error


def load_config(path: Path | str | None = None, *, search_root: Path | None = None) -> EnumRotateConfig:
    """Load configuration from ``path`` or discover it under ``search_root``.

    An explicitly named file must exist. Without one, ``enum_rotate.yaml`` and
    then ``pyproject.toml`` are consulted in ``search_root`` (the working
    directory by default), falling back to defaults.
    """

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        if config_path.name == PYPROJECT_NAME:
            return _validate(_load_pyproject(config_path) or {}, config_path)
        return _validate(_load_yaml(config_path), config_path)

    root = search_root or Path.cwd()
    candidate = root / DEFAULT_CONFIG_NAME
    if candidate.exists():
        LOGGER.debug("Using configuration from %s", candidate)
        return _validate(_load_yaml(candidate), candidate)

    pyproject = root / PYPROJECT_NAME
    if pyproject.exists():
        section = _load_pyproject(pyproject)
        if section is not None:
            LOGGER.debug("Using [tool.enum_rotate] from %s", pyproject)
            return _validate(section, pyproject)

    return EnumRotateConfig()
