"""CLI commands for generating and inspecting enum rotation modules."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import typer

from .config import EnumRotateConfig, load_config
from .emit import render_enum_module, render_mixin_module, write_module
from .errors import EnumRotateError
from .generator import GenerationReport, generate
from .sources import SourceDocument, SourceKind, read_source
from .utils.naming import output_path_for

APP_HELP = "Generate cyclic successor/predecessor navigation for payload-free enums."
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

LOGGER = logging.getLogger(__name__)

app = typer.Typer(help=APP_HELP)


@dataclass(slots=True)
class FileResult:
    """Outcome of processing one source file."""

    path: Path
    report: GenerationReport
    document: SourceDocument | None = None
    error: EnumRotateError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.report.ok


def _load_settings(config: Optional[str], verbose: bool) -> EnumRotateConfig:
    try:
        settings = load_config(Path(config) if config else None)
    except EnumRotateError as error:
        typer.echo(error.render(), err=True)
        raise typer.Exit(code=1) from error
    level = logging.DEBUG if verbose else getattr(logging, settings.logging.level)
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    return settings


def _process(path: Path, settings: EnumRotateConfig) -> FileResult:
    try:
        document = read_source(path, settings.generator)
    except EnumRotateError as error:
        LOGGER.info("Unable to read %s: %s", path, error.message)
        return FileResult(path=path, report=GenerationReport(), error=error)
    report = generate(document.types, settings.generator)
    return FileResult(path=path, report=report, document=document)


def _render(result: FileResult, settings: EnumRotateConfig) -> str:
    document = result.document
    assert document is not None  # Narrow for type checkers.
    origin = document.path.name
    if document.kind is SourceKind.SCHEMA:
        return render_enum_module(
            result.report.plans,
            config=settings.generator,
            origin=origin,
            docstring=document.docstring,
        )
    return render_mixin_module(result.report.plans, config=settings.generator, origin=origin)


def _default_output(document: SourceDocument, settings: EnumRotateConfig) -> Path:
    suffix = settings.generator.output_suffix if document.kind is SourceKind.PYTHON else ""
    return output_path_for(document.path, suffix=suffix)


def _report_errors(result: FileResult) -> None:
    errors = [result.error] if result.error is not None else result.report.errors
    for error in errors:
        typer.echo(error.render(), err=True)


@app.command("generate")
def generate_modules(
    paths: List[Path] = typer.Argument(..., help="Python modules or YAML schemas to read."),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to an enum_rotate.yaml or pyproject.toml configuration file.",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the generated module here (only valid with a single input).",
    ),
    stdout: bool = typer.Option(False, "--stdout", help="Print generated code instead of writing it."),
    check: bool = typer.Option(
        False,
        "--check",
        help="Do not write; fail when a generated module on disk is missing or stale.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Generate rotation modules for every annotated declaration."""
    settings = _load_settings(config, verbose)
    if output is not None and len(paths) != 1:
        raise typer.BadParameter("--output can only be used with a single input path.", param_hint="--output")

    failed = False
    stale: List[Path] = []
    for path in paths:
        result = _process(path, settings)
        _report_errors(result)
        if not result.ok:
            failed = True
        if result.document is None:
            continue
        if not result.document.types:
            typer.echo(f"{path}: no annotated declarations found.")
            continue

        try:
            code = _render(result, settings)
        except EnumRotateError as error:
            typer.echo(error.render(), err=True)
            failed = True
            continue

        target = output or _default_output(result.document, settings)
        if stdout:
            typer.echo(code, nl=False)
            continue
        if check:
            current = target.read_text(encoding="utf-8") if target.exists() else None
            if current != code:
                stale.append(target)
            continue
        changed = write_module(target, code)
        status = "Wrote" if changed else "Unchanged"
        typer.echo(f"{status} {target} ({len(result.report.plans)} type(s)).")

    if stale:
        typer.echo("Stale generated modules:")
        for target in stale:
            typer.echo(f"- {target}")
    if failed or stale:
        raise typer.Exit(code=1)


@app.command()
def check(
    paths: List[Path] = typer.Argument(..., help="Python modules or YAML schemas to validate."),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to an enum_rotate.yaml or pyproject.toml configuration file.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit diagnostics as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Validate declarations and ordering annotations without generating code."""
    settings = _load_settings(config, verbose)
    results = [_process(path, settings) for path in paths]

    if as_json:
        payload = []
        for result in results:
            errors = [result.error] if result.error is not None else result.report.errors
            payload.append(
                {
                    "path": result.path.as_posix(),
                    "ok": result.ok,
                    "types": [
                        {"name": outcome.type_name, "ok": outcome.ok} for outcome in result.report.outcomes
                    ],
                    "errors": [error.to_dict() for error in errors],
                }
            )
        typer.echo(json.dumps(payload, indent=2))
    else:
        for result in results:
            _report_errors(result)
            if result.error is None:
                typer.echo(f"{result.path}: {result.report.format_summary()}")

    if not all(result.ok for result in results):
        raise typer.Exit(code=1)


@app.command()
def show(
    path: Path = typer.Argument(..., help="Python module or YAML schema to inspect."),
    type_name: Optional[str] = typer.Option(None, "--type", "-t", help="Only show this type."),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to an enum_rotate.yaml or pyproject.toml configuration file.",
    ),
) -> None:
    """Print the resolved order, successor table and rotations of each type."""
    settings = _load_settings(config, False)
    result = _process(path, settings)
    _report_errors(result)

    plans = result.report.plans
    if type_name is not None:
        plans = [plan for plan in plans if plan.type_name == type_name]
        if not plans and all(outcome.type_name != type_name for outcome in result.report.outcomes):
            typer.echo(f"No annotated declaration named {type_name} in {path}.")
            raise typer.Exit(code=1)

    for plan in plans:
        order = plan.canonical_order
        typer.echo(f"{plan.type_name} [{len(order)} member(s)]")
        typer.echo(f"  order: {', '.join(order) if order else '(empty)'}")
        for member in order:
            typer.echo(
                f"  {member}: next={plan.successor_table[member]} prev={plan.predecessor_table[member]}"
                f" from=[{', '.join(plan.rotations[member])}]"
            )

    if not result.ok:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
