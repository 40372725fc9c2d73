"""Typer CLI entrypoint for maskops."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Literal, cast

import typer

from apps.cli.format_human import render_session_summary
from apps.cli.io import (
    OutputPaths,
    build_output_paths,
    existing_output_files,
    write_fallback_json_atomic,
    write_session_report_atomic,
)
from core.presets.models import PresetCatalog
from core.presets.preset_loader import load_presets
from core.presets.registry import create_engine, list_presets
from core.session.models import SessionReport
from core.session.replay import load_session_script, run_session
from core.utils.errors import (
    InvalidPatternError,
    InvalidPlaceholderError,
    PresetError,
    SessionScriptError,
)

app = typer.Typer(help="Input mask CLI", rich_markup_mode=None)
ReportMode = Literal["human", "json", "both"]


@app.callback()
def cli_callback() -> None:
    """CLI root callback to keep subcommands explicit."""


@app.command("format")
def format_command(
    value: Annotated[str, typer.Option(help="Raw value to lay out over the mask.")] = "",
    pattern: Annotated[str | None, typer.Option(help="Mask pattern source.")] = None,
    preset: Annotated[str | None, typer.Option(help="Named preset from the catalog.")] = None,
    placeholder: Annotated[
        str | None, typer.Option("--placeholder", help="Placeholder character.")
    ] = None,
    revealing: Annotated[
        bool, typer.Option("--revealing", help="Keep content after gaps (revealing mask).")
    ] = False,
    presets: Annotated[
        Path | None, typer.Option(exists=True, dir_okay=False, file_okay=True)
    ] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON output.")] = False,
) -> None:
    """Format one value with a mask and print masked/raw values."""

    if (pattern is None) == (preset is None):
        typer.echo("ERROR: exactly one of --pattern or --preset is required.")
        raise typer.Exit(code=1)

    catalog = _load_catalog_or_exit(presets)
    try:
        engine = create_engine(
            catalog,
            preset=preset,
            pattern=pattern,
            value=value,
            placeholder_char=placeholder,
            revealing_mask=True if revealing else None,
        )
    except (InvalidPatternError, InvalidPlaceholderError, PresetError) as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=2) from exc

    payload = {
        "value": engine.get_value(),
        "raw_value": engine.get_raw_value(),
        "empty_value": engine.empty_value,
        "max_length": engine.max_length,
    }
    if as_json:
        typer.echo(json.dumps(payload, ensure_ascii=False, sort_keys=True))
        return
    for key in ("value", "raw_value", "empty_value", "max_length"):
        typer.echo(f"{key}: {payload[key]}")


@app.command("replay")
def replay_command(
    script: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    out_dir: Annotated[Path, typer.Option()] = Path("."),
    report: Annotated[str, typer.Option()] = "human",
    presets: Annotated[
        Path | None, typer.Option(exists=True, dir_okay=False, file_okay=True)
    ] = None,
    force: Annotated[
        bool, typer.Option("--force", help="Overwrite outputs when they already exist.")
    ] = False,
    no_overwrite: Annotated[
        bool,
        typer.Option(
            "--no-overwrite",
            help="Fail when outputs already exist.",
        ),
    ] = False,
) -> None:
    """Replay an edit session script and write out.session_report.json."""

    paths = build_output_paths(out_dir)
    normalized_report = report.lower().strip()
    if normalized_report not in {"human", "json", "both"}:
        typer.echo("ERROR: --report must be one of: human, json, both.")
        _safe_write_exit1_fallback(paths, "ArgumentValidationError", "invalid report", "args")
        raise typer.Exit(code=1)
    report_typed = cast(ReportMode, normalized_report)

    if force and no_overwrite:
        typer.echo("ERROR: --force and --no-overwrite cannot be used together.")
        _safe_write_exit1_fallback(paths, "ArgumentConflict", "conflicting overwrite flags", "args")
        raise typer.Exit(code=1)

    existing = existing_output_files(paths)
    if existing and no_overwrite:
        typer.echo("ERROR: outputs already exist and --no-overwrite is enabled.")
        raise typer.Exit(code=1)
    if existing:
        names = ", ".join(path.name for path in existing)
        typer.echo(f"INFO: overwriting existing outputs: {names}")

    session_report: SessionReport | None = None
    exit_code = 1
    reason = "unexpected error"
    failure_stage = "unknown"
    error: Exception | None = None

    try:
        failure_stage = "load_presets"
        catalog = load_presets(presets)
        failure_stage = "load_script"
        session_script = load_session_script(script)
        failure_stage = "replay"
        session_report = run_session(session_script, catalog)
        exit_code = 0
        reason = "success"
    except SessionScriptError as exc:
        error = exc
        exit_code = 3
        reason = "invalid session script"
        typer.echo(f"ERROR: {reason}: {exc}")
    except (InvalidPatternError, InvalidPlaceholderError, PresetError) as exc:
        error = exc
        exit_code = 2
        reason = "invalid mask"
        typer.echo(f"ERROR: {reason}: {exc}")
    except Exception as exc:  # noqa: BLE001
        error = exc
        exit_code = 1
        reason = "internal error"
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")

    if session_report is not None:
        try:
            write_session_report_atomic(paths, session_report)
        except Exception as write_exc:  # noqa: BLE001
            exit_code = 1
            reason = "write output failed"
            typer.echo(f"ERROR: {reason}: {write_exc}")
        else:
            if report_typed in {"human", "both"}:
                typer.echo(render_session_summary(session_report))
            if report_typed in {"json", "both"}:
                typer.echo(
                    json.dumps(
                        session_report.model_dump(mode="json"),
                        ensure_ascii=False,
                        sort_keys=True,
                    )
                )
    elif error is not None:
        _safe_write_exit1_fallback(paths, type(error).__name__, str(error), failure_stage)

    if exit_code != 0:
        typer.echo(f"FAILED: {reason} (exit={exit_code})")
        raise typer.Exit(code=exit_code)


@app.command("presets")
def presets_command(
    presets: Annotated[
        Path | None, typer.Option(exists=True, dir_okay=False, file_okay=True)
    ] = None,
) -> None:
    """List available mask presets."""

    catalog = _load_catalog_or_exit(presets)
    for name in list_presets(catalog):
        preset = catalog.presets[name]
        description = f"  {preset.description}" if preset.description else ""
        typer.echo(f"{name}: {preset.pattern}{description}")


def _load_catalog_or_exit(path: Path | None) -> PresetCatalog:
    try:
        return load_presets(path)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc


def _safe_write_exit1_fallback(
    paths: OutputPaths,
    error_type: str,
    error_message: str,
    stage: str,
) -> None:
    try:
        write_fallback_json_atomic(
            paths,
            error_type=error_type,
            error_message=error_message,
            stage=stage,
        )
    except Exception:  # noqa: BLE001
        typer.echo("WARNING: failed to write fallback report.")


if __name__ == "__main__":
    app()
