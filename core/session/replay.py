"""Replay declarative edit sessions against a mask engine."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from core.mask.engine import MaskEngine
from core.mask.models import Selection
from core.presets.models import PresetCatalog
from core.presets.preset_loader import load_presets
from core.presets.registry import create_engine
from core.session.models import (
    BackspaceStep,
    InputStep,
    PasteStep,
    RedoStep,
    SelectionModel,
    SelectStep,
    SessionReport,
    SessionScript,
    SetPatternStep,
    SetValueStep,
    Step,
    StepResult,
    TypeStep,
    UndoStep,
)
from core.utils.errors import SessionScriptError

logger = logging.getLogger("maskops.session")

_YAML_SUFFIXES = {".yaml", ".yml"}


def load_session_script(path: Path) -> SessionScript:
    """Load a session script from a JSON or YAML file."""

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise SessionScriptError(f"Session script not found: {path}") from exc
    except UnicodeDecodeError as exc:
        raise SessionScriptError(f"Session script must be UTF-8: {path}") from exc

    try:
        if path.suffix.lower() in _YAML_SUFFIXES:
            raw = yaml.safe_load(text)
        else:
            raw = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise SessionScriptError(f"Invalid session script syntax: {path}") from exc

    return parse_session_script(raw)


def parse_session_script(raw: object) -> SessionScript:
    if not isinstance(raw, dict):
        raise SessionScriptError("Session script must be an object")
    try:
        return SessionScript.model_validate(raw)
    except ValidationError as exc:
        raise SessionScriptError(f"Session script schema validation failed: {exc}") from exc


def build_session_engine(script: SessionScript, catalog: PresetCatalog) -> MaskEngine:
    return create_engine(
        catalog,
        preset=script.preset,
        pattern=script.pattern,
        value=script.value,
        placeholder_char=script.placeholder_char,
        revealing_mask=script.revealing_mask,
    )


def run_session(script: SessionScript, catalog: PresetCatalog | None = None) -> SessionReport:
    """Apply every step of ``script`` in order and report the state after each."""

    engine = build_session_engine(script, catalog or load_presets())
    initial_value = engine.get_value()

    results: list[StepResult] = []
    for index, step in enumerate(script.steps):
        changed = apply_step(engine, step)
        if not changed:
            logger.debug("step %d (%s) rejected at %s", index, step.op, engine.selection)
        results.append(
            StepResult(
                index=index,
                op=step.op,
                changed=changed,
                value=engine.get_value(),
                raw_value=engine.get_raw_value(),
                selection=_selection_model(engine.selection),
            )
        )

    changed_count = sum(1 for result in results if result.changed)
    report = SessionReport(
        pattern=engine.pattern.source,
        empty_value=engine.empty_value,
        initial_value=initial_value,
        final_value=engine.get_value(),
        final_raw_value=engine.get_raw_value(),
        selection=_selection_model(engine.selection),
        steps=results,
        changed_count=changed_count,
        rejected_count=len(results) - changed_count,
    )
    logger.info(
        "replayed %d steps on %r: changed=%d rejected=%d",
        len(results),
        report.pattern,
        report.changed_count,
        report.rejected_count,
    )
    return report


def apply_step(engine: MaskEngine, step: Step) -> bool:
    """Apply one script step. Returns True when engine state changed."""

    if isinstance(step, InputStep):
        return engine.input(step.char)
    if isinstance(step, TypeStep):
        outcomes = [engine.input(char) for char in step.text]
        return any(outcomes)
    if isinstance(step, BackspaceStep):
        return engine.backspace()
    if isinstance(step, PasteStep):
        return engine.paste(step.text)
    if isinstance(step, UndoStep):
        return engine.undo()
    if isinstance(step, RedoStep):
        return engine.redo()
    if isinstance(step, SelectStep):
        before = engine.selection
        end = step.start if step.end is None else step.end
        engine.set_selection(Selection(step.start, end))
        return engine.selection != before
    if isinstance(step, SetValueStep):
        before_value = engine.get_value()
        engine.set_value(step.value)
        return engine.get_value() != before_value
    if isinstance(step, SetPatternStep):
        engine.set_pattern(step.pattern, value=step.value, revealing_mask=step.revealing_mask)
        return True
    raise ValueError(f"Unsupported step: {step!r}")


def _selection_model(selection: Selection) -> SelectionModel:
    return SelectionModel(start=selection.start, end=selection.end)
