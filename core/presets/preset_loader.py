"""Preset catalog loading utilities."""

from __future__ import annotations

from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from core.presets.models import PresetCatalog


def default_presets_path() -> Path:
    return Path(__file__).with_name("presets.yaml")


def load_presets(path: Path | None = None) -> PresetCatalog:
    """Load and validate the preset catalog from YAML."""

    presets_path = path or default_presets_path()

    try:
        raw = yaml.safe_load(presets_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Presets file not found: {presets_path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in presets file: {presets_path}") from exc

    if not isinstance(raw, dict):
        raise ValueError(f"Presets file must contain a mapping: {presets_path}")

    normalized = _normalize_shorthand_presets(raw)

    try:
        return PresetCatalog.model_validate(normalized)
    except ValidationError as exc:
        raise ValueError(f"Invalid presets schema: {presets_path}: {exc}") from exc


def _normalize_shorthand_presets(raw: dict[object, object]) -> dict[object, object]:
    """Expand ``name: "00/00"`` shorthand into ``name: {pattern: "00/00"}``."""

    normalized = dict(raw)
    presets = normalized.get("presets")
    if not isinstance(presets, dict):
        return normalized

    normalized["presets"] = {
        name: {"pattern": value} if isinstance(value, str) else value
        for name, value in presets.items()
    }
    return normalized
