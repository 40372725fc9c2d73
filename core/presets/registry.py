"""Preset resolution and engine construction."""

from __future__ import annotations

import re
from collections.abc import Callable

from core.mask.engine import MaskEngine
from core.mask.format_characters import FormatCharacter, regex_validator
from core.presets.models import FormatCharacterConfig, MaskPreset, PresetCatalog
from core.utils.errors import PresetError

_TRANSFORMS: dict[str, Callable[[str], str] | None] = {
    "none": None,
    "upper": str.upper,
    "lower": str.lower,
}


def build_format_characters(catalog: PresetCatalog) -> dict[str, FormatCharacter | None]:
    """Turn catalog format character configs into engine overrides."""

    overrides: dict[str, FormatCharacter | None] = {}
    for token, config in catalog.format_characters.items():
        overrides[token] = None if config is None else _build_format_character(token, config)
    return overrides


def resolve_preset(catalog: PresetCatalog, name: str) -> MaskPreset:
    try:
        return catalog.presets[name]
    except KeyError as exc:
        raise PresetError(
            f"Unknown preset: {name}", name=name, available=list_presets(catalog)
        ) from exc


def list_presets(catalog: PresetCatalog) -> list[str]:
    """Return preset names in stable order."""

    return sorted(catalog.presets)


def create_engine(
    catalog: PresetCatalog,
    *,
    preset: str | None = None,
    pattern: str | None = None,
    value: str | None = "",
    placeholder_char: str | None = None,
    revealing_mask: bool | None = None,
) -> MaskEngine:
    """Build an engine from a preset name or an explicit pattern.

    Explicit ``placeholder_char``/``revealing_mask`` override preset settings.
    The catalog's custom format characters apply in both cases.
    """

    if (preset is None) == (pattern is None):
        raise ValueError("Exactly one of preset or pattern must be given")

    if preset is not None:
        selected = resolve_preset(catalog, preset)
        source = selected.pattern
        default_placeholder = selected.placeholder_char
        default_revealing = selected.revealing_mask
    else:
        source = pattern or ""
        default_placeholder = "_"
        default_revealing = False

    return MaskEngine(
        source,
        value=value,
        format_characters=build_format_characters(catalog),
        placeholder_char=default_placeholder if placeholder_char is None else placeholder_char,
        revealing_mask=default_revealing if revealing_mask is None else revealing_mask,
    )


def _build_format_character(token: str, config: FormatCharacterConfig) -> FormatCharacter:
    return FormatCharacter(
        name=config.name or token,
        validate=regex_validator(re.compile(config.pattern)),
        transform=_TRANSFORMS[config.transform],
    )
