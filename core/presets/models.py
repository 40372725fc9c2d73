"""Data models for the mask preset catalog."""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.mask.format_characters import ESCAPE_CHAR


class FormatCharacterConfig(BaseModel):
    """Custom format character defined by a single-character regex."""

    model_config = ConfigDict(extra="forbid")

    pattern: str
    transform: Literal["none", "upper", "lower"] = "none"
    name: str | None = None

    @field_validator("pattern")
    @classmethod
    def _check_pattern(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"invalid regex {value!r}: {exc}") from exc
        return value


class MaskPreset(BaseModel):
    """Named mask configuration."""

    model_config = ConfigDict(extra="forbid")

    pattern: str = Field(min_length=1)
    placeholder_char: str = Field(default="_", max_length=1)
    revealing_mask: bool = False
    description: str | None = None


class PresetCatalog(BaseModel):
    """Preset catalog loaded from YAML.

    Rules:
    - format_characters keys are single-character tokens (not the escape char)
    - a null format character removes that token from the default vocabulary
    """

    model_config = ConfigDict(extra="forbid")

    version: int = 1
    format_characters: dict[str, FormatCharacterConfig | None] = Field(default_factory=dict)
    presets: dict[str, MaskPreset] = Field(default_factory=dict)

    @field_validator("format_characters")
    @classmethod
    def _check_tokens(
        cls, value: dict[str, FormatCharacterConfig | None]
    ) -> dict[str, FormatCharacterConfig | None]:
        for token in value:
            if len(token) != 1 or token == ESCAPE_CHAR:
                raise ValueError(f"format character token must be one character: {token!r}")
        return value
