"""Custom exceptions for core logic."""

from __future__ import annotations

from typing import Literal

PatternErrorReason = Literal["no_editable_position", "dangling_escape"]


class MaskError(Exception):
    """Base class for all mask engine errors."""


class InvalidPatternError(MaskError, ValueError):
    """Raised when a pattern source cannot be compiled."""

    def __init__(self, message: str, *, source: str, reason: PatternErrorReason) -> None:
        super().__init__(message)
        self.source = source
        self.reason = reason


class NoEditablePositionError(InvalidPatternError):
    """Raised when a pattern contains no format character tokens."""

    def __init__(self, source: str) -> None:
        super().__init__(
            f'Pattern "{source}" does not contain any editable characters',
            source=source,
            reason="no_editable_position",
        )


class DanglingEscapeError(InvalidPatternError):
    """Raised when a pattern ends with a raw escape character."""

    def __init__(self, source: str, escape_char: str) -> None:
        super().__init__(
            f'Pattern "{source}" ends with a raw {escape_char}',
            source=source,
            reason="dangling_escape",
        )


class InvalidPlaceholderError(MaskError, ValueError):
    """Raised when the placeholder is not a single character or an empty string."""

    def __init__(self, placeholder: object) -> None:
        super().__init__(
            "placeholder_char should be a single character or an empty string, "
            f"got {placeholder!r}"
        )
        self.placeholder = placeholder


class MaskInvariantError(MaskError, RuntimeError):
    """Raised when engine state breaks an internal invariant."""


class PresetError(MaskError, ValueError):
    """Raised when a preset name cannot be resolved."""

    def __init__(self, message: str, *, name: str, available: list[str]) -> None:
        super().__init__(message)
        self.name = name
        self.available = available


class SessionScriptError(MaskError, ValueError):
    """Raised when an edit session script cannot be loaded or validated."""
