"""Format character vocabulary used to compile mask patterns."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

ESCAPE_CHAR = "\\"
DEFAULT_PLACEHOLDER_CHAR = "_"

DIGIT_RE = re.compile(r"[0-9]")
LETTER_RE = re.compile(r"[A-Za-z]")
ALPHANUMERIC_RE = re.compile(r"[0-9A-Za-z]")


@dataclass(frozen=True)
class FormatCharacter:
    """Validator plus optional transform bound to one pattern token."""

    name: str
    validate: Callable[[str], bool]
    transform: Callable[[str], str] | None = None

    def apply(self, char: str) -> str:
        return self.transform(char) if self.transform is not None else char


def regex_validator(expression: re.Pattern[str]) -> Callable[[str], bool]:
    """Build a validator accepting exactly one character matching ``expression``."""

    def _validate(char: str) -> bool:
        return len(char) == 1 and expression.fullmatch(char) is not None

    return _validate


def _upper(char: str) -> str:
    return char.upper()


_DIGIT = FormatCharacter(name="digit", validate=regex_validator(DIGIT_RE))


DEFAULT_FORMAT_CHARACTERS: Mapping[str, FormatCharacter] = MappingProxyType(
    {
        "0": _DIGIT,
        "1": _DIGIT,
        "a": FormatCharacter(name="letter", validate=regex_validator(LETTER_RE)),
        "*": FormatCharacter(name="alphanumeric", validate=regex_validator(ALPHANUMERIC_RE)),
        "A": FormatCharacter(
            name="uppercase_letter",
            validate=regex_validator(LETTER_RE),
            transform=_upper,
        ),
        "#": FormatCharacter(
            name="uppercase_alphanumeric",
            validate=regex_validator(ALPHANUMERIC_RE),
            transform=_upper,
        ),
    }
)


def merge_format_characters(
    overrides: Mapping[str, FormatCharacter | None] | None = None,
    *,
    base: Mapping[str, FormatCharacter] = DEFAULT_FORMAT_CHARACTERS,
) -> dict[str, FormatCharacter]:
    """Merge token overrides into ``base``.

    A ``None`` value removes the token; any other value adds or replaces it.
    Tokens must be exactly one character and cannot be the escape character.
    """

    merged = dict(base)
    if not overrides:
        return merged

    for token, definition in overrides.items():
        if len(token) != 1 or token == ESCAPE_CHAR:
            raise ValueError(f"Invalid format character token: {token!r}")
        if definition is None:
            merged.pop(token, None)
        else:
            merged[token] = definition
    return merged
