"""Pattern compiler for input masks.

A pattern source such as ``"(000) 000-0000"`` is scanned once, left to right:

- the escape character (``\\``) turns the following character into a literal;
- a character found in the format character vocabulary becomes an editable
  position bound to that token's validator/transform;
- everything else is a literal position holding itself.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from core.mask.format_characters import (
    DEFAULT_FORMAT_CHARACTERS,
    DEFAULT_PLACEHOLDER_CHAR,
    ESCAPE_CHAR,
    FormatCharacter,
)
from core.utils.errors import DanglingEscapeError, NoEditablePositionError


@dataclass(frozen=True)
class Pattern:
    """Compiled mask pattern. Build instances with ``compile_pattern``."""

    source: str
    positions: tuple[str, ...]
    formats: tuple[FormatCharacter | None, ...]
    editable_indices: frozenset[int]
    first_editable_index: int
    last_editable_index: int
    placeholder_char: str = DEFAULT_PLACEHOLDER_CHAR
    revealing_mask: bool = False

    @property
    def length(self) -> int:
        return len(self.positions)

    def is_editable_index(self, index: int) -> bool:
        return index in self.editable_indices

    def is_valid_at_index(self, char: str, index: int) -> bool:
        fmt = self.formats[index]
        return fmt is not None and fmt.validate(char)

    def transform(self, char: str, index: int) -> str:
        fmt = self.formats[index]
        if fmt is None:
            return char
        return fmt.apply(char)

    def format_value(self, candidates: Sequence[str]) -> list[str]:
        """Lay ``candidates`` out over the pattern, one slot per position.

        Candidates are consumed left to right. A literal in the candidates that
        matches the literal at the current position is absorbed. The first
        invalid or missing candidate at an editable slot ends the fill for a
        non-revealing mask (the rest becomes placeholders and literals); a
        revealing mask placeholder-fills that slot and keeps going.
        """

        buffer: list[str] = []
        candidate_index = 0
        filling = True
        total = len(candidates)

        for index, literal in enumerate(self.positions):
            if index not in self.editable_indices:
                buffer.append(literal)
                if filling and candidate_index < total and candidates[candidate_index] == literal:
                    candidate_index += 1
                continue

            if not filling:
                buffer.append(self.placeholder_char)
                continue

            candidate = candidates[candidate_index] if candidate_index < total else None
            if candidate is not None and self.is_valid_at_index(candidate, index):
                buffer.append(self.transform(candidate, index))
                candidate_index += 1
                continue

            buffer.append(self.placeholder_char)
            if self.revealing_mask:
                candidate_index += 1
            else:
                filling = False

        return buffer

    def empty_value(self) -> str:
        return "".join(self.format_value([]))

    def find_editable_index_before(self, index: int) -> int:
        """Return the nearest editable index strictly before ``index``, or 0."""

        for candidate in range(index - 1, -1, -1):
            if candidate in self.editable_indices:
                return candidate
        return 0

    def find_editable_index_from(self, index: int) -> int | None:
        """Return the first editable index at or after ``index``."""

        for candidate in range(max(index, 0), self.length):
            if candidate in self.editable_indices:
                return candidate
        return None


def compile_pattern(
    source: str,
    format_characters: Mapping[str, FormatCharacter] | None = None,
    placeholder_char: str = DEFAULT_PLACEHOLDER_CHAR,
    revealing_mask: bool = False,
) -> Pattern:
    """Compile ``source`` into a ``Pattern``.

    Raises:
        DanglingEscapeError: the source ends with an unescaped escape character.
        NoEditablePositionError: no source character is a format token.
    """

    vocabulary = DEFAULT_FORMAT_CHARACTERS if format_characters is None else format_characters
    positions: list[str] = []
    formats: list[FormatCharacter | None] = []
    editable: set[int] = set()
    first_editable: int | None = None
    last_editable: int | None = None

    index = 0
    while index < len(source):
        char = source[index]
        fmt: FormatCharacter | None = None
        if char == ESCAPE_CHAR:
            if index == len(source) - 1:
                raise DanglingEscapeError(source, ESCAPE_CHAR)
            index += 1
            char = source[index]
        elif char in vocabulary:
            fmt = vocabulary[char]
            position = len(positions)
            if first_editable is None:
                first_editable = position
            last_editable = position
            editable.add(position)

        positions.append(char)
        formats.append(fmt)
        index += 1

    if first_editable is None or last_editable is None:
        raise NoEditablePositionError(source)

    return Pattern(
        source=source,
        positions=tuple(positions),
        formats=tuple(formats),
        editable_indices=frozenset(editable),
        first_editable_index=first_editable,
        last_editable_index=last_editable,
        placeholder_char=placeholder_char or DEFAULT_PLACEHOLDER_CHAR,
        revealing_mask=revealing_mask,
    )
