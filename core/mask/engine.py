"""Stateful input mask engine.

The engine owns a fixed-length buffer (one character per pattern position),
the current selection and an undo/redo history. Edit operations return
``True`` when they changed state and ``False`` when the edit was rejected or
had nothing to do; they never raise for user-level rejections.
"""

from __future__ import annotations

from collections.abc import Mapping

from core.mask.format_characters import (
    DEFAULT_PLACEHOLDER_CHAR,
    FormatCharacter,
    merge_format_characters,
)
from core.mask.models import EditOp, EngineSnapshot, HistoryEntry, Selection
from core.mask.pattern import Pattern, compile_pattern
from core.utils.errors import InvalidPlaceholderError, MaskInvariantError


class MaskEngine:
    """Masking state machine for a single input field."""

    def __init__(
        self,
        pattern: str,
        *,
        value: str | None = "",
        format_characters: Mapping[str, FormatCharacter | None] | None = None,
        placeholder_char: str = DEFAULT_PLACEHOLDER_CHAR,
        revealing_mask: bool = False,
        selection: Selection | None = None,
    ) -> None:
        if not isinstance(placeholder_char, str) or len(placeholder_char) > 1:
            raise InvalidPlaceholderError(placeholder_char)

        self._placeholder_char = placeholder_char
        self._format_characters = merge_format_characters(format_characters)
        self._revealing_mask = revealing_mask
        self._buffer: list[str] = []
        self._selection = Selection()
        self._history: list[HistoryEntry] = []
        self._history_index: int | None = None
        self._last_op: EditOp | None = None
        self._last_selection: Selection | None = None
        self.empty_value = ""

        self.set_pattern(pattern, value=value, selection=selection)

    @property
    def pattern(self) -> Pattern:
        return self._pattern

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def buffer(self) -> tuple[str, ...]:
        return tuple(self._buffer)

    @property
    def format_characters(self) -> Mapping[str, FormatCharacter]:
        return dict(self._format_characters)

    @property
    def max_length(self) -> int:
        return self._pattern.length

    @property
    def can_undo(self) -> bool:
        return bool(self._history) and self._history_index != 0

    @property
    def can_redo(self) -> bool:
        return bool(self._history) and self._history_index is not None

    def set_pattern(
        self,
        source: str,
        *,
        value: str | None = "",
        selection: Selection | None = None,
        revealing_mask: bool | None = None,
    ) -> None:
        """Replace the pattern, re-derive the buffer from ``value`` and reset history."""

        mode = self._revealing_mask if revealing_mask is None else revealing_mask
        pattern = compile_pattern(source, self._format_characters, self._placeholder_char, mode)

        self._pattern = pattern
        self._revealing_mask = mode
        self.set_value(value)
        self.empty_value = pattern.empty_value()
        self._selection = self._clamp(selection or Selection())
        self._reset_history()

    def set_value(self, value: str | None) -> None:
        """Replace the buffer from a raw value. Selection and history are untouched."""

        self._buffer = self._pattern.format_value(list(value or ""))

    def get_value(self) -> str:
        if self._pattern.revealing_mask:
            self._buffer = self._pattern.format_value(list(self.get_raw_value()))
        return "".join(self._buffer)

    def get_raw_value(self) -> str:
        pattern = self._pattern
        return "".join(
            char for index, char in enumerate(self._buffer) if pattern.is_editable_index(index)
        )

    def is_empty(self) -> bool:
        return self.get_value() == self.empty_value

    def input(self, char: str) -> bool:
        """Apply one typed character at the current cursor or over the selection.

        Anything but a single character is rejected before validation.
        """

        pattern = self._pattern
        selection = self._selection
        if len(char) != 1:
            return False
        if selection.collapsed and selection.start == pattern.length:
            return False

        # Input before the first editable slot, or on a literal, lands on the
        # next editable slot.
        input_index = pattern.find_editable_index_from(
            max(selection.start, pattern.first_editable_index)
        )
        if input_index is None:
            return False
        if not pattern.is_editable_index(input_index):
            raise MaskInvariantError(f"input index {input_index} is not editable")
        if not pattern.is_valid_at_index(char, input_index):
            return False

        value_before = self.get_value()
        buffer = self._buffer
        buffer[input_index] = pattern.transform(char, input_index)

        for index in range(selection.end - 1, input_index, -1):
            if pattern.is_editable_index(index):
                buffer[index] = pattern.placeholder_char

        self._buffer = pattern.format_value(buffer)

        cursor = input_index + 1
        while cursor < pattern.length and not pattern.is_editable_index(cursor):
            cursor += 1
        self._selection = Selection(cursor, cursor)

        self._record(selection, value_before, "input")
        return True

    def backspace(self) -> bool:
        """Delete the character before the cursor, or the selected range."""

        pattern = self._pattern
        selection = self._selection
        if selection.start == 0 and selection.end == 0:
            return False
        if selection.collapsed and selection.start <= pattern.first_editable_index:
            return False

        value_before = self.get_value()
        start = selection.start
        if selection.collapsed or not pattern.is_editable_index(start):
            start = pattern.find_editable_index_before(start)

        if pattern.revealing_mask:
            for index in range(start, selection.end):
                if pattern.is_editable_index(index):
                    self._buffer[index] = pattern.placeholder_char
        else:
            self._buffer = pattern.format_value(self._buffer[:start])

        self._selection = Selection(start, start)
        self._record(selection, value_before, "backspace")
        return True

    def paste(self, text: str) -> bool:
        """Apply ``text`` as a run of typed characters, all or nothing.

        Literal characters of the pattern may appear in ``text``; any other
        rejected character restores the state from before the paste. A paste
        that writes no character (e.g. with the cursor past the last editable
        slot) also returns False.
        """

        if not text:
            return False

        pattern = self._pattern
        snapshot = self.snapshot()
        selection = self._selection

        if selection.start < pattern.first_editable_index:
            prefix = "".join(pattern.positions[selection.start : pattern.first_editable_index])
            if not text.startswith(prefix):
                return False
            text = text[len(prefix) :]
            self._selection = Selection(
                pattern.first_editable_index,
                max(selection.end, pattern.first_editable_index),
            )

        applied = False
        for char in text:
            if self._selection.start > pattern.last_editable_index:
                break
            if self.input(char):
                applied = True
                continue

            previous = self._selection.start - 1
            if (
                previous >= 0
                and not pattern.is_editable_index(previous)
                and pattern.positions[previous] == char
            ):
                continue

            self._restore(snapshot)
            return False

        if not applied:
            self._restore(snapshot)
        return applied

    def undo(self) -> bool:
        if not self._history or self._history_index == 0:
            return False

        index = self._history_index
        if index is None:
            index = self._begin_undo()
            if index == 0:
                # The only entry already matches the live state.
                return False

        self._history_index = index - 1
        self._apply_entry(self._history[self._history_index])
        return True

    def redo(self) -> bool:
        if not self._history or self._history_index is None:
            return False

        self._history_index += 1
        entry = self._history[self._history_index]
        if self._history_index == len(self._history) - 1:
            self._history_index = None
            if entry.start_undo:
                self._history.pop()

        self._apply_entry(entry)
        return True

    def set_selection(self, selection: Selection) -> bool:
        """Adopt a selection reported by the caller.

        A collapsed cursor snaps back to the end of the entered content (or to
        the first editable slot). Ranges are kept as given. Returns True when
        the adopted selection differs from the requested one.
        """

        adopted = self._clamp(selection)
        if adopted.collapsed:
            pattern = self._pattern
            index = max(adopted.start, pattern.first_editable_index)
            while index > pattern.first_editable_index:
                previous = index - 1
                if (
                    pattern.is_editable_index(previous)
                    and self._buffer[previous] != pattern.placeholder_char
                ):
                    break
                index -= 1
            adopted = Selection(index, index)

        self._selection = adopted
        return adopted != selection

    def snapshot(self) -> EngineSnapshot:
        return EngineSnapshot(
            buffer=tuple(self._buffer),
            selection=self._selection,
            history=tuple(self._history),
            history_index=self._history_index,
            last_op=self._last_op,
            last_selection=self._last_selection,
        )

    def _restore(self, snapshot: EngineSnapshot) -> None:
        self._buffer = list(snapshot.buffer)
        self._selection = snapshot.selection
        self._history = list(snapshot.history)
        self._history_index = snapshot.history_index
        self._last_op = snapshot.last_op
        self._last_selection = snapshot.last_selection

    def _record(self, selection_before: Selection, value_before: str, op: EditOp) -> None:
        was_undoing = self._history_index is not None
        if was_undoing:
            # New edits after undoing discard the redo tail.
            del self._history[self._history_index :]
            self._history_index = None

        if (
            was_undoing
            or self._last_op != op
            or not selection_before.collapsed
            or (
                self._last_selection is not None
                and selection_before.start != self._last_selection.start
            )
        ):
            self._history.append(
                HistoryEntry(value=value_before, selection=selection_before, last_op=self._last_op)
            )

        self._last_op = op
        self._last_selection = self._selection

    def _begin_undo(self) -> int:
        """Bridge the live state into history and return its index."""

        value = self.get_value()
        top = self._history[-1]
        if top.value != value or top.selection != self._selection:
            self._history.append(
                HistoryEntry(
                    value=value,
                    selection=self._selection,
                    last_op=self._last_op,
                    start_undo=True,
                )
            )
        return len(self._history) - 1

    def _apply_entry(self, entry: HistoryEntry) -> None:
        self._buffer = list(entry.value)
        self._selection = entry.selection
        self._last_op = entry.last_op

    def _reset_history(self) -> None:
        self._history = []
        self._history_index = None
        self._last_op = None
        self._last_selection = self._selection

    def _clamp(self, selection: Selection) -> Selection:
        length = self._pattern.length
        start = min(max(selection.start, 0), length)
        end = min(max(selection.end, start), length)
        return Selection(start, end)
