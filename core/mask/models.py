"""Value types shared by the mask engine and its callers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

EditOp = Literal["input", "backspace"]


@dataclass(frozen=True)
class Selection:
    """Cursor or selected range as offsets into the masked value."""

    start: int = 0
    end: int = 0

    @property
    def collapsed(self) -> bool:
        return self.start == self.end


@dataclass(frozen=True)
class HistoryEntry:
    """Undo/redo snapshot taken before an edit (or when undo starts)."""

    value: str
    selection: Selection
    last_op: EditOp | None
    start_undo: bool = False


@dataclass(frozen=True)
class EngineSnapshot:
    """Complete engine state, used for paste rollback and equality checks."""

    buffer: tuple[str, ...]
    selection: Selection
    history: tuple[HistoryEntry, ...]
    history_index: int | None
    last_op: EditOp | None
    last_selection: Selection | None
