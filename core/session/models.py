"""Edit session script and report models."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _StepBase(BaseModel):
    model_config = ConfigDict(extra="forbid")


class InputStep(_StepBase):
    op: Literal["input"]
    char: str = Field(min_length=1, max_length=1)


class TypeStep(_StepBase):
    """Shorthand for one ``input`` per character of ``text``."""

    op: Literal["type"]
    text: str


class BackspaceStep(_StepBase):
    op: Literal["backspace"]


class PasteStep(_StepBase):
    op: Literal["paste"]
    text: str


class UndoStep(_StepBase):
    op: Literal["undo"]


class RedoStep(_StepBase):
    op: Literal["redo"]


class SelectStep(_StepBase):
    op: Literal["select"]
    start: int = Field(ge=0)
    end: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_range(self) -> SelectStep:
        if self.end is not None and self.end < self.start:
            raise ValueError("select end must not be before start")
        return self


class SetValueStep(_StepBase):
    op: Literal["set_value"]
    value: str = ""


class SetPatternStep(_StepBase):
    op: Literal["set_pattern"]
    pattern: str
    value: str = ""
    revealing_mask: bool | None = None


Step = Annotated[
    InputStep
    | TypeStep
    | BackspaceStep
    | PasteStep
    | UndoStep
    | RedoStep
    | SelectStep
    | SetValueStep
    | SetPatternStep,
    Field(discriminator="op"),
]


class SessionScript(BaseModel):
    """Declarative edit session replayed against a fresh engine."""

    model_config = ConfigDict(extra="forbid")

    pattern: str | None = None
    preset: str | None = None
    value: str = ""
    placeholder_char: str | None = Field(default=None, max_length=1)
    revealing_mask: bool | None = None
    steps: list[Step] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_mask_source(self) -> SessionScript:
        if (self.pattern is None) == (self.preset is None):
            raise ValueError("exactly one of pattern or preset is required")
        return self


class SelectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    start: int
    end: int


class StepResult(BaseModel):
    """Engine state after one replayed step."""

    model_config = ConfigDict(extra="forbid")

    index: int
    op: str
    changed: bool
    value: str
    raw_value: str
    selection: SelectionModel


class SessionReport(BaseModel):
    """Replay output.

    Rules:
    - changed_count + rejected_count == len(steps)
    - final_value equals the value of the last step (or initial_value)
    """

    model_config = ConfigDict(extra="forbid")

    pattern: str
    empty_value: str
    initial_value: str
    final_value: str
    final_raw_value: str
    selection: SelectionModel
    steps: list[StepResult] = Field(default_factory=list)
    changed_count: int = 0
    rejected_count: int = 0
