from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from core.presets.preset_loader import load_presets
from core.session.models import SessionScript
from core.session.replay import load_session_script, parse_session_script, run_session
from core.utils.errors import PresetError, SessionScriptError


def _script(**payload: object) -> SessionScript:
    return SessionScript.model_validate(payload)


def test_replay_reports_each_step() -> None:
    script = _script(
        pattern="00/00/0000",
        steps=[
            {"op": "type", "text": "1122"},
            {"op": "input", "char": "x"},
            {"op": "backspace"},
            {"op": "undo"},
            {"op": "redo"},
            {"op": "redo"},
            {"op": "select", "start": 0},
            {"op": "paste", "text": "0907"},
        ],
    )

    report = run_session(script, load_presets())

    assert [step.changed for step in report.steps] == [
        True,
        False,
        True,
        True,
        True,
        False,
        True,
        True,
    ]
    assert [step.value for step in report.steps][:5] == [
        "11/22/____",
        "11/22/____",
        "11/2_/____",
        "11/22/____",
        "11/2_/____",
    ]
    assert report.initial_value == "__/__/____"
    assert report.empty_value == "__/__/____"
    assert report.final_value == "09/07/____"
    assert report.final_raw_value == "0907____"
    assert report.selection.model_dump() == {"start": 6, "end": 6}
    assert report.changed_count == 6
    assert report.rejected_count == 2
    assert report.changed_count + report.rejected_count == len(report.steps)


def test_replay_with_preset() -> None:
    script = _script(preset="us_phone", steps=[{"op": "paste", "text": "(5551234567"}])

    report = run_session(script, load_presets())

    assert report.pattern == "(000) 000-0000"
    assert report.final_value == "(555) 123-4567"


def test_replay_unknown_preset_raises() -> None:
    with pytest.raises(PresetError):
        run_session(_script(preset="nope"), load_presets())


def test_set_value_step_reports_change_only_when_value_differs() -> None:
    script = _script(
        pattern="00/00",
        value="12",
        steps=[
            {"op": "set_value", "value": "12"},
            {"op": "set_value", "value": "34"},
        ],
    )

    report = run_session(script, load_presets())

    assert [step.changed for step in report.steps] == [False, True]
    assert report.final_value == "34/__"


def test_set_pattern_step_switches_mask() -> None:
    script = _script(
        pattern="0000 0000 0000 0000",
        value="4000000000000111",
        steps=[{"op": "set_pattern", "pattern": "0000 000000 00000", "value": "4000000000000111"}],
    )

    report = run_session(script, load_presets())

    assert report.initial_value == "4000 0000 0000 0111"
    assert report.pattern == "0000 000000 00000"
    assert report.final_value == "4000 000000 00011"
    assert report.steps[0].changed is True


def test_select_step_reports_snapped_selection() -> None:
    script = _script(pattern="00/00", value="1", steps=[{"op": "select", "start": 4}])

    report = run_session(script)

    assert report.steps[0].selection.model_dump() == {"start": 1, "end": 1}


def test_replay_logs_summary(caplog: pytest.LogCaptureFixture) -> None:
    script = _script(pattern="00", steps=[{"op": "input", "char": "1"}, {"op": "undo"}])

    with caplog.at_level(logging.INFO, logger="maskops.session"):
        run_session(script, load_presets())

    messages = [record.getMessage() for record in caplog.records if record.name == "maskops.session"]
    assert any("replayed 2 steps" in message for message in messages)


def test_load_session_script_json(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    path.write_text(
        json.dumps({"pattern": "00/00", "steps": [{"op": "type", "text": "12"}]}),
        encoding="utf-8",
    )

    script = load_session_script(path)

    assert script.pattern == "00/00"
    assert script.steps[0].op == "type"


def test_load_session_script_yaml(tmp_path: Path) -> None:
    path = tmp_path / "session.yaml"
    path.write_text(
        "preset: date\nsteps:\n  - op: paste\n    text: '11221990'\n  - op: backspace\n",
        encoding="utf-8",
    )

    report = run_session(load_session_script(path), load_presets())

    assert report.final_value == "11/22/199_"


def test_load_session_script_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SessionScriptError, match="not found"):
        load_session_script(tmp_path / "missing.json")


def test_load_session_script_invalid_syntax(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(SessionScriptError, match="Invalid session script syntax"):
        load_session_script(path)


@pytest.mark.parametrize(
    "raw",
    [
        {"steps": []},
        {"pattern": "00", "preset": "date"},
        {"pattern": "00", "steps": [{"op": "jump"}]},
        {"pattern": "00", "steps": [{"op": "input", "char": "12"}]},
        {"pattern": "00", "steps": [{"op": "select", "start": 3, "end": 1}]},
    ],
)
def test_parse_session_script_rejects_invalid_payloads(raw: dict[str, object]) -> None:
    with pytest.raises(SessionScriptError, match="schema validation failed"):
        parse_session_script(raw)


def test_parse_session_script_requires_object() -> None:
    with pytest.raises(SessionScriptError, match="must be an object"):
        parse_session_script([{"op": "undo"}])


def test_paste_that_writes_nothing_counts_as_rejected() -> None:
    script = _script(
        pattern="00",
        value="12",
        steps=[{"op": "select", "start": 2}, {"op": "paste", "text": "3"}],
    )

    report = run_session(script, load_presets())

    assert [step.changed for step in report.steps] == [True, False]
    assert report.rejected_count == 1
    assert report.final_value == "12"
