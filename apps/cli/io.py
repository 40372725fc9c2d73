"""CLI I/O helpers for atomic output writing."""

from __future__ import annotations

import json
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.session.models import SessionReport


@dataclass(frozen=True)
class OutputPaths:
    """Fixed output artifact paths for one replay."""

    session_report: Path


def build_output_paths(out_dir: Path) -> OutputPaths:
    """Build fixed output file paths under out_dir."""

    return OutputPaths(session_report=out_dir / "out.session_report.json")


def existing_output_files(paths: OutputPaths) -> list[Path]:
    """Return existing output files among fixed artifact paths."""

    return [path for path in (paths.session_report,) if path.exists()]


def write_session_report_atomic(paths: OutputPaths, report: SessionReport) -> None:
    """Write the session report atomically using a temporary file + replace."""

    paths.session_report.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_json(paths.session_report, report.model_dump(mode="json"))


def write_fallback_json_atomic(
    paths: OutputPaths,
    *,
    error_type: str,
    error_message: str,
    stage: str,
) -> None:
    """Write a fallback report carrying the error metadata."""

    payload = {
        "steps": [],
        "changed_count": 0,
        "rejected_count": 0,
        "error": {
            "error_type": error_type,
            "error_message": error_message,
            "stage": stage,
        },
    }
    paths.session_report.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_json(paths.session_report, payload)


def _atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        prefix=f"{path.name}.",
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        json.dump(payload, tmp, ensure_ascii=False, sort_keys=True, separators=(",", ":"))

    tmp_path.replace(path)
