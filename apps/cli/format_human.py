"""Human-readable session summary rendering for CLI output."""

from __future__ import annotations

from core.session.models import SessionReport, StepResult


def render_session_summary(report: SessionReport, *, show_steps: bool = True) -> str:
    """Render a one-screen summary of a replayed edit session."""

    lines: list[str] = []
    lines.append("session_summary:")
    lines.append(f"pattern={report.pattern!r} empty_value={report.empty_value!r}")
    lines.append(f"initial_value={report.initial_value!r}")
    lines.append(
        f"final_value={report.final_value!r} raw_value={report.final_raw_value!r} "
        f"selection={report.selection.start}..{report.selection.end}"
    )
    lines.append(
        f"steps={len(report.steps)} changed={report.changed_count} "
        f"rejected={report.rejected_count}"
    )

    if show_steps and report.steps:
        lines.append("steps:")
        lines.extend(_render_step(step) for step in report.steps)

    return "\n".join(lines)


def _render_step(step: StepResult) -> str:
    marker = "+" if step.changed else "x"
    return (
        f"  [{marker}] {step.index:>3} {step.op:<11} {step.value!r} "
        f"@{step.selection.start}..{step.selection.end}"
    )
