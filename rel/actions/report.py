"""Presenting phase reports.

Two audiences: the CI log (``print_summary``) and the pull request comment
posted by the git provider integration (``render_markdown``). The poster
itself lives outside this package; it receives a ``Reporter``.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from rel.core.result import Err, Ok, Result
from rel.output.console import ConsoleProtocol, Style
from rel.platform.files import atomic_write_text

from .model import ActionResult, ActionStatus, DeclaredAction
from .orchestrator import PhaseReport

__all__ = [
    "MarkdownFileReporter",
    "ReportError",
    "Reporter",
    "print_summary",
    "render_markdown",
]

_STATUS_ICONS = {
    ActionStatus.SUCCESS: "✅",
    ActionStatus.FAILED: "❌",
    ActionStatus.SKIPPED: "⚪",
    ActionStatus.MANUAL: "✋",
}

_STATUS_STYLES = {
    ActionStatus.SUCCESS: Style.SUCCESS,
    ActionStatus.FAILED: Style.ERROR,
    ActionStatus.SKIPPED: Style.DIM,
    ActionStatus.MANUAL: Style.INFO,
}

# Long command output makes PR comments unreadable; keep the tail.
MAX_OUTPUT_CHARS = 3000


@dataclass(frozen=True, slots=True)
class ReportError:
    message: str
    path: Path | None = None


class Reporter(Protocol):
    def publish(self, reports: Sequence[PhaseReport]) -> Result[None, ReportError]: ...


def print_summary(report: PhaseReport, console: ConsoleProtocol) -> None:
    """Print every action of the phase in order, then the verdict."""
    console.header(f"Actions summary: {report.phase}")
    if not report.actions:
        console.print("no actions", Style.DIM)
        return
    for action in report.actions:
        result = action.result
        if result is None:
            continue
        line = f"{result.status.value:<8} {action.describe()}"
        if result.skipped_reason:
            line += f" - {result.skipped_reason}"
        allowed = result.is_failed and action.allow_failure
        if allowed:
            line += " (failure allowed)"
        console.print(line, Style.WARNING if allowed else _STATUS_STYLES[result.status])

    counts = ", ".join(f"{report.count(s)} {s.value}" for s in ActionStatus if report.count(s))
    if report.overall_failed:
        ids = ", ".join(a.id for a in report.blocking_failures)
        console.error(f"{report.phase}: failed ({counts}); blocking: {ids}")
    else:
        console.success(f"{report.phase}: passed ({counts})")


def _escape_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def _truncate(output: str) -> str:
    stripped = output.strip()
    if len(stripped) <= MAX_OUTPUT_CHARS:
        return stripped
    return "...\n" + stripped[-MAX_OUTPUT_CHARS:]


def _fence(text: str) -> str:
    """Backtick fence longer than any backtick run inside ``text``."""
    longest = max((len(run) for run in re.findall(r"`+", text)), default=0)
    return "`" * max(3, longest + 1)


def _action_cells(action: DeclaredAction, result: ActionResult) -> str:
    icon = _STATUS_ICONS[result.status]
    status = result.status.value
    if result.is_failed and action.allow_failure:
        status += " (allowed)"
    reason = _escape_cell(result.skipped_reason or "")
    label = _escape_cell(action.label)
    if action.pull_request is not None:
        pr = action.pull_request
        ref = f"[#{pr.id}]({pr.url})" if pr.url else f"#{pr.id}"
        label += f" ({ref})"
    return f"| {icon} | `{action.id}` | {label} | {status} | {reason} |"


def _render_phase(report: PhaseReport) -> list[str]:
    verdict = "❌ failed" if report.overall_failed else "✅ passed"
    lines = [f"### {report.phase.kind.value.capitalize()}-deployment actions: {verdict}", ""]
    if report.environment_identity:
        lines += [f"Target: `{report.environment_identity}`", ""]
    if not report.actions:
        return lines + ["_No actions for this phase._", ""]

    lines += ["| | Id | Label | Status | Reason |", "|---|---|---|---|---|"]
    lines += [_action_cells(a, a.result) for a in report.actions if a.result is not None]
    lines.append("")

    for action in report.actions:
        result = action.result
        if result is None or not result.output or not result.output.strip():
            continue
        title = "Instructions" if result.status == ActionStatus.MANUAL else "Output"
        body = _truncate(result.output)
        fence = _fence(body)
        lines += [
            "<details>",
            f"<summary>{title}: {action.id}</summary>",
            "",
            fence,
            body,
            fence,
            "</details>",
            "",
        ]
    return lines


def render_markdown(reports: Sequence[PhaseReport]) -> str:
    """Markdown body summarizing one or more phases."""
    lines = ["## Deployment actions", ""]
    for report in reports:
        lines += _render_phase(report)
    return "\n".join(lines).rstrip() + "\n"


@dataclass(frozen=True, slots=True)
class MarkdownFileReporter:
    """Writes the markdown summary to a file for a later CI step to post."""

    path: Path

    def publish(self, reports: Sequence[PhaseReport]) -> Result[None, ReportError]:
        try:
            atomic_write_text(self.path, render_markdown(reports))
        except OSError as e:
            return Err(ReportError(f"Could not write report {self.path}: {e}", path=self.path))
        return Ok(None)
