from __future__ import annotations

from pathlib import Path

import typer

from rel.actions.collaborators import Collaborators
from rel.actions.loader import load_phase_actions
from rel.actions.model import DeclaredAction, Phase, PhaseKind, PullRequestRef
from rel.actions.orchestrator import Orchestrator
from rel.actions.report import MarkdownFileReporter, print_summary
from rel.actions.run_once import RunOnceStore
from rel.cache.store import KeyValueCache
from rel.cli.commands._helpers import exit_on_error, exit_with_code, warn_on_error
from rel.cli.context import CLIContext, build_context
from rel.core.errors import ErrorCode
from rel.output.console import Style

actions_app = typer.Typer(
    no_args_is_help=True,
    help="Run and inspect pre/post deployment actions.",
    add_completion=False,
)

TARGET_ORG_ENV_VAR = "REL_TARGET_ORG"


def _load_actions(
    ctx: CLIContext,
    phase: Phase,
    pull_requests: list[str] | None = None,
) -> list[DeclaredAction]:
    refs = [PullRequestRef(id=pr_id) for pr_id in (pull_requests or [])]
    loaded = load_phase_actions(ctx.config, phase, ctx.console, pull_requests=refs)
    exit_on_error(loaded, ctx.console, ErrorCode.USER_ERROR)
    return loaded.unwrap_or([])


def _orchestrator(ctx: CLIContext, cache: KeyValueCache) -> Orchestrator:
    collaborators = Collaborators.default(
        ctx.project_root,
        ctx.config.commands,
        data_dir=ctx.config.data_workspaces_dir,
    )
    return Orchestrator(collaborators, RunOnceStore(cache), ctx.console)


@actions_app.command("run")
def run(
    phase: PhaseKind = typer.Argument(..., help="pre or post"),
    target_org: str | None = typer.Option(
        None,
        "--target-org",
        envvar=TARGET_ORG_ENV_VAR,
        help="Target environment identity (keys run-once records).",
    ),
    check: bool = typer.Option(False, "--check", help="Check-only (validation) deployment."),
    deployment_failed: bool = typer.Option(
        False,
        "--deployment-failed",
        help="The deployment already failed: skip skip_if_error actions.",
    ),
    pull_request: list[str] | None = typer.Option(
        None,
        "--pull-request",
        help="Pull request id whose scripts/actions/<id>.toml to include (repeatable).",
    ),
    branch: str | None = typer.Option(None, "--branch", help="Target branch (selects branch config)."),
    report: Path | None = typer.Option(None, "--report", help="Write a markdown summary here."),
) -> None:
    """Run the actions of a phase and fail if a blocking action failed."""
    ctx = build_context(branch=branch)
    current = Phase(kind=phase, check_only=check)
    actions = _load_actions(ctx, current, pull_request)

    cache = KeyValueCache.from_env()
    warn_on_error(cache.open(), ctx.console)
    try:
        phase_report = _orchestrator(ctx, cache).run_phase(
            actions,
            current,
            target_org,
            deployment_succeeded=not deployment_failed,
        )
    finally:
        warn_on_error(cache.flush(), ctx.console)

    print_summary(phase_report, ctx.console)

    if report is not None:
        published = MarkdownFileReporter(report).publish([phase_report])
        exit_on_error(published, ctx.console, ErrorCode.IO_ERROR)
        ctx.console.print(f"report: {report}", Style.DIM)

    if phase_report.overall_failed:
        exit_with_code(ErrorCode.ACTIONS_FAILED)


@actions_app.command("validate")
def validate(
    phase: PhaseKind = typer.Argument(..., help="pre or post"),
    check: bool = typer.Option(False, "--check", help="Validate for a check-only deployment."),
    pull_request: list[str] | None = typer.Option(None, "--pull-request", help="Pull request id (repeatable)."),
    branch: str | None = typer.Option(None, "--branch", help="Target branch (selects branch config)."),
) -> None:
    """Check every action of a phase without running anything."""
    ctx = build_context(branch=branch)
    current = Phase(kind=phase, check_only=check)
    actions = _load_actions(ctx, current, pull_request)

    # Validation never reads or writes run-once records.
    scratch = KeyValueCache(ctx.project_root / ".rel-scratch.json", enabled=False)
    scratch.open()
    issues = _orchestrator(ctx, scratch).validate(actions, current)

    if not issues:
        eligible = sum(1 for a in actions if current.accepts(a.context))
        ctx.console.success(f"{eligible} action(s) valid for {current}")
        return

    failing = 0
    for issue in issues:
        reason = issue.result.skipped_reason or issue.result.status.value
        message = f"{issue.action.describe()}: {reason}"
        if issue.result.is_failed:
            failing += 1
            ctx.console.error(message)
        else:
            ctx.console.warning(message)

    if failing:
        exit_with_code(ErrorCode.USER_ERROR)


@actions_app.command("list")
def list_actions(
    phase: PhaseKind = typer.Argument(..., help="pre or post"),
    check: bool = typer.Option(False, "--check", help="List for a check-only deployment."),
    branch: str | None = typer.Option(None, "--branch", help="Target branch (selects branch config)."),
) -> None:
    """Show the declared actions of a phase."""
    ctx = build_context(branch=branch)
    current = Phase(kind=phase, check_only=check)
    actions = _load_actions(ctx, current)

    ctx.console.header(f"{len(actions)} action(s) declared for {phase.value}-deploy")
    for action in actions:
        flags = [
            name
            for name, enabled in (
                ("skip_if_error", action.skip_if_error),
                ("allow_failure", action.allow_failure),
                ("run_only_once_by_org", action.run_only_once_by_org),
            )
            if enabled
        ]
        style = Style.DEFAULT if current.accepts(action.context) else Style.DIM
        line = f"{action.describe()} [{action.type_name}, {action.context.value}]"
        if flags:
            line += " " + " ".join(flags)
        ctx.console.print(line, style)
