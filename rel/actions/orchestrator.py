"""Run a phase's declared actions in order and aggregate the outcome.

One pass per call, strictly sequential: later actions may depend on
files or records left by earlier ones, and the report must keep declaration
order. A failing action never stops the loop; only the aggregate decides
whether the surrounding deployment command fails. Each pass clears the
results a previous pass attached to the same declared actions.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from rel.core.result import Err
from rel.output.console import ConsoleProtocol, Style

from .collaborators import Collaborators
from .factory import build_action_instance
from .model import ActionResult, ActionStatus, DeclaredAction, Phase
from .run_once import RunOnceStore

__all__ = [
    "ALREADY_RUN_REASON",
    "DEPLOYMENT_FAILURE_REASON",
    "EARLIER_FAILURE_REASON",
    "Orchestrator",
    "PhaseReport",
    "ValidationIssue",
    "is_overall_failed",
]

EARLIER_FAILURE_REASON = "earlier action failed"
DEPLOYMENT_FAILURE_REASON = "deployment failed"
ALREADY_RUN_REASON = "already run for this target"


def is_overall_failed(actions: Iterable[DeclaredAction]) -> bool:
    """True iff some action failed without ``allow_failure``."""
    return any(a.result is not None and a.result.is_failed and not a.allow_failure for a in actions)


@dataclass(frozen=True, slots=True)
class PhaseReport:
    """Ordered per-action results of one phase plus the aggregate verdict."""

    phase: Phase
    environment_identity: str | None
    actions: tuple[DeclaredAction, ...]
    overall_failed: bool

    @property
    def results(self) -> list[ActionResult]:
        return [a.result for a in self.actions if a.result is not None]

    def count(self, status: ActionStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def blocking_failures(self) -> list[DeclaredAction]:
        return [a for a in self.actions if a.result is not None and a.result.is_failed and not a.allow_failure]


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    action: DeclaredAction
    result: ActionResult


class Orchestrator:
    """Drives the actions of a phase through validation and execution.

    Args:
        collaborators: Side-effecting services handed to each variant.
        run_once: Store of already-run (action, target) pairs.
        console: Where progress and diagnostics go.
    """

    def __init__(
        self,
        collaborators: Collaborators,
        run_once: RunOnceStore,
        console: ConsoleProtocol,
    ) -> None:
        self.collaborators = collaborators
        self.run_once = run_once
        self.console = console

    def select(self, actions: Sequence[DeclaredAction], phase: Phase) -> list[DeclaredAction]:
        """Keep the actions whose context matches the phase, in order."""
        selected: list[DeclaredAction] = []
        for action in actions:
            if phase.accepts(action.context):
                selected.append(action)
            else:
                self.console.print(
                    f"Skipping {action.context.value} action in {phase}: {action.describe()}",
                    Style.DIM,
                )
        return selected

    def validate(
        self,
        actions: Sequence[DeclaredAction],
        phase: Phase,
        *,
        target: str | None = None,
    ) -> list[ValidationIssue]:
        """Check every eligible action without running anything.

        Reports all configuration problems at once. Manual actions without
        instructions show up here too, as skipped.
        """
        issues: list[ValidationIssue] = []
        for action in self.select(actions, phase):
            built = build_action_instance(action, self.collaborators, target=target)
            if isinstance(built, Err):
                issues.append(ValidationIssue(action, built.error))
                continue
            issue = built.value.check_validity_issues(action)
            if issue is not None:
                issues.append(ValidationIssue(action, issue))
        return issues

    def run_phase(
        self,
        actions: Sequence[DeclaredAction],
        phase: Phase,
        environment_identity: str | None,
        *,
        deployment_succeeded: bool = True,
    ) -> PhaseReport:
        """Run the eligible actions of ``phase`` against one target.

        Args:
            actions: Declared actions, in declaration order.
            phase: Pre/post pass and check/process mode.
            environment_identity: Target identity; keys run-once records and
                is passed to variants as the deployment target. None or empty
                means unknown: run-once actions then always run.
            deployment_succeeded: False when the deployment itself already
                failed; every ``skip_if_error`` action is then skipped.
        """
        # An empty identity cannot key run-once records.
        environment_identity = environment_identity or None
        for action in actions:
            action.reset_result()

        eligible = self.select(actions, phase)
        if not eligible:
            self.console.print(f"No actions to run for {phase}", Style.DIM)
            return PhaseReport(phase, environment_identity, (), overall_failed=False)

        self.console.header(f"Running {len(eligible)} action(s) for {phase}")
        if environment_identity is None and any(a.run_only_once_by_org for a in eligible):
            self.console.warning(
                "No target identity available: run-once actions will run as if never run before"
            )

        failure_seen = False
        for action in eligible:
            result = self._run_one(action, environment_identity, deployment_succeeded, failure_seen)
            action.attach_result(result)
            self._log_result(action, result)
            failure_seen = failure_seen or result.is_failed

        overall_failed = is_overall_failed(eligible)
        return PhaseReport(phase, environment_identity, tuple(eligible), overall_failed)

    def _run_one(
        self,
        action: DeclaredAction,
        identity: str | None,
        deployment_succeeded: bool,
        failure_seen: bool,
    ) -> ActionResult:
        if action.skip_if_error and (failure_seen or not deployment_succeeded):
            reason = EARLIER_FAILURE_REASON if failure_seen else DEPLOYMENT_FAILURE_REASON
            self.console.warning(f"Skipping skip_if_error action {action.describe()} ({reason})")
            return ActionResult.skipped(reason)

        once_target = identity if action.run_only_once_by_org else None
        if once_target is not None and self.run_once.has_run(action.id, once_target):
            self.console.print(
                f"Skipping {action.describe()}: already run on {identity} (run_only_once_by_org)",
                Style.DIM,
            )
            return ActionResult.skipped(ALREADY_RUN_REASON)

        built = build_action_instance(action, self.collaborators, target=identity)
        if isinstance(built, Err):
            self.console.error(
                f"Action type [{action.type_name}] is not implemented for action {action.describe()}"
            )
            return built.error
        variant = built.value

        issue = variant.check_validity_issues(action)
        if issue is None:
            self.console.action(f"Running {action.describe()} ({variant.get_label()})")
            result = variant.run(action)
        else:
            result = issue

        # A pre-check skip leaves the action eligible for the next run.
        if once_target is not None and result.status != ActionStatus.SKIPPED:
            self.run_once.mark_run(action.id, once_target)
            self.console.print(f"Recorded {action.id} as run on {once_target}", Style.DIM)
        return result

    def _log_result(self, action: DeclaredAction, result: ActionResult) -> None:
        detail = f" - {result.skipped_reason}" if result.skipped_reason else ""
        message = f"{action.describe()}: {result.status.value}{detail}"
        match result.status:
            case ActionStatus.SUCCESS:
                self.console.success(message)
            case ActionStatus.FAILED if action.allow_failure:
                self.console.warning(f"{message} (failure allowed)")
            case ActionStatus.FAILED:
                self.console.error(message)
            case ActionStatus.MANUAL:
                self.console.info(message)
            case ActionStatus.SKIPPED:
                self.console.print(message, Style.DIM)
