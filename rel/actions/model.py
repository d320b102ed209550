"""Declared actions, their results and typed parameters.

A declared action is one pre/post deployment step as written in ``.rel.toml``
(or in a pull request action file). It is parsed once per invocation; the
orchestrator attaches an ``ActionResult`` to it exactly once.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from rel.core.result import Err, Ok, Result
from rel.core.structured import StrDict, as_str_dict, get_bool, get_str, get_table

__all__ = [
    "ActionConfigError",
    "ActionContext",
    "ActionResult",
    "ActionStatus",
    "ActionType",
    "CommandParams",
    "DataImportParams",
    "DeclaredAction",
    "ManualParams",
    "Phase",
    "PhaseKind",
    "PublishContentParams",
    "PullRequestRef",
    "ScriptParams",
    "parse_declared_action",
    "parse_declared_actions",
]


class ActionType(StrEnum):
    COMMAND = "command"
    SCRIPT = "script"
    DATA_IMPORT = "data-import"
    PUBLISH_CONTENT = "publish-content"
    MANUAL = "manual"

    @classmethod
    def parse(cls, name: str) -> ActionType | None:
        """Resolve a declared type name, accepting legacy aliases."""
        normalized = name.strip().lower()
        normalized = _TYPE_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            return None


_TYPE_ALIASES = {
    "apex": "script",
    "data": "data-import",
    "publish-community": "publish-content",
}


class ActionContext(StrEnum):
    ALL = "all"
    CHECK_ONLY = "check-only"
    PROCESS_ONLY = "process-only"

    @classmethod
    def parse(cls, name: str) -> ActionContext | None:
        normalized = name.strip().lower()
        normalized = _CONTEXT_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            return None


_CONTEXT_ALIASES = {
    "check-deployment-only": "check-only",
    "process-deployment-only": "process-only",
}


class ActionStatus(StrEnum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"
    MANUAL = "manual"


class PhaseKind(StrEnum):
    PRE = "pre"
    POST = "post"


@dataclass(frozen=True, slots=True)
class Phase:
    """One orchestration pass.

    Attributes:
        kind: Before or after the deployment.
        check_only: True for validation/dry-run deployments, False for real ones.
    """

    kind: PhaseKind
    check_only: bool = False

    @property
    def config_key(self) -> str:
        """Key holding this phase's action list in config files."""
        return f"commands_{self.kind.value}_deploy"

    @property
    def legacy_config_key(self) -> str:
        return f"commands{self.kind.value.capitalize()}Deploy"

    def accepts(self, context: ActionContext) -> bool:
        """Whether an action declared with ``context`` runs in this pass."""
        if context == ActionContext.CHECK_ONLY:
            return self.check_only
        if context == ActionContext.PROCESS_ONLY:
            return not self.check_only
        return True

    def __str__(self) -> str:
        mode = "check" if self.check_only else "process"
        return f"{self.kind.value}-deploy ({mode})"


@dataclass(frozen=True, slots=True)
class ActionResult:
    """Outcome of one action attempt.

    ``skipped_reason`` is mandatory for skipped and manual outcomes.
    """

    status: ActionStatus
    output: str | None = None
    skipped_reason: str | None = None

    def __post_init__(self) -> None:
        if self.status in (ActionStatus.SKIPPED, ActionStatus.MANUAL) and not self.skipped_reason:
            raise ValueError(f"{self.status} result requires a skipped_reason")

    @classmethod
    def success(cls, output: str | None = None) -> ActionResult:
        return cls(ActionStatus.SUCCESS, output=output)

    @classmethod
    def failed(cls, reason: str | None = None, *, output: str | None = None) -> ActionResult:
        return cls(ActionStatus.FAILED, output=output, skipped_reason=reason)

    @classmethod
    def skipped(cls, reason: str) -> ActionResult:
        return cls(ActionStatus.SKIPPED, skipped_reason=reason)

    @classmethod
    def manual(cls, instructions: str) -> ActionResult:
        return cls(
            ActionStatus.MANUAL,
            output=instructions,
            skipped_reason="Manual action - see output for instructions",
        )

    @property
    def is_failed(self) -> bool:
        return self.status == ActionStatus.FAILED


@dataclass(frozen=True, slots=True)
class PullRequestRef:
    """Pull/merge request an action was contributed by."""

    id: str
    title: str | None = None
    url: str | None = None
    source_branch: str | None = None
    target_branch: str | None = None

    @classmethod
    def from_table(cls, table: Mapping[str, object]) -> PullRequestRef | None:
        pr_id = get_str(table, "id", "idStr")
        if pr_id is None:
            return None
        return cls(
            id=pr_id,
            title=get_str(table, "title"),
            url=get_str(table, "url", "webUrl"),
            source_branch=get_str(table, "source_branch", "sourceBranch"),
            target_branch=get_str(table, "target_branch", "targetBranch"),
        )


def _empty_params() -> StrDict:
    return {}


@dataclass(slots=True)
class DeclaredAction:
    """A configured pre/post deployment step.

    ``type_name`` keeps the raw declared type so an unknown type can be
    reported verbatim; ``action_type`` is None in that case.
    """

    id: str
    label: str
    type_name: str = ActionType.COMMAND.value
    parameters: StrDict = field(default_factory=_empty_params)
    command: str | None = None
    context: ActionContext = ActionContext.ALL
    skip_if_error: bool = False
    allow_failure: bool = False
    run_only_once_by_org: bool = False
    pull_request: PullRequestRef | None = None
    result: ActionResult | None = None

    @property
    def action_type(self) -> ActionType | None:
        return ActionType.parse(self.type_name)

    def attach_result(self, result: ActionResult) -> None:
        """Record the outcome of the current pass.

        Raises:
            ValueError: A result was already attached during this pass.
        """
        if self.result is not None:
            raise ValueError(f"result already attached to action [{self.id}]")
        self.result = result

    def reset_result(self) -> None:
        """Forget the outcome of a previous pass."""
        self.result = None

    def param(self, *keys: str) -> str | None:
        """First non-empty string parameter among ``keys``."""
        return get_str(self.parameters, *keys)

    def describe(self) -> str:
        return f"[{self.id}]: {self.label}"


# Typed parameters, one per variant. Built from the open ``parameters``
# mapping when a variant validates an action.


@dataclass(frozen=True, slots=True)
class CommandParams:
    command: str


@dataclass(frozen=True, slots=True)
class ScriptParams:
    script_path: Path


@dataclass(frozen=True, slots=True)
class DataImportParams:
    data_workspace: str


@dataclass(frozen=True, slots=True)
class PublishContentParams:
    content_name: str


@dataclass(frozen=True, slots=True)
class ManualParams:
    instructions: str


@dataclass(frozen=True, slots=True)
class ActionConfigError:
    """An action declaration that cannot be parsed at all."""

    message: str
    source: str | None = None
    hint: str | None = None


def parse_declared_action(
    raw: object,
    *,
    index: int,
    source: str | None = None,
) -> Result[DeclaredAction, ActionConfigError]:
    """Parse one raw table into a DeclaredAction.

    Unknown ``type`` values are accepted here; they fail later, per action,
    without blocking the rest of the list.
    """
    where = f"action #{index + 1}" + (f" in {source}" if source else "")
    table = as_str_dict(raw)
    if table is None:
        return Err(ActionConfigError(f"{where} must be a table", source=source))

    action_id = get_str(table, "id")
    if action_id is None:
        return Err(ActionConfigError(f"{where} has no id", source=source))

    label = get_str(table, "label")
    if label is None:
        return Err(ActionConfigError(f"{where} [{action_id}] has no label", source=source))

    context_name = get_str(table, "context") or ActionContext.ALL.value
    context = ActionContext.parse(context_name)
    if context is None:
        allowed = ", ".join(c.value for c in ActionContext)
        return Err(
            ActionConfigError(
                f"{where} [{action_id}] has unknown context '{context_name}'",
                source=source,
                hint=f"expected one of: {allowed}",
            )
        )

    pr_table = get_table(table, "pull_request", "pullRequest")
    return Ok(
        DeclaredAction(
            id=action_id,
            label=label,
            type_name=get_str(table, "type") or ActionType.COMMAND.value,
            parameters=dict(get_table(table, "parameters") or {}),
            command=get_str(table, "command"),
            context=context,
            skip_if_error=get_bool(table, "skip_if_error", "skipIfError"),
            allow_failure=get_bool(table, "allow_failure", "allowFailure"),
            run_only_once_by_org=get_bool(table, "run_only_once_by_org", "runOnlyOnceByOrg"),
            pull_request=PullRequestRef.from_table(pr_table) if pr_table else None,
        )
    )


def parse_declared_actions(
    raw_items: list[object],
    *,
    source: str | None = None,
    known_ids: set[str] | None = None,
) -> Result[list[DeclaredAction], ActionConfigError]:
    """Parse a declared list, rejecting duplicate ids.

    Args:
        raw_items: Tables as loaded from TOML.
        source: File name used in error messages.
        known_ids: Ids already taken by an earlier list (e.g. project config
            when parsing pull request additions). Updated in place.
    """
    seen = known_ids if known_ids is not None else set()
    actions: list[DeclaredAction] = []
    for index, raw in enumerate(raw_items):
        parsed = parse_declared_action(raw, index=index, source=source)
        if isinstance(parsed, Err):
            return parsed
        action = parsed.value
        if action.id in seen:
            return Err(
                ActionConfigError(
                    f"duplicate action id [{action.id}]" + (f" in {source}" if source else ""),
                    source=source,
                    hint="action ids key the run-once records and must be unique",
                )
            )
        seen.add(action.id)
        actions.append(action)
    return Ok(actions)
