"""The five action variants.

Each variant turns the open ``parameters`` mapping of a declared action into
its own typed parameter struct, checks preconditions without side effects,
and performs its effect through the collaborators.

``check_validity_issues`` returns None when the action may proceed, or the
result that short-circuits it. ``run`` never raises: a non-zero exit, a missing
file or an exception from a collaborator comes back as a failed ``ActionResult``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from rel.core.result import Err, Ok, Result
from rel.platform.process import ProcessOutput

from .collaborators import Collaborators
from .model import (
    ActionResult,
    CommandParams,
    DataImportParams,
    DeclaredAction,
    ManualParams,
    PublishContentParams,
    ScriptParams,
)

__all__ = [
    "ActionVariant",
    "CommandAction",
    "DataImportAction",
    "ManualAction",
    "PublishContentAction",
    "ScriptAction",
]


def result_from_process(output: ProcessOutput) -> ActionResult:
    if output.ok:
        return ActionResult.success(output.combined)
    return ActionResult.failed(f"exit code {output.exit_code}", output=output.combined)


class ActionVariant[P](ABC):
    """Base for action variants, parameterized by the typed parameter struct."""

    label: ClassVar[str]

    def __init__(self, collaborators: Collaborators, target: str | None = None) -> None:
        self.collaborators = collaborators
        self.target = target

    def get_label(self) -> str:
        """Human-readable variant name used in progress lines."""
        return self.label

    @abstractmethod
    def parse_params(self, action: DeclaredAction) -> Result[P, ActionResult]:
        """Build the typed parameters, or the result rejecting the action."""

    def check_params(self, action: DeclaredAction, params: P) -> ActionResult | None:
        """Variant-specific checks on already typed parameters."""
        return None

    def check_validity_issues(self, action: DeclaredAction) -> ActionResult | None:
        """Pre-check without side effects.

        Returns:
            None when the action may run, otherwise the failed or skipped
            result that replaces running it.
        """
        params = self.parse_params(action)
        if isinstance(params, Err):
            return params.error
        return self.check_params(action, params.value)

    @abstractmethod
    def execute(self, action: DeclaredAction, params: P) -> ActionResult:
        """Perform the effect on already checked parameters."""

    def run(self, action: DeclaredAction) -> ActionResult:
        """Check, then perform the effect.

        An exception escaping ``execute`` (a collaborator bug or transport
        error) becomes a failed result carrying the message, so one action
        never aborts the rest of the phase.
        """
        params = self.parse_params(action)
        if isinstance(params, Err):
            return params.error
        issue = self.check_params(action, params.value)
        if issue is not None:
            return issue
        try:
            return self.execute(action, params.value)
        except Exception as e:  # noqa: BLE001
            return ActionResult.failed(f"{self.get_label()} raised {type(e).__name__}", output=str(e))


class CommandAction(ActionVariant[CommandParams]):
    """Runs the declared ``command`` line through the shell executor."""

    label = "CommandAction"

    def parse_params(self, action: DeclaredAction) -> Result[CommandParams, ActionResult]:
        command = (action.command or "").strip()
        if not command:
            return Err(ActionResult.failed("No command provided"))
        return Ok(CommandParams(command=command))

    def execute(self, action: DeclaredAction, params: CommandParams) -> ActionResult:
        return result_from_process(self.collaborators.executor.execute(params.command))


class ScriptAction(ActionVariant[ScriptParams]):
    """Runs a script file against the target.

    Parameters:
        scriptPath: Script file, relative to the project root unless absolute.
            Also accepted as ``script_path`` or ``apexScript``.
    """

    label = "ScriptAction"

    def parse_params(self, action: DeclaredAction) -> Result[ScriptParams, ActionResult]:
        raw = action.param("scriptPath", "script_path", "apexScript")
        if raw is None:
            return Err(ActionResult.failed("No scriptPath parameter provided"))
        path = Path(raw)
        if not path.is_absolute():
            path = self.collaborators.project_root / path
        return Ok(ScriptParams(script_path=path))

    def check_params(self, action: DeclaredAction, params: ScriptParams) -> ActionResult | None:
        if not params.script_path.is_file():
            return ActionResult.failed(f"Script file {params.script_path} does not exist")
        return None

    def execute(self, action: DeclaredAction, params: ScriptParams) -> ActionResult:
        output = self.collaborators.script_runner.run_script(params.script_path, self.target)
        return result_from_process(output)


class DataImportAction(ActionVariant[DataImportParams]):
    """Imports a named data workspace into the target.

    Parameters:
        dataWorkspace: Workspace folder name under the data directory.
            Also accepted as ``data_workspace`` or ``sfdmuProject``.
    """

    label = "DataImportAction"

    def parse_params(self, action: DeclaredAction) -> Result[DataImportParams, ActionResult]:
        name = action.param("dataWorkspace", "data_workspace", "sfdmuProject")
        if name is None:
            return Err(ActionResult.failed("No dataWorkspace parameter provided"))
        return Ok(DataImportParams(data_workspace=name))

    def check_params(self, action: DeclaredAction, params: DataImportParams) -> ActionResult | None:
        if self.collaborators.workspace_resolver.find_workspace_by_name(params.data_workspace) is None:
            return ActionResult.failed(f"Data workspace {params.data_workspace} not found")
        return None

    def execute(self, action: DeclaredAction, params: DataImportParams) -> ActionResult:
        workspace = self.collaborators.workspace_resolver.find_workspace_by_name(params.data_workspace)
        if workspace is None:
            return ActionResult.failed(f"Data workspace {params.data_workspace} not found")
        try:
            output = self.collaborators.data_importer.import_data(workspace, self.target)
        except Exception as e:  # noqa: BLE001
            return ActionResult.failed(f"Data import of {params.data_workspace} raised an error", output=str(e))
        return result_from_process(output)


class PublishContentAction(ActionVariant[PublishContentParams]):
    """Publishes a content site on the target (``contentName``)."""

    label = "PublishContentAction"

    def parse_params(self, action: DeclaredAction) -> Result[PublishContentParams, ActionResult]:
        name = action.param("contentName", "content_name", "communityName")
        if name is None:
            return Err(ActionResult.failed("No contentName parameter provided"))
        return Ok(PublishContentParams(content_name=name))

    def execute(self, action: DeclaredAction, params: PublishContentParams) -> ActionResult:
        output = self.collaborators.content_publisher.publish(params.content_name, self.target)
        return result_from_process(output)


class ManualAction(ActionVariant[ManualParams]):
    """Never runs anything; records the instructions for a human."""

    label = "ManualAction"

    def parse_params(self, action: DeclaredAction) -> Result[ManualParams, ActionResult]:
        instructions = action.param("instructions")
        if instructions is None:
            return Err(ActionResult.skipped("No instructions provided"))
        return Ok(ManualParams(instructions=instructions))

    def execute(self, action: DeclaredAction, params: ManualParams) -> ActionResult:
        return ActionResult.manual(params.instructions)
