"""External collaborators used by the action variants.

Variants never spawn processes or touch the data folder themselves; they go
through these interfaces so tests can substitute recording fakes. The
defaults shell out to the platform CLI with command lines that can be
overridden in the ``[commands]`` table of ``.rel.toml``.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from rel.core.config import CommandsConfig
from rel.platform.process import ProcessOutput, run_shell

__all__ = [
    "Collaborators",
    "ContentPublisher",
    "DataImporter",
    "DirectoryWorkspaceResolver",
    "ProcessExecutor",
    "ScriptRunner",
    "ShellContentPublisher",
    "ShellDataImporter",
    "ShellExecutor",
    "ShellScriptRunner",
    "WorkspaceResolver",
]


class ProcessExecutor(Protocol):
    def execute(self, command: str) -> ProcessOutput:
        """Run a raw shell command. Must not raise on non-zero exit."""
        ...


class ScriptRunner(Protocol):
    def run_script(self, path: Path, target: str | None) -> ProcessOutput: ...


class WorkspaceResolver(Protocol):
    def find_workspace_by_name(self, name: str) -> Path | None: ...


class DataImporter(Protocol):
    def import_data(self, workspace_path: Path, target: str | None) -> ProcessOutput:
        """Load a data workspace into the target. May raise on transport errors."""
        ...


class ContentPublisher(Protocol):
    def publish(self, content_name: str, target: str | None) -> ProcessOutput: ...


def _render(template: str, target_flag: str, target: str | None, **values: str) -> str:
    quoted = {key: shlex.quote(value) for key, value in values.items()}
    command = template.format(**quoted)
    if target:
        command += " " + target_flag.format(target=shlex.quote(target))
    return command


@dataclass(frozen=True, slots=True)
class ShellExecutor:
    cwd: Path | None = None
    timeout: float | None = None

    def execute(self, command: str) -> ProcessOutput:
        return run_shell(command, cwd=self.cwd, timeout=self.timeout)


@dataclass(frozen=True, slots=True)
class ShellScriptRunner:
    executor: ProcessExecutor
    template: str
    target_flag: str

    def run_script(self, path: Path, target: str | None) -> ProcessOutput:
        command = _render(self.template, self.target_flag, target, path=str(path))
        return self.executor.execute(command)


@dataclass(frozen=True, slots=True)
class DirectoryWorkspaceResolver:
    """Data workspaces are sub-folders of the project data directory."""

    data_dir: Path

    def find_workspace_by_name(self, name: str) -> Path | None:
        candidate = self.data_dir / name
        if candidate.is_dir():
            return candidate
        return None


@dataclass(frozen=True, slots=True)
class ShellDataImporter:
    executor: ProcessExecutor
    template: str
    target_flag: str

    def import_data(self, workspace_path: Path, target: str | None) -> ProcessOutput:
        command = _render(self.template, self.target_flag, target, path=str(workspace_path))
        return self.executor.execute(command)


@dataclass(frozen=True, slots=True)
class ShellContentPublisher:
    executor: ProcessExecutor
    template: str
    target_flag: str

    def publish(self, content_name: str, target: str | None) -> ProcessOutput:
        command = _render(self.template, self.target_flag, target, name=content_name)
        return self.executor.execute(command)


@dataclass(frozen=True, slots=True)
class Collaborators:
    """Everything the five variants need from the outside world."""

    executor: ProcessExecutor
    script_runner: ScriptRunner
    workspace_resolver: WorkspaceResolver
    data_importer: DataImporter
    content_publisher: ContentPublisher
    project_root: Path

    @classmethod
    def default(
        cls,
        project_root: Path,
        commands: CommandsConfig | None = None,
        *,
        data_dir: Path | None = None,
        timeout: float | None = None,
    ) -> Collaborators:
        cfg = commands or CommandsConfig()
        executor = ShellExecutor(cwd=project_root, timeout=timeout or cfg.timeout_seconds)
        return cls(
            executor=executor,
            script_runner=ShellScriptRunner(executor, cfg.script, cfg.target_flag),
            workspace_resolver=DirectoryWorkspaceResolver(data_dir or project_root / "scripts" / "data"),
            data_importer=ShellDataImporter(executor, cfg.data_import, cfg.data_target_flag),
            content_publisher=ShellContentPublisher(executor, cfg.publish, cfg.target_flag),
            project_root=project_root,
        )
