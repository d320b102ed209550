"""Recording fakes for the action collaborators."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from rel.actions.collaborators import Collaborators
from rel.actions.model import DeclaredAction, parse_declared_actions
from rel.actions.orchestrator import Orchestrator
from rel.actions.run_once import RunOnceStore
from rel.cache.store import KeyValueCache
from rel.core.result import Ok
from rel.output.console import MockConsole
from rel.platform.process import ProcessOutput


def _output(command: str, exit_code: int = 0) -> ProcessOutput:
    return ProcessOutput(command=command, exit_code=exit_code, stdout=f"out: {command}", stderr="")


@dataclass
class ScriptedExecutor:
    """Executes nothing; ``exit N`` commands exit with N, the rest succeed."""

    calls: list[str] = field(default_factory=list)

    def execute(self, command: str) -> ProcessOutput:
        self.calls.append(command)
        parts = command.split()
        if len(parts) == 2 and parts[0] == "exit":
            return _output(command, int(parts[1]))
        return _output(command)


@dataclass
class FakeScriptRunner:
    exit_code: int = 0
    calls: list[tuple[Path, str | None]] = field(default_factory=list)

    def run_script(self, path: Path, target: str | None) -> ProcessOutput:
        self.calls.append((path, target))
        return _output(f"script {path.name}", self.exit_code)


@dataclass
class FakeWorkspaceResolver:
    workspaces: dict[str, Path] = field(default_factory=dict)
    lookups: list[str] = field(default_factory=list)

    def find_workspace_by_name(self, name: str) -> Path | None:
        self.lookups.append(name)
        return self.workspaces.get(name)


@dataclass
class FakeDataImporter:
    exit_code: int = 0
    error: Exception | None = None
    calls: list[tuple[Path, str | None]] = field(default_factory=list)

    def import_data(self, workspace_path: Path, target: str | None) -> ProcessOutput:
        self.calls.append((workspace_path, target))
        if self.error is not None:
            raise self.error
        return _output(f"import {workspace_path.name}", self.exit_code)


@dataclass
class FakeContentPublisher:
    exit_code: int = 0
    calls: list[tuple[str, str | None]] = field(default_factory=list)

    def publish(self, content_name: str, target: str | None) -> ProcessOutput:
        self.calls.append((content_name, target))
        return _output(f"publish {content_name}", self.exit_code)


@dataclass
class Fakes:
    root: Path
    executor: ScriptedExecutor = field(default_factory=ScriptedExecutor)
    script_runner: FakeScriptRunner = field(default_factory=FakeScriptRunner)
    resolver: FakeWorkspaceResolver = field(default_factory=FakeWorkspaceResolver)
    importer: FakeDataImporter = field(default_factory=FakeDataImporter)
    publisher: FakeContentPublisher = field(default_factory=FakeContentPublisher)

    @property
    def collaborators(self) -> Collaborators:
        return Collaborators(
            executor=self.executor,
            script_runner=self.script_runner,
            workspace_resolver=self.resolver,
            data_importer=self.importer,
            content_publisher=self.publisher,
            project_root=self.root,
        )


@pytest.fixture
def fakes(tmp_path: Path) -> Fakes:
    return Fakes(root=tmp_path)


@pytest.fixture
def console() -> MockConsole:
    return MockConsole()


@pytest.fixture
def cache(tmp_path: Path) -> KeyValueCache:
    kv = KeyValueCache(tmp_path / "cache" / "cache.json")
    kv.open()
    return kv


@pytest.fixture
def orchestrator(fakes: Fakes, cache: KeyValueCache, console: MockConsole) -> Orchestrator:
    return Orchestrator(fakes.collaborators, RunOnceStore(cache), console)


def _declare(*tables: dict[str, object]) -> list[DeclaredAction]:
    items: list[object] = [{"label": f"label {t['id']}", **t} for t in tables]
    parsed = parse_declared_actions(items)
    assert isinstance(parsed, Ok)
    return parsed.value


Declare = Callable[..., list[DeclaredAction]]


@pytest.fixture
def declare() -> Declare:
    """Parse action tables, filling in a label when omitted."""
    return _declare
