from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from rel.core.config import ProjectConfig, find_project_root, load_project_config
from rel.core.errors import ErrorCode
from rel.core.result import Err
from rel.output.console import ConsoleProtocol, RichConsole, Style


@dataclass(frozen=True, slots=True)
class CLIContext:
    project_root: Path
    config: ProjectConfig
    console: ConsoleProtocol


def build_context(*, branch: str | None = None) -> CLIContext:
    console = RichConsole()

    root = find_project_root()
    if isinstance(root, Err):
        console.error(root.error.message)
        if root.error.hint:
            console.print(f"hint: {root.error.hint}", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    config = load_project_config(root.value, branch=branch)
    if isinstance(config, Err):
        console.error(config.error.message)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    if config.value.branch_file is not None:
        console.print(f"branch config: {config.value.branch_file}", Style.DIM)

    return CLIContext(project_root=root.value, config=config.value, console=console)
