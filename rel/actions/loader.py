"""Assemble the declared action list for a phase.

Sources, in order:
1. the project config (or the branch file overriding it),
2. one ``scripts/actions/<pr-id>.toml`` file per pull request being
   deployed, whose actions get the pull request attached.

A broken pull request file is reported and ignored so that one bad PR does
not block the deployment of the others. A broken project config is an error.
"""

from __future__ import annotations

import tomllib
from collections.abc import Sequence
from pathlib import Path

from rel.core.config import ProjectConfig
from rel.core.result import Err, Ok, Result
from rel.core.structured import as_str_dict, get_list
from rel.output.console import ConsoleProtocol, Style

from .model import ActionConfigError, DeclaredAction, Phase, PullRequestRef, parse_declared_actions

__all__ = ["PR_ACTIONS_DIR", "load_phase_actions", "load_pull_request_actions", "pull_request_file"]

PR_ACTIONS_DIR = Path("scripts") / "actions"


def pull_request_file(project_root: Path, pr: PullRequestRef) -> Path:
    return project_root / PR_ACTIONS_DIR / f"{pr.id}.toml"


def _read_pr_items(path: Path, phase: Phase) -> Result[list[object], str]:
    try:
        data = as_str_dict(tomllib.loads(path.read_text(encoding="utf-8")))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        return Err(str(e))
    if data is None:
        return Err("root must be a table")
    if phase.config_key not in data and phase.legacy_config_key not in data:
        return Ok([])
    items = get_list(data, phase.config_key, phase.legacy_config_key)
    if items is None:
        return Err(f"'{phase.config_key}' must be an array of tables")
    return Ok(items)


def load_pull_request_actions(
    project_root: Path,
    phase: Phase,
    pull_requests: Sequence[PullRequestRef],
    console: ConsoleProtocol,
    *,
    known_ids: set[str] | None = None,
) -> list[DeclaredAction]:
    """Collect the actions contributed by pull requests for ``phase``."""
    seen = known_ids if known_ids is not None else set()
    collected: list[DeclaredAction] = []
    for pr in pull_requests:
        path = pull_request_file(project_root, pr)
        if not path.is_file():
            continue
        items = _read_pr_items(path, phase)
        if isinstance(items, Err):
            console.error(f"Error while parsing {path}: {items.error}")
            continue
        # Parse against a copy so a rejected file leaves no ids behind.
        trial_ids = set(seen)
        parsed = parse_declared_actions(items.value, source=str(path), known_ids=trial_ids)
        if isinstance(parsed, Err):
            console.error(parsed.error.message)
            continue
        seen.update(trial_ids)
        for action in parsed.value:
            action.pull_request = pr
        if parsed.value:
            console.print(f"{len(parsed.value)} action(s) from pull request #{pr.id}", Style.DIM)
        collected.extend(parsed.value)
    return collected


def load_phase_actions(
    config: ProjectConfig,
    phase: Phase,
    console: ConsoleProtocol,
    *,
    pull_requests: Sequence[PullRequestRef] = (),
) -> Result[list[DeclaredAction], ActionConfigError]:
    """Declared actions for ``phase``: config first, then pull request files."""
    source = str(config.branch_file or config.path)
    known_ids: set[str] = set()
    parsed = parse_declared_actions(config.actions_for(phase.kind.value), source=source, known_ids=known_ids)
    if isinstance(parsed, Err):
        return parsed
    actions = parsed.value
    actions.extend(
        load_pull_request_actions(config.root, phase, pull_requests, console, known_ids=known_ids)
    )
    return Ok(actions)
