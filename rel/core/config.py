"""Project configuration (``.rel.toml``).

Example:

    [data]
    workspaces_dir = "scripts/data"

    [commands]
    script = "sf apex run --file {path}"

    [[commands_post_deploy]]
    id = "assign-perms"
    label = "Assign permission sets"
    command = "sf org assign permset --name Ops"
    skip_if_error = true

A branch file ``config/branches/<branch>.toml`` may redefine either action
list; a list it defines replaces the project one wholesale.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import ObjList, StrDict, as_str_dict, get_list, get_str, get_table

__all__ = [
    "CONFIG_FILE_NAME",
    "CommandsConfig",
    "ConfigError",
    "ProjectConfig",
    "find_project_root",
    "load_project_config",
]

CONFIG_FILE_NAME = ".rel.toml"
PROJECT_ROOT_ENV_VAR = "REL_PROJECT_ROOT"

DEFAULT_SCRIPT_COMMAND = "sf apex run --file {path}"
DEFAULT_DATA_IMPORT_COMMAND = "sf sfdmu run --sourceusername csvfile --path {path}"
DEFAULT_PUBLISH_COMMAND = "sf community publish --name {name}"
DEFAULT_TARGET_FLAG = "--target-org {target}"
DEFAULT_DATA_TARGET_FLAG = "--targetusername {target}"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when the project config cannot be found or parsed."""

    message: str
    path: Path | None = None
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class CommandsConfig:
    """Command line templates used by the default collaborators.

    ``{path}``, ``{name}`` and ``{target}`` are substituted shell-quoted.
    """

    script: str = DEFAULT_SCRIPT_COMMAND
    data_import: str = DEFAULT_DATA_IMPORT_COMMAND
    publish: str = DEFAULT_PUBLISH_COMMAND
    target_flag: str = DEFAULT_TARGET_FLAG
    data_target_flag: str = DEFAULT_DATA_TARGET_FLAG
    timeout_seconds: float | None = None

    @classmethod
    def from_dict(cls, table: Mapping[str, object]) -> CommandsConfig:
        timeout = table.get("timeout_seconds")
        return cls(
            script=get_str(table, "script") or DEFAULT_SCRIPT_COMMAND,
            data_import=get_str(table, "data_import") or DEFAULT_DATA_IMPORT_COMMAND,
            publish=get_str(table, "publish") or DEFAULT_PUBLISH_COMMAND,
            target_flag=get_str(table, "target_flag") or DEFAULT_TARGET_FLAG,
            data_target_flag=get_str(table, "data_target_flag") or DEFAULT_DATA_TARGET_FLAG,
            timeout_seconds=float(timeout) if isinstance(timeout, (int, float)) else None,
        )


def _empty_list() -> ObjList:
    return []


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    """Parsed ``.rel.toml``. Action lists stay raw; the actions layer parses them."""

    root: Path
    pre_deploy: ObjList = field(default_factory=_empty_list)
    post_deploy: ObjList = field(default_factory=_empty_list)
    data_dir: Path | None = None
    commands: CommandsConfig = field(default_factory=CommandsConfig)
    branch_file: Path | None = None

    @property
    def path(self) -> Path:
        return self.root / CONFIG_FILE_NAME

    @property
    def data_workspaces_dir(self) -> Path:
        return self.data_dir or self.root / "scripts" / "data"

    def actions_for(self, kind: str) -> ObjList:
        """Raw action list for ``"pre"`` or ``"post"``."""
        return list(self.pre_deploy if kind == "pre" else self.post_deploy)


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    try:
        content = path.read_bytes()
        data = as_str_dict(tomllib.loads(content.decode("utf-8")))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax in {path}: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading {path}: {e}", path=path))
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def _action_list(data: Mapping[str, object], kind: str, path: Path) -> Result[ObjList | None, ConfigError]:
    snake = f"commands_{kind}_deploy"
    camel = f"commands{kind.capitalize()}Deploy"
    if snake not in data and camel not in data:
        return Ok(None)
    items = get_list(data, snake, camel)
    if items is None:
        return Err(ConfigError(f"'{snake}' must be an array of tables", path=path))
    return Ok(items)


def find_project_root(
    start: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Result[Path, ConfigError]:
    """Locate the directory holding ``.rel.toml``.

    ``REL_PROJECT_ROOT`` wins when set; otherwise search upward from start.
    """
    environ = os.environ if env is None else env
    override = environ.get(PROJECT_ROOT_ENV_VAR)
    if override:
        root = Path(override).expanduser().resolve()
        if (root / CONFIG_FILE_NAME).is_file():
            return Ok(root)
        return Err(
            ConfigError(
                f"{PROJECT_ROOT_ENV_VAR}={override} has no {CONFIG_FILE_NAME}",
                path=root,
            )
        )

    cwd = (start or Path.cwd()).resolve()
    for candidate in (cwd, *cwd.parents):
        if (candidate / CONFIG_FILE_NAME).is_file():
            return Ok(candidate)
    return Err(
        ConfigError(
            f"No {CONFIG_FILE_NAME} found from {cwd} upward",
            path=cwd,
            hint=f"create {CONFIG_FILE_NAME} at the project root or set {PROJECT_ROOT_ENV_VAR}",
        )
    )


def load_project_config(root: Path, *, branch: str | None = None) -> Result[ProjectConfig, ConfigError]:
    """Load ``root/.rel.toml`` and apply the branch file, if any.

    Args:
        root: Project root directory.
        branch: Target branch name; selects ``config/branches/<branch>.toml``.
    """
    path = root / CONFIG_FILE_NAME
    parsed = _parse_toml(path)
    if isinstance(parsed, Err):
        return parsed
    data = parsed.value

    lists: dict[str, ObjList] = {}
    for kind in ("pre", "post"):
        items = _action_list(data, kind, path)
        if isinstance(items, Err):
            return items
        lists[kind] = items.value or []

    branch_file: Path | None = None
    if branch:
        candidate = root / "config" / "branches" / f"{branch}.toml"
        if candidate.is_file():
            branch_data = _parse_toml(candidate)
            if isinstance(branch_data, Err):
                return branch_data
            for kind in ("pre", "post"):
                items = _action_list(branch_data.value, kind, candidate)
                if isinstance(items, Err):
                    return items
                if items.value is not None:
                    lists[kind] = items.value
            branch_file = candidate

    data_table = get_table(data, "data") or {}
    workspaces_dir = get_str(data_table, "workspaces_dir")
    commands = CommandsConfig.from_dict(get_table(data, "commands") or {})

    return Ok(
        ProjectConfig(
            root=root,
            pre_deploy=lists["pre"],
            post_deploy=lists["post"],
            data_dir=(root / workspaces_dir) if workspaces_dir else None,
            commands=commands,
            branch_file=branch_file,
        )
    )
