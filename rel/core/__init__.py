"""Core types: results, exit codes, project configuration."""

from .config import CommandsConfig, ConfigError, ProjectConfig, find_project_root, load_project_config
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # config
    "CommandsConfig",
    "ConfigError",
    "ProjectConfig",
    "find_project_root",
    "load_project_config",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
