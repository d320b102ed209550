"""Platform abstraction layer."""

from .files import atomic_write_text
from .paths import clear_caches, home, user_cache_dir
from .process import ProcessOutput, run_shell

__all__ = [
    # files
    "atomic_write_text",
    # paths
    "clear_caches",
    "home",
    "user_cache_dir",
    # process
    "ProcessOutput",
    "run_shell",
]
