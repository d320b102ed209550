"""User-level directories.

The key-value cache is per user, not per project, so that run-once markers
survive switching checkouts of the same project.
"""

from __future__ import annotations

import os
import sys
from functools import lru_cache
from pathlib import Path

__all__ = ["home", "user_cache_dir", "clear_caches"]

APP_NAME = "rel"


@lru_cache(maxsize=1)
def home() -> Path:
    """User home directory, honouring USERPROFILE/HOME for CI containers."""
    key = "USERPROFILE" if sys.platform == "win32" else "HOME"
    value = os.environ.get(key)
    if value:
        return Path(value)
    return Path.home()


@lru_cache(maxsize=1)
def user_cache_dir() -> Path:
    """Directory holding the user cache file.

    Location: ``$XDG_CACHE_HOME/rel`` or ``~/.cache/rel`` on Unix,
    ``%LOCALAPPDATA%/rel`` on Windows.
    """
    if sys.platform == "win32":
        local = os.environ.get("LOCALAPPDATA")
        if local:
            return Path(local) / APP_NAME
        return home() / "AppData" / "Local" / APP_NAME

    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache) / APP_NAME
    return home() / ".cache" / APP_NAME


def clear_caches() -> None:
    """Forget memoized paths. Tests call this after changing env vars."""
    home.cache_clear()
    user_cache_dir.cache_clear()
