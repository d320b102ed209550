"""Per-user key-value cache persisted as a JSON file.

The cache is an explicit handle: a command opens it when it starts, passes it
to whatever needs it, and flushes it before exiting. Nothing is kept in module
globals, so tests can point a fresh cache at ``tmp_path``.

Setting ``REL_NO_CACHE`` (or the legacy ``NO_CACHE``) turns the cache into an
in-memory scratch map: reads start empty and nothing is written back.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from rel.core.result import Err, Ok, Result
from rel.core.structured import StrDict, as_str_dict
from rel.platform.files import atomic_write_text
from rel.platform.paths import user_cache_dir

__all__ = [
    "CacheError",
    "KeyValueCache",
    "NO_CACHE_ENV_VARS",
    "default_cache_path",
]

NO_CACHE_ENV_VARS = ("REL_NO_CACHE", "NO_CACHE")
CACHE_FILE_ENV_VAR = "REL_CACHE_FILE"


@dataclass(frozen=True, slots=True)
class CacheError:
    message: str
    path: Path | None = None
    hint: str | None = None


def default_cache_path() -> Path:
    return user_cache_dir() / "cache.json"


def _truthy(value: str | None) -> bool:
    return value is not None and value.strip().lower() not in {"", "0", "false", "no"}


class KeyValueCache:
    """JSON-file backed cache with an explicit open/flush lifecycle.

    Values must be JSON-serializable. ``get`` and ``set`` work on the
    in-memory copy; only ``flush`` touches the disk.
    """

    def __init__(self, path: Path, *, enabled: bool = True) -> None:
        self.path = path
        self.enabled = enabled
        self._data: StrDict = {}
        self._dirty = False
        self._opened = False

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> KeyValueCache:
        """Build the cache the CLI uses, honouring the env toggles."""
        environ = os.environ if env is None else env
        enabled = not any(_truthy(environ.get(name)) for name in NO_CACHE_ENV_VARS)
        override = environ.get(CACHE_FILE_ENV_VAR)
        path = Path(override).expanduser() if override else default_cache_path()
        return cls(path, enabled=enabled)

    @property
    def is_open(self) -> bool:
        return self._opened

    def open(self) -> Result[None, CacheError]:
        """Load the cache file into memory.

        A missing file is an empty cache. An unreadable or corrupted file
        also leaves the cache empty (and usable) but is reported as Err so
        the caller can warn about it.
        """
        self._opened = True
        self._data = {}
        self._dirty = False
        if not self.enabled:
            return Ok(None)

        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return Ok(None)
        except OSError as e:
            return Err(CacheError(f"Could not read cache {self.path}: {e}", path=self.path))

        try:
            loaded: object = json.loads(raw)
        except json.JSONDecodeError as e:
            return Err(
                CacheError(
                    f"Corrupted cache file {self.path}: {e}",
                    path=self.path,
                    hint="run `rel cache clear` to reset it",
                )
            )

        data = as_str_dict(loaded)
        if data is None:
            return Err(
                CacheError(
                    f"Cache root must be a JSON object: {self.path}",
                    path=self.path,
                    hint="run `rel cache clear` to reset it",
                )
            )
        self._data = data
        return Ok(None)

    def _ensure_open(self) -> None:
        if not self._opened:
            raise RuntimeError("cache used before open()")

    def get(self, key: str, default: object = None) -> object:
        self._ensure_open()
        return self._data.get(key, default)

    def set(self, key: str, value: object) -> None:
        self._ensure_open()
        self._data[key] = value
        self._dirty = True

    def clear(self, key: str | None = None) -> None:
        """Remove one key, or every entry when key is None."""
        self._ensure_open()
        if key is None:
            self._data = {}
        else:
            self._data.pop(key, None)
        self._dirty = True

    def keys(self) -> list[str]:
        self._ensure_open()
        return sorted(self._data)

    def flush(self) -> Result[None, CacheError]:
        """Write pending changes to disk. No-op when disabled or clean."""
        if not self.enabled or not self._dirty:
            return Ok(None)
        try:
            atomic_write_text(self.path, json.dumps(self._data, indent=2, sort_keys=True))
        except OSError as e:
            return Err(CacheError(f"Could not write cache {self.path}: {e}", path=self.path))
        self._dirty = False
        return Ok(None)
