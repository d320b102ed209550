"""Run-once records: which actions already ran against which target.

Entries live in the user cache as ``run-once:<action id>@<target>`` -> true.
Marking happens after the action ran, without a transaction, so a crash in
between lets the action run again next time (at-least-once).
"""

from __future__ import annotations

from rel.cache.store import KeyValueCache

__all__ = ["RunOnceStore", "run_once_key"]

KEY_PREFIX = "run-once:"


def run_once_key(action_id: str, environment_identity: str) -> str:
    return f"{KEY_PREFIX}{action_id}@{environment_identity}"


class RunOnceStore:
    """Remembers which actions already ran against which target.

    Args:
        cache: Opened user cache; the caller flushes it.
    """

    def __init__(self, cache: KeyValueCache) -> None:
        self.cache = cache

    def has_run(self, action_id: str, environment_identity: str) -> bool:
        """True if a run was recorded for this action on this target."""
        return self.cache.get(run_once_key(action_id, environment_identity)) is True

    def mark_run(self, action_id: str, environment_identity: str) -> None:
        """Record a run. Persisted on the next cache flush."""
        self.cache.set(run_once_key(action_id, environment_identity), True)

    def entries(self) -> list[str]:
        """All run-once keys, sorted."""
        return [key for key in self.cache.keys() if key.startswith(KEY_PREFIX)]
