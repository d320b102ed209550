from __future__ import annotations

from rel.actions.run_once import RunOnceStore, run_once_key
from rel.cache.store import KeyValueCache


def test_key_format() -> None:
    assert run_once_key("seed", "admin@prod") == "run-once:seed@admin@prod"


class TestRunOnceStore:
    def test_mark_then_has_run(self, cache: KeyValueCache) -> None:
        store = RunOnceStore(cache)
        assert not store.has_run("seed", "org-1")

        store.mark_run("seed", "org-1")

        assert store.has_run("seed", "org-1")
        assert not store.has_run("seed", "org-2")
        assert not store.has_run("other", "org-1")

    def test_non_true_value_is_not_run(self, cache: KeyValueCache) -> None:
        cache.set(run_once_key("seed", "org-1"), "yes")
        assert not RunOnceStore(cache).has_run("seed", "org-1")

    def test_entries_only_lists_run_once_keys(self, cache: KeyValueCache) -> None:
        cache.set("unrelated", 1)
        store = RunOnceStore(cache)
        store.mark_run("b", "org")
        store.mark_run("a", "org")

        assert sorted(store.entries()) == ["run-once:a@org", "run-once:b@org"]
