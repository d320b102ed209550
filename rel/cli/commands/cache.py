from __future__ import annotations

import typer

from rel.actions.run_once import RunOnceStore
from rel.cache.store import KeyValueCache
from rel.cli.commands._helpers import exit_on_error
from rel.core.errors import ErrorCode
from rel.output.console import RichConsole, Style

cache_app = typer.Typer(
    no_args_is_help=True,
    help="Inspect or clear the user cache (run-once records live here).",
    add_completion=False,
)


@cache_app.command("clear")
def clear(
    key: str | None = typer.Argument(None, help="Single key to remove (default: everything)."),
) -> None:
    """Clear the cache, or a single key."""
    console = RichConsole()
    cache = KeyValueCache.from_env()
    if not cache.enabled:
        console.warning("cache disabled by REL_NO_CACHE, nothing to clear")
        return

    opened = cache.open()
    if key is not None:
        # Clearing one key from an unreadable file would rewrite it empty.
        exit_on_error(opened, console, ErrorCode.ENV_ERROR)
    cache.clear(key)
    exit_on_error(cache.flush(), console, ErrorCode.IO_ERROR)

    if key is None:
        console.success(f"cache cleared: {cache.path}")
    else:
        console.success(f"cache key cleared: {key}")


@cache_app.command("list")
def list_entries() -> None:
    """List run-once records."""
    console = RichConsole()
    cache = KeyValueCache.from_env()
    exit_on_error(cache.open(), console, ErrorCode.ENV_ERROR)

    entries = RunOnceStore(cache).entries()
    console.print(f"cache: {cache.path}", Style.DIM)
    if not entries:
        console.print("no run-once records", Style.DIM)
        return
    for entry in entries:
        console.print(entry)
