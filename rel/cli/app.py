from __future__ import annotations

import typer

from rel import __version__
from rel.cli.commands.actions import actions_app
from rel.cli.commands.cache import cache_app

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Release automation: pre/post deployment actions.",
)

app.add_typer(actions_app, name="actions")
app.add_typer(cache_app, name="cache")


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


def main() -> None:
    app()
