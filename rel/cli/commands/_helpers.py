"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from rel.core.errors import ErrorCode
from rel.core.result import Err, Result
from rel.output.console import Style

if TYPE_CHECKING:
    from rel.output.console import ConsoleProtocol


def exit_on_error[T, E](
    result: Result[T, E],
    console: ConsoleProtocol,
    error_code: ErrorCode = ErrorCode.USER_ERROR,
) -> None:
    """Print the error of an Err result and exit; return silently on Ok.

    Error payloads are expected to carry ``message`` and optionally ``hint``.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        console.error(message)
        if hint:
            console.print(f"hint: {hint}", Style.DIM)
        raise typer.Exit(code=int(error_code))


def warn_on_error[T, E](result: Result[T, E], console: ConsoleProtocol) -> None:
    """Like exit_on_error, but only warn and carry on."""
    if isinstance(result, Err):
        error = result.error
        console.warning(getattr(error, "message", str(error)))
        hint: str | None = getattr(error, "hint", None)
        if hint:
            console.print(f"hint: {hint}", Style.DIM)


def exit_with_code(code: ErrorCode) -> NoReturn:
    raise typer.Exit(code=int(code))
