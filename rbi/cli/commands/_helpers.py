"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from rbi.core.errors import ErrorCode
from rbi.core.result import Err, Result
from rbi.output.console import Style
from rbi.output.errors import print_workflow_error
from rbi.services.errors import WorkflowError

if TYPE_CHECKING:
    from rbi.cli.context import CLIContext


def confirm_no(message: str) -> bool:
    return typer.confirm(message, default=False)


T = TypeVar("T")


def exit_on_error(result: Result[T, WorkflowError], ctx: CLIContext) -> T:
    """Return the Ok value, or print the error and exit 1.

    Replaces the pattern:
        match result:
            case Err(e):
                print_workflow_error(e, ctx.console)
                raise typer.Exit(code=1)
            case Ok(value):
                ...
    """
    if isinstance(result, Err):
        print_workflow_error(result.error, ctx.console)
        raise typer.Exit(code=int(ErrorCode.FAILURE))
    return result.value


def exit_with_usage(ctx: CLIContext, usage: str, lines: list[str]) -> NoReturn:
    """Print a usage block (yellow usage line, then examples) and exit 1."""
    ctx.console.print(f"Usage: {usage}", Style.WARNING)
    ctx.console.newline()
    for line in lines:
        ctx.console.print(line)
    raise typer.Exit(code=int(ErrorCode.FAILURE))


def parse_pr_number(raw: str | None) -> int | None:
    """Accept "42" or "#42"; anything else is None."""
    if raw is None:
        return None
    value = raw.strip().removeprefix("#")
    if not (value.isascii() and value.isdigit()) or int(value) == 0:
        return None
    return int(value)
