"""Error presentation for workflow failures."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rbi.output.console import Style

if TYPE_CHECKING:
    from rbi.output.console import ConsoleProtocol
    from rbi.services.errors import WorkflowError

__all__ = ["print_workflow_error"]


def print_workflow_error(error: WorkflowError, console: ConsoleProtocol) -> None:
    """Print the error line, then its hint and guidance lines."""
    match error.category:
        case "usage":
            console.error(error.message)
        case "precondition":
            console.error(f"ERROR: {error.message}")
        case _:
            console.error(f"FAILED: {error.message}")

    if error.hint:
        console.newline()
        console.print(error.hint, Style.DIM)
    for line in error.guidance:
        console.print(f"  {line}")
