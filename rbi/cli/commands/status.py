"""Status command - where the current branch stands in the workflow."""

from __future__ import annotations

import typer

from rbi.cli.commands._helpers import exit_on_error
from rbi.cli.context import build_context
from rbi.services.status import StatusService


def status(
    no_fetch: bool = typer.Option(False, "--no-fetch", help="Don't fetch the remote first"),
) -> None:
    """Show branch kind, ticket, ahead/behind main and open PRs."""
    ctx = build_context()
    service = StatusService(workspace=ctx.workspace, config=ctx.config, console=ctx.console)
    exit_on_error(service.status(fetch=not no_fetch), ctx)
