"""release / sync-feature commands."""

from __future__ import annotations

from rbi.cli.commands._helpers import exit_on_error
from rbi.cli.context import build_context
from rbi.services.release import ReleaseService


def release() -> None:
    """Create release/<suffix> from main with only the current feature merged in."""
    ctx = build_context()
    service = ReleaseService(workspace=ctx.workspace, config=ctx.config, console=ctx.console)
    exit_on_error(service.create_release(), ctx)


def sync_feature() -> None:
    """Merge new commits of the current feature into its release branch."""
    ctx = build_context()
    service = ReleaseService(workspace=ctx.workspace, config=ctx.config, console=ctx.console)
    exit_on_error(service.sync_feature(), ctx)
