"""to-staging / merge-staging commands."""

from __future__ import annotations

import typer

from rbi.cli.commands._helpers import exit_on_error, exit_with_usage, parse_pr_number
from rbi.cli.context import build_context
from rbi.services.staging import StagingService


def to_staging() -> None:
    """Push the release branch and open its PR to staging."""
    ctx = build_context()
    service = StagingService(workspace=ctx.workspace, config=ctx.config, console=ctx.console)
    exit_on_error(service.to_staging(), ctx)


def merge_staging(
    pr: str | None = typer.Argument(None, help="PR number"),
) -> None:
    """Merge a PR into staging with a merge commit (keeps UAT history)."""
    ctx = build_context()
    number = parse_pr_number(pr)
    if number is None:
        exit_with_usage(
            ctx,
            "pnpm run git:merge-staging <PR-number>",
            [
                "Merges a PR to staging using merge commit (preserves history).",
                "",
                "Example:",
                "  pnpm run git:merge-staging 42",
            ],
        )

    service = StagingService(workspace=ctx.workspace, config=ctx.config, console=ctx.console)
    exit_on_error(service.merge_staging(number), ctx)
