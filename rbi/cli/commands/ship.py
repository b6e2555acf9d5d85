"""ship / merge-main commands."""

from __future__ import annotations

import typer

from rbi.cli.commands._helpers import confirm_no, exit_on_error, exit_with_usage, parse_pr_number
from rbi.cli.context import build_context
from rbi.core.branch import parse_bump
from rbi.services.ship import ShipService

_SHIP_USAGE = [
    "Examples:",
    "  pnpm run git:ship minor",
    '  pnpm run git:ship patch "custom PR description"',
    "  pnpm run git:ship major --override",
    "",
    "Options:",
    "  --override, -o  Skip open staging PR check",
]


def ship(
    bump: str | None = typer.Argument(None, help="major | minor | patch"),
    description: list[str] | None = typer.Argument(None, help="PR description (default: from branch name)"),
    override: bool = typer.Option(False, "--override", "-o", help="Skip open staging PR check"),
) -> None:
    """Push the release/hotfix branch and open its squash PR to main."""
    ctx = build_context()
    parsed = parse_bump(bump) if bump else None
    if parsed is None:
        exit_with_usage(ctx, 'pnpm run git:ship <major|minor|patch> ["description"] [--override|-o]', _SHIP_USAGE)

    service = ShipService(
        workspace=ctx.workspace,
        config=ctx.config,
        console=ctx.console,
        confirm=confirm_no,
    )
    custom = " ".join(description or []).strip() or None
    exit_on_error(service.ship(bump=parsed, description=custom, override=override), ctx)


def merge_main(
    pr: str | None = typer.Argument(None, help="PR number"),
) -> None:
    """Squash-merge a PR into main and delete its branch."""
    ctx = build_context()
    number = parse_pr_number(pr)
    if number is None:
        exit_with_usage(
            ctx,
            "pnpm run git:merge-main <PR-number>",
            [
                "Merges a PR to main using squash merge (clean history).",
                "",
                "Example:",
                "  pnpm run git:merge-main 42",
            ],
        )

    service = ShipService(
        workspace=ctx.workspace,
        config=ctx.config,
        console=ctx.console,
        confirm=confirm_no,
    )
    exit_on_error(service.merge_main(number), ctx)
