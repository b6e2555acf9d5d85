"""feature / hotfix / sync commands."""

from __future__ import annotations

import typer

from rbi.cli.commands._helpers import exit_on_error, exit_with_usage
from rbi.cli.context import CLIContext, build_context
from rbi.core.branch import BranchKind
from rbi.services.branches import BranchService


def _service(ctx: CLIContext) -> BranchService:
    return BranchService(workspace=ctx.workspace, config=ctx.config, console=ctx.console)


def _start(kind: BranchKind, ticket: str | None, description: list[str] | None) -> None:
    ctx = build_context()
    words = " ".join(description or []).strip()
    if not ticket or not words:
        exit_with_usage(
            ctx,
            f"pnpm run git:{kind.value} <task-id> <description>",
            [
                "Examples:",
                f"  pnpm run git:{kind.value} 86b2x1 add login form",
                f"  pnpm run git:{kind.value} CU-86b2x1 \"add login form\"",
            ],
        )

    service = _service(ctx)
    if kind is BranchKind.HOTFIX:
        exit_on_error(service.start_hotfix(ticket=ticket, description=words), ctx)
    else:
        exit_on_error(service.start_feature(ticket=ticket, description=words), ctx)


def feature(
    ticket: str | None = typer.Argument(None, help="Task id (e.g. 86b2x1 or CU-86b2x1)"),
    description: list[str] | None = typer.Argument(None, help="Short description"),
) -> None:
    """Start feature/<ticket>-<description> from the latest main."""
    _start(BranchKind.FEATURE, ticket, description)


def hotfix(
    ticket: str | None = typer.Argument(None, help="Task id (e.g. 86b2x1 or CU-86b2x1)"),
    description: list[str] | None = typer.Argument(None, help="Short description"),
) -> None:
    """Start hotfix/<ticket>-<description> from the latest main."""
    _start(BranchKind.HOTFIX, ticket, description)


def sync() -> None:
    """Merge the latest main into the current feature/hotfix branch."""
    ctx = build_context()
    exit_on_error(_service(ctx).sync_with_main(), ctx)
