"""`rbi hook ...` (husky) and `rbi check ...` (CI) commands."""

from __future__ import annotations

import os
import sys

import typer

from rbi.cli.commands._helpers import exit_on_error, exit_with_usage
from rbi.cli.context import CLIContext, build_context
from rbi.services.hooks import HookService

hook_app = typer.Typer(no_args_is_help=True, help="Git hook guards (called by husky).")
check_app = typer.Typer(no_args_is_help=True, help="Naming validators (called by CI).")


def _service(ctx: CLIContext) -> HookService:
    return HookService(workspace=ctx.workspace, config=ctx.config, console=ctx.console)


@hook_app.command("pre-commit")
def pre_commit() -> None:
    """Block commits on protected branches."""
    ctx = build_context()
    exit_on_error(_service(ctx).pre_commit(), ctx)


@hook_app.command("pre-push")
def pre_push(
    remote: str | None = typer.Argument(None, help="Remote name (passed by git)"),
    url: str | None = typer.Argument(None, help="Remote URL (passed by git)"),
) -> None:
    """Block pushes to protected branches (reads git's ref lines on stdin)."""
    del remote, url
    ctx = build_context()
    lines = [] if sys.stdin.isatty() else sys.stdin.read().splitlines()
    exit_on_error(_service(ctx).pre_push(lines), ctx)


@hook_app.command("pre-merge-commit")
def pre_merge_commit() -> None:
    """Block local merge commits on protected branches."""
    ctx = build_context()
    exit_on_error(_service(ctx).pre_merge_commit(), ctx)


@check_app.command("branch-name")
def branch_name(
    name: str | None = typer.Argument(None, help="Branch name (default: $GITHUB_HEAD_REF or current branch)"),
) -> None:
    """Validate a branch name against the naming convention."""
    ctx = build_context(require_git=False)
    service = _service(ctx)
    target = name or os.environ.get("GITHUB_HEAD_REF") or None
    if target is None:
        target = exit_on_error(service.current_branch(), ctx)
    exit_on_error(service.check_branch_name(target), ctx)


@check_app.command("pr-title")
def pr_title(
    title: str | None = typer.Argument(None, help="PR title"),
) -> None:
    """Validate a PR title: [major|minor|patch] feat|fix(CU-id): description."""
    ctx = build_context(require_git=False)
    if not title:
        exit_with_usage(ctx, "rbi check pr-title <title>", ['  rbi check pr-title "[minor] feat(CU-doc1): workflow docs"'])
    exit_on_error(_service(ctx).check_pr_title(title), ctx)
