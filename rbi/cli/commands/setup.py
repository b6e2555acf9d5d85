from __future__ import annotations

import typer

from rbi.cli.commands._helpers import exit_on_error
from rbi.cli.context import build_context
from rbi.services.rulesets import RulesetsService
from rbi.services.setup import SetupService


def setup(
    skip_install: bool = typer.Option(
        False,
        "--skip-install",
        help="Don't install npm dev dependencies or run husky",
    ),
    skip_remote: bool = typer.Option(False, "--skip-remote", help="Skip remote configuration"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Keep the remote and push without asking"),
) -> None:
    """Set up hooks, npm scripts, main/staging branches and .gitignore locks.

    Safe to re-run: existing scripts, branches and patterns are kept.
    """
    ctx = build_context(require_git=False)
    service = SetupService(
        workspace=ctx.workspace,
        config=ctx.config,
        console=ctx.console,
        confirm=(lambda _msg: True) if yes else (lambda msg: typer.confirm(msg, default=True)),
        prompt=None if yes else (lambda msg: typer.prompt(msg, default="", show_default=False)),
    )
    exit_on_error(service.setup(skip_install=skip_install, skip_remote=skip_remote), ctx)


def setup_rulesets() -> None:
    """(Admin) Configure merge settings and main/staging rulesets on GitHub."""
    ctx = build_context()
    service = RulesetsService(workspace=ctx.workspace, config=ctx.config, console=ctx.console)
    exit_on_error(service.setup_rulesets(), ctx)
