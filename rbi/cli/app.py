from __future__ import annotations

import os
from pathlib import Path

import typer

from rbi import __version__
from rbi.cli.commands.branches import feature, hotfix, sync
from rbi.cli.commands.hooks import check_app, hook_app
from rbi.cli.commands.release import release, sync_feature
from rbi.cli.commands.setup import setup, setup_rulesets
from rbi.cli.commands.ship import merge_main, ship
from rbi.cli.commands.staging import merge_staging, to_staging
from rbi.cli.commands.status import status
from rbi.core.errors import ErrorCode
from rbi.core.workspace import REPO_ROOT_ENV


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Release Branch Isolation: feature -> release -> staging -> main.",
)


# Commands
app.command()(feature)
app.command()(hotfix)
app.command()(sync)
app.command()(release)
app.command("sync-feature")(sync_feature)
app.command("to-staging")(to_staging)
app.command("merge-staging")(merge_staging)
app.command()(ship)
app.command("merge-main")(merge_main)
app.command()(status)
app.command()(setup)
app.command("setup-rulesets")(setup_rulesets)

# Sub-apps
app.add_typer(hook_app, name="hook")
app.add_typer(check_app, name="check")


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    repo: Path | None = typer.Option(
        None,
        "--repo",
        help="Repository root (overrides auto detection)",
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if repo is not None:
        try:
            root = repo.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --repo: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.FAILURE))

        if not root.is_dir():
            typer.echo(f"error: --repo '{root}' is not a directory", err=True)
            raise typer.Exit(code=int(ErrorCode.FAILURE))

        os.environ[REPO_ROOT_ENV] = str(root)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


def main() -> None:
    app()
