from __future__ import annotations

from dataclasses import dataclass

import typer

from rbi.core.config import Config, load_config_or_default
from rbi.core.errors import ErrorCode
from rbi.core.result import Err
from rbi.core.workspace import Workspace, detect_workspace
from rbi.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    workspace: Workspace
    config: Config
    console: ConsoleProtocol


def build_context(*, require_git: bool = True) -> CLIContext:
    workspace_result = detect_workspace(require_git=require_git)
    if isinstance(workspace_result, Err):
        typer.echo(f"error: {workspace_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    workspace = workspace_result.value

    config_result = load_config_or_default(workspace.config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    return CLIContext(
        workspace=workspace,
        config=config_result.value,
        console=RichConsole(),
    )
