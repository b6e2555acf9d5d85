"""Repository root detection and well-known paths.

The workspace is the root of the git repository that follows the
Release Branch Isolation strategy. It is found by searching upward for a
`.git` entry (directory, or file for worktrees and submodules).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .config import CONFIG_FILENAME
from .result import Err, Ok, Result

__all__ = [
    "REPO_ROOT_ENV",
    "Workspace",
    "WorkspaceError",
    "detect_workspace",
    "find_repo_upward",
    "is_repo_root",
]

REPO_ROOT_ENV = "RBI_REPO_ROOT"


@dataclass(frozen=True)
class WorkspaceError:
    """Error when the repository root cannot be detected."""

    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class Workspace:
    """A repository managed by rbi.

    The root contains (once `rbi setup` has run):
    - .husky/ hooks and .github/workflows/
    - package.json with the git:* scripts
    - .gitignore with the locked setup patterns
    - .rbi.toml (optional)
    """

    root: Path

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILENAME

    @property
    def git_dir(self) -> Path:
        return self.root / ".git"

    @property
    def package_json(self) -> Path:
        return self.root / "package.json"

    @property
    def gitignore(self) -> Path:
        return self.root / ".gitignore"

    @property
    def husky_dir(self) -> Path:
        return self.root / ".husky"

    @property
    def workflows_dir(self) -> Path:
        return self.root / ".github" / "workflows"

    def has_git(self) -> bool:
        """True once the directory is a git repository."""
        return self.git_dir.exists()

    def __str__(self) -> str:
        return str(self.root)


def is_repo_root(path: Path) -> bool:
    return (path / ".git").exists()


def find_repo_upward(start: Path) -> Path | None:
    """Search upward from start for a repository root."""
    for parent in (start, *start.parents):
        if is_repo_root(parent):
            return parent
    return None


def detect_workspace(
    *,
    start_dir: Path | None = None,
    env_var: str = REPO_ROOT_ENV,
    require_git: bool = True,
) -> Result[Workspace, WorkspaceError]:
    """Detect the repository root.

    Detection order:
    1. $RBI_REPO_ROOT (if set, must be a directory)
    2. Search upward from start_dir (or cwd) for `.git`
    3. start_dir itself when require_git is False (fresh `rbi setup`)
    """
    env_value = os.environ.get(env_var)
    if env_value:
        env_path = Path(env_value).expanduser().resolve()
        if not env_path.is_dir():
            return Err(
                WorkspaceError(
                    message=f"${env_var} is set to '{env_value}' but it is not a directory",
                )
            )
        if require_git and not is_repo_root(env_path):
            return Err(
                WorkspaceError(
                    message=f"${env_var} is set to '{env_value}' but it is not a git repository",
                    searched_from=env_path,
                )
            )
        return Ok(Workspace(root=env_path))

    search_start = (start_dir or Path.cwd()).resolve()
    found = find_repo_upward(search_start)
    if found is not None:
        return Ok(Workspace(root=found))

    if not require_git:
        return Ok(Workspace(root=search_start))

    return Err(
        WorkspaceError(
            message="Not inside a git repository (.git not found)",
            searched_from=search_start,
        )
    )
