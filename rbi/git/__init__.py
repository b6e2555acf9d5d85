"""Git operations module.

Usage:
    from rbi.git import Repository

    repo = Repository(Path("/path/to/repo"))
    branch = repo.current_branch()
    if branch.is_ok():
        print(f"Branch: {branch.unwrap()}")
"""

from rbi.git.repository import (
    GitError,
    Repository,
)

__all__ = [
    "GitError",
    "Repository",
]
