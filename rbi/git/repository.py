"""Git repository abstraction.

This module provides the Repository class used by every workflow command.
All operations return Result types; none of them print.

Usage:
    repo = Repository(Path("/path/to/repo"))

    match repo.current_branch():
        case Ok(branch):
            print(f"Branch: {branch}")
        case Err(e):
            print(f"Error: {e.message}")

    match repo.merge("origin/main", message="chore: sync with main"):
        case Ok(_):
            print("merged")
        case Err(e) if e.conflict:
            print("resolve conflicts, then commit")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rbi.core.result import Err, Ok, Result
from rbi.platform.process import ProcessError
from rbi.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0
_NETWORK_COMMANDS = frozenset({"fetch", "pull", "push", "clone", "ls-remote"})

__all__ = [
    "GitError",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed (e.g. "merge origin/main")
        message: Error message
        returncode: Process return code
        conflict: True when a merge stopped on conflicts
    """

    command: str
    message: str
    returncode: int = 1
    conflict: bool = False


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def current_branch(self) -> Result[str, GitError]:
        """Current branch name via `git symbolic-ref --short HEAD`.

        Fails on a detached HEAD.
        """
        result = self._run(["symbolic-ref", "--short", "HEAD"])
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command="symbolic-ref",
                        message=e.stderr.strip() or "HEAD is detached",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(stdout.strip())

    def has_uncommitted_changes(self) -> Result[bool, GitError]:
        """True if tracked files differ from HEAD (`git diff-index --quiet HEAD --`).

        Untracked files do not count.
        """
        result = self._run(["diff-index", "--quiet", "HEAD", "--"])
        match result:
            case Ok(_):
                return Ok(False)
            case Err(e) if e.returncode == 1:
                return Ok(True)
            case Err(e):
                return Err(
                    GitError(
                        command="diff-index",
                        message=e.stderr.strip() or "could not compare working tree with HEAD",
                        returncode=e.returncode,
                    )
                )

    def has_staged_changes(self) -> Result[bool, GitError]:
        """True if the index differs from HEAD (`git diff --cached --quiet`)."""
        result = self._run(["diff", "--cached", "--quiet"])
        match result:
            case Ok(_):
                return Ok(False)
            case Err(e) if e.returncode == 1:
                return Ok(True)
            case Err(e):
                return Err(GitError(command="diff --cached", message=e.stderr.strip(), returncode=e.returncode))

    def branch_exists(self, name: str) -> bool:
        """True if a local branch exists."""
        result = self._run(["rev-parse", "--verify", "--quiet", f"refs/heads/{name}"])
        return isinstance(result, Ok)

    def remote_branch_exists(self, remote: str, name: str) -> bool:
        """True if a remote-tracking branch exists (as of the last fetch)."""
        result = self._run(["rev-parse", "--verify", "--quiet", f"refs/remotes/{remote}/{name}"])
        return isinstance(result, Ok)

    def count_commits(self, revision_range: str) -> Result[int, GitError]:
        """Number of commits in a range (`git rev-list --count A..B`)."""
        result = self._run(["rev-list", "--count", revision_range])
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command=f"rev-list --count {revision_range}",
                        message=e.stderr.strip() or "rev-list failed",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                try:
                    return Ok(int(stdout.strip() or "0"))
                except ValueError:
                    return Err(
                        GitError(
                            command=f"rev-list --count {revision_range}",
                            message=f"unexpected output: {stdout.strip()!r}",
                        )
                    )

    def local_branches(self) -> Result[list[str], GitError]:
        result = self._run(["branch", "--format=%(refname:short)"])
        match result:
            case Err(e):
                return Err(GitError(command="branch", message=e.stderr.strip(), returncode=e.returncode))
            case Ok(stdout):
                return Ok([ln.strip() for ln in stdout.splitlines() if ln.strip()])

    def remote_url(self, remote: str) -> str | None:
        result = self._run(["remote", "get-url", remote])
        match result:
            case Ok(stdout):
                return stdout.strip() or None
            case Err(_):
                return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def init(self, *, initial_branch: str) -> Result[None, GitError]:
        return self._simple(["init", "-b", initial_branch], command="init")

    def fetch(self, remote: str) -> Result[None, GitError]:
        return self._simple(["fetch", remote], command=f"fetch {remote}")

    def pull(self, remote: str, branch: str) -> Result[None, GitError]:
        return self._simple(["pull", remote, branch], command=f"pull {remote} {branch}")

    def checkout(self, branch: str) -> Result[None, GitError]:
        return self._simple(["checkout", branch], command=f"checkout {branch}")

    def create_branch(self, branch: str) -> Result[None, GitError]:
        """Create a branch from HEAD and switch to it (`git checkout -b`)."""
        return self._simple(["checkout", "-b", branch], command=f"checkout -b {branch}")

    def rename_branch(self, old: str, new: str) -> Result[None, GitError]:
        return self._simple(["branch", "-m", old, new], command=f"branch -m {old} {new}")

    def merge(self, ref: str, *, message: str, no_ff: bool = False) -> Result[None, GitError]:
        """Merge ref into the current branch.

        On conflicts the merge is left in progress for the user to resolve;
        the returned GitError has conflict=True.
        """
        args = ["merge", ref]
        if no_ff:
            args.append("--no-ff")
        args += ["-m", message]
        result = self._run(args)
        match result:
            case Ok(_):
                return Ok(None)
            case Err(e):
                output = f"{e.stdout}\n{e.stderr}"
                return Err(
                    GitError(
                        command=f"merge {ref}",
                        message=e.stderr.strip() or e.stdout.strip() or "merge failed",
                        returncode=e.returncode,
                        conflict="CONFLICT" in output or "Automatic merge failed" in output,
                    )
                )

    def push(
        self,
        remote: str,
        branch: str,
        *,
        set_upstream: bool = True,
        no_verify: bool = False,
    ) -> Result[None, GitError]:
        args = ["push"]
        if set_upstream:
            args.append("-u")
        args += [remote, branch]
        if no_verify:
            args.append("--no-verify")
        return self._simple(args, command=f"push {remote} {branch}")

    def add(self, paths: list[str], *, force: bool = False) -> Result[None, GitError]:
        args = ["add"]
        if force:
            args.append("-f")
        args += ["--", *paths]
        return self._simple(args, command="add")

    def commit(self, message: str, *, no_verify: bool = False) -> Result[None, GitError]:
        args = ["commit", "-m", message]
        if no_verify:
            args.append("--no-verify")
        return self._simple(args, command="commit")

    def add_remote(self, name: str, url: str) -> Result[None, GitError]:
        return self._simple(["remote", "add", name, url], command=f"remote add {name}")

    def set_remote_url(self, name: str, url: str) -> Result[None, GitError]:
        return self._simple(["remote", "set-url", name, url], command=f"remote set-url {name}")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _simple(self, args: list[str], *, command: str) -> Result[None, GitError]:
        result = self._run(args)
        match result:
            case Ok(_):
                return Ok(None)
            case Err(e):
                return Err(
                    GitError(
                        command=command,
                        message=e.stderr.strip() or e.stdout.strip() or f"git {command} failed",
                        returncode=e.returncode,
                    )
                )

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)
