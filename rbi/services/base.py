from __future__ import annotations

from collections.abc import Callable

from rbi.core.branch import BranchDescriptor, BranchKind, parse_branch
from rbi.core.config import Config
from rbi.core.result import Err, Ok, Result
from rbi.core.workspace import Workspace
from rbi.git.repository import GitError, Repository
from rbi.output.console import ConsoleProtocol, Style
from rbi.services import gh
from rbi.services.errors import WorkflowError, from_branch_error, from_git_error
from rbi.services.gh import PullRequest

ConfirmFn = Callable[[str], bool]

CONFLICT_GUIDANCE = (
    "1. git add <resolved-files>",
    "2. git commit",
)


def conflict_error(error: GitError, *, rerun: str | None = None) -> WorkflowError:
    """Turn a failed merge into the "resolve conflicts" error."""
    if not error.conflict:
        return from_git_error(error)
    steps = CONFLICT_GUIDANCE + ((f"3. Run: {rerun}",) if rerun else ())
    return WorkflowError(
        kind="merge_conflict",
        message="Merge conflicts detected!",
        hint="Please resolve the conflicts and then:",
        guidance=steps,
    )


class WorkflowService:
    """Shared plumbing for the workflow commands.

    Subclasses get the repository, the config, the console and an optional
    confirm prompt; everything they return is a Result.
    """

    def __init__(
        self,
        *,
        workspace: Workspace,
        config: Config,
        console: ConsoleProtocol,
        confirm: ConfirmFn | None = None,
    ) -> None:
        self._workspace = workspace
        self._config = config
        self._console = console
        self._confirm = confirm
        self._repo = Repository(workspace.root)

    @property
    def remote(self) -> str:
        return self._config.remote

    @property
    def main(self) -> str:
        return self._config.branches.main

    @property
    def staging(self) -> str:
        return self._config.branches.staging

    def current_branch(self) -> Result[str, WorkflowError]:
        result = self._repo.current_branch()
        if isinstance(result, Err):
            return Err(
                WorkflowError(
                    kind="wrong_branch",
                    message="Could not determine the current branch",
                    hint=result.error.message,
                )
            )
        return result

    def describe(
        self,
        branch: str,
        *,
        description: str | None = None,
        require_description: bool = True,
    ) -> Result[BranchDescriptor, WorkflowError]:
        """Parse a branch name with the configured ticket policy."""
        ticket = self._config.ticket
        result = parse_branch(
            branch,
            prefix=ticket.prefix,
            missing_ticket=ticket.missing,
            sentinel=ticket.sentinel,
            description=description,
            require_description=require_description,
        )
        if isinstance(result, Err):
            return Err(from_branch_error(result.error))
        return result

    def require_kind(
        self, branch: str, kinds: tuple[BranchKind, ...], *, hint: str | None = None
    ) -> Result[None, WorkflowError]:
        """Reject runs from a branch whose prefix is not one of kinds."""
        prefix, sep, _ = branch.partition("/")
        if sep and prefix in {k.value for k in kinds}:
            return Ok(None)
        expected = " or ".join(f"{k.value}/*" for k in kinds)
        return Err(
            WorkflowError(
                kind="wrong_branch",
                message=f"This command should only be run from a {expected} branch",
                hint=hint,
                guidance=(f"Current branch: {branch}", f"Expected: {expected}"),
            )
        )

    def require_clean_tree(self, what: str) -> Result[None, WorkflowError]:
        dirty = self._repo.has_uncommitted_changes()
        if isinstance(dirty, Err):
            return Err(from_git_error(dirty.error))
        if dirty.value:
            return Err(
                WorkflowError(
                    kind="dirty_tree",
                    message="You have uncommitted changes",
                    hint=f"Please commit your changes before {what}.",
                )
            )
        return Ok(None)

    def ask(self, question: str) -> bool:
        """Ask a yes/no question; without a prompt the answer is no."""
        if self._confirm is None:
            self._console.print("Cannot prompt for confirmation (no prompt available)", Style.DIM)
            return False
        return self._confirm(question)

    def step(self, message: str) -> None:
        self._console.print(message, Style.SUCCESS)

    def git(self, result: Result[None, GitError]) -> Result[None, WorkflowError]:
        if isinstance(result, Err):
            return Err(from_git_error(result.error))
        return Ok(None)

    def git_steps(self, *ops: Callable[[], Result[None, GitError]]) -> Result[None, WorkflowError]:
        """Run git operations in order, stopping at the first failure."""
        for op in ops:
            r = self.git(op())
            if isinstance(r, Err):
                return r
        return Ok(None)

    def next_steps(self, title: str, lines: list[str]) -> None:
        self._console.newline()
        self._console.print(title, Style.WARNING)
        for line in lines:
            self._console.print(f"  {line}")
        self._console.newline()

    def mergeable_pr(
        self, number: int, *, base: str, other_base: str, other_command: str
    ) -> Result[PullRequest, WorkflowError]:
        """Fetch PR `number` and check that it is open and targets `base`.

        A PR aimed at `other_base` is pointed at `other_command` instead.
        """
        ready = gh.ensure_gh_available()
        if isinstance(ready, Err):
            return ready

        pr_r = gh.view_pr(workspace_root=self._workspace.root, number=number)
        if isinstance(pr_r, Err):
            return pr_r
        pr = pr_r.value

        if pr.base != base:
            guidance: tuple[str, ...] = ()
            if pr.base == other_base:
                guidance = (f"For PRs to {other_base}, use: pnpm run {other_command} {number}",)
            return Err(
                WorkflowError(
                    kind="pr_wrong_base",
                    message=f"PR #{number} targets '{pr.base}', not '{base}'",
                    hint=f"Use this command only for PRs targeting {base}.",
                    guidance=guidance,
                )
            )
        if not pr.is_open:
            return Err(
                WorkflowError(
                    kind="pr_not_open",
                    message=f"PR #{number} is {pr.state}, not OPEN",
                )
            )
        return Ok(pr)
