"""Git hook guards and CI validators.

Husky hooks call `rbi hook <name>`; the GitHub workflows call
`rbi check branch-name` / `rbi check pr-title`.
"""

from __future__ import annotations

from collections.abc import Iterable

from rbi.core.branch import is_valid_branch_name, is_valid_pr_title
from rbi.core.result import Err, Ok, Result
from rbi.services.base import WorkflowService
from rbi.services.errors import WorkflowError

_HEADS = "refs/heads/"


def pushed_branches(lines: Iterable[str]) -> list[str]:
    """Remote branch names from pre-push stdin.

    Each line is `<local ref> <local sha> <remote ref> <remote sha>`.
    """
    names: list[str] = []
    for line in lines:
        parts = line.split()
        if len(parts) != 4:
            continue
        remote_ref = parts[2]
        if remote_ref.startswith(_HEADS):
            names.append(remote_ref[len(_HEADS) :])
    return names


class HookService(WorkflowService):
    def _protected_error(self, branch: str, action: str) -> WorkflowError:
        return WorkflowError(
            kind="protected_branch",
            message=f"Direct {action} to '{branch}' is not allowed",
            hint=f"'{branch}' only changes through pull requests.",
            guidance=(
                "Start a branch instead:",
                "  pnpm run git:feature <task-id> <description>",
                "  pnpm run git:hotfix <task-id> <description>",
            ),
        )

    def _guard_current(self, action: str) -> Result[None, WorkflowError]:
        branch_r = self._repo.current_branch()
        if isinstance(branch_r, Err):
            # Detached HEAD (rebase, bisect): nothing to protect.
            return Ok(None)
        if branch_r.value in self._config.branches.protected:
            return Err(self._protected_error(branch_r.value, action))
        return Ok(None)

    def pre_commit(self) -> Result[None, WorkflowError]:
        return self._guard_current("commit")

    def pre_merge_commit(self) -> Result[None, WorkflowError]:
        return self._guard_current("merge commit")

    def pre_push(self, stdin_lines: Iterable[str] = ()) -> Result[None, WorkflowError]:
        """Reject pushes that update a protected branch.

        Without ref lines (hook run by hand) the current branch is checked.
        """
        targets = pushed_branches(stdin_lines)
        if not targets:
            return self._guard_current("push")
        for branch in targets:
            if branch in self._config.branches.protected:
                return Err(self._protected_error(branch, "push"))
        return Ok(None)

    def check_branch_name(self, name: str) -> Result[None, WorkflowError]:
        prefix = self._config.ticket.prefix
        if is_valid_branch_name(name, prefix=prefix):
            self._console.success(f"Branch name OK: {name}")
            return Ok(None)
        return Err(
            WorkflowError(
                kind="invalid_branch",
                message=f"Invalid branch name: {name}",
                hint="Branch names must follow the convention:",
                guidance=(
                    f"feature/{prefix}-<taskid>-<description>",
                    f"release/{prefix}-<taskid>-<description>",
                    f"hotfix/{prefix}-<taskid>-<description>",
                    f"{self.main}, {self.staging}",
                ),
            )
        )

    def check_pr_title(self, title: str) -> Result[None, WorkflowError]:
        prefix = self._config.ticket.prefix
        if is_valid_pr_title(title, prefix=prefix):
            self._console.success(f"PR title OK: {title}")
            return Ok(None)
        return Err(
            WorkflowError(
                kind="invalid_title",
                message=f"Invalid PR title: {title}",
                hint="PR titles to main must look like:",
                guidance=(
                    f"[major|minor|patch] feat|fix({prefix}-<taskid>): <description>",
                    f"e.g. [minor] feat({prefix}-doc1): workflow docs",
                ),
            )
        )
