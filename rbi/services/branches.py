"""Starting work branches and keeping them current with main.

Backs `git:feature`, `git:hotfix` and `git:sync`.
"""

from __future__ import annotations

from rbi.core.branch import BranchKind, build_branch_name
from rbi.core.result import Err, Ok, Result
from rbi.output.console import Style
from rbi.services.base import WorkflowService, conflict_error
from rbi.services.errors import WorkflowError, from_branch_error


class BranchService(WorkflowService):
    def start_feature(self, *, ticket: str, description: str) -> Result[str, WorkflowError]:
        """Create and push `feature/<ticket>-<slug>` from the latest main."""
        result = self._start(BranchKind.FEATURE, ticket=ticket, description=description)
        if isinstance(result, Ok):
            self.next_steps(
                "Next steps:",
                [
                    "1. Commit your work (conventional commits, e.g. feat: ...)",
                    "2. Keep the branch current with main:",
                    "     pnpm run git:sync",
                    "3. When ready for UAT, create the release branch:",
                    "     pnpm run git:release",
                ],
            )
        return result

    def start_hotfix(self, *, ticket: str, description: str) -> Result[str, WorkflowError]:
        """Create and push `hotfix/<ticket>-<slug>` from the latest main."""
        result = self._start(BranchKind.HOTFIX, ticket=ticket, description=description)
        if isinstance(result, Ok):
            self.next_steps(
                "Next steps:",
                [
                    "1. Commit the fix (e.g. fix: ...)",
                    "2. Ship directly to main (hotfixes skip staging):",
                    "     pnpm run git:ship patch",
                ],
            )
        return result

    def _start(
        self, kind: BranchKind, *, ticket: str, description: str
    ) -> Result[str, WorkflowError]:
        name_r = build_branch_name(kind, ticket, description, prefix=self._config.ticket.prefix)
        if isinstance(name_r, Err):
            return Err(from_branch_error(name_r.error))
        branch = name_r.value

        self._console.print(f"Creating {kind.value} branch", Style.HEADER)
        self._console.print(f"Branch: {branch}", Style.HIGHLIGHT)
        self._console.newline()

        clean = self.require_clean_tree(f"starting a {kind.value} branch")
        if isinstance(clean, Err):
            return clean

        if self._repo.branch_exists(branch):
            return Err(
                WorkflowError(
                    kind="usage",
                    message=f"Branch '{branch}' already exists",
                    hint=f"Switch to it with: git checkout {branch}",
                )
            )

        self.step(f"Fetching latest from {self.remote}...")
        r = self.git_steps(
            lambda: self._repo.fetch(self.remote),
            lambda: self._repo.checkout(self.main),
            lambda: self._repo.pull(self.remote, self.main),
        )
        if isinstance(r, Err):
            return r

        self.step(f"Creating {branch} from {self.main}...")
        r = self.git(self._repo.create_branch(branch))
        if isinstance(r, Err):
            return r

        self.step("Pushing branch to remote...")
        r = self.git(self._repo.push(self.remote, branch))
        if isinstance(r, Err):
            return r

        self._console.newline()
        self._console.banner(f"{kind.value.capitalize()} branch created!")
        return Ok(branch)

    def sync_with_main(self) -> Result[int, WorkflowError]:
        """Merge the remote main into the current feature branch.

        Returns the number of commits that were behind (0 = already current).
        """
        branch_r = self.current_branch()
        if isinstance(branch_r, Err):
            return branch_r
        branch = branch_r.value

        kind_ok = self.require_kind(branch, (BranchKind.FEATURE, BranchKind.HOTFIX))
        if isinstance(kind_ok, Err):
            return kind_ok

        clean = self.require_clean_tree("syncing")
        if isinstance(clean, Err):
            return clean

        self.step(f"Fetching latest from {self.remote}...")
        r = self.git(self._repo.fetch(self.remote))
        if isinstance(r, Err):
            return r

        upstream = f"{self.remote}/{self.main}"
        behind_r = self._repo.count_commits(f"HEAD..{upstream}")
        behind = behind_r.value if isinstance(behind_r, Ok) else 0
        if behind == 0:
            self._console.success(f"{branch} is up to date with {self.main}")
            return Ok(0)

        self._console.print(f"{branch} is {behind} commit(s) behind {self.main}", Style.WARNING)
        self.step(f"Merging {upstream}...")
        merged = self._repo.merge(upstream, message=f"chore: sync with {self.main}")
        if isinstance(merged, Err):
            return Err(conflict_error(merged.error))

        self._console.banner("Sync complete!")
        self.next_steps("Push when ready:", [f"git push {self.remote} {branch}"])
        return Ok(behind)
