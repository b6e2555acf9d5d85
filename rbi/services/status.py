from __future__ import annotations

from dataclasses import dataclass, field

from rbi.core.branch import BranchDescriptor
from rbi.core.result import Err, Ok, Result
from rbi.output.console import Style
from rbi.services import gh
from rbi.services.base import WorkflowService
from rbi.services.errors import WorkflowError, from_git_error
from rbi.services.gh import PullRequest


@dataclass(frozen=True, slots=True)
class BranchStatus:
    branch: str
    descriptor: BranchDescriptor | None
    clean: bool
    ahead: int
    behind: int
    pull_requests: list[PullRequest] = field(default_factory=list)


class StatusService(WorkflowService):
    def status(self, *, fetch: bool = True) -> Result[BranchStatus, WorkflowError]:
        """Where the current branch stands relative to main and its PRs."""
        branch_r = self.current_branch()
        if isinstance(branch_r, Err):
            return branch_r
        branch = branch_r.value

        if fetch:
            # Offline is fine: counts then reflect the last fetch.
            fetched = self._repo.fetch(self.remote)
            if isinstance(fetched, Err):
                self._console.print(f"Could not fetch {self.remote}: {fetched.error.message}", Style.DIM)

        dirty_r = self._repo.has_uncommitted_changes()
        if isinstance(dirty_r, Err):
            return Err(from_git_error(dirty_r.error))

        upstream = f"{self.remote}/{self.main}"
        ahead, behind = 0, 0
        if self._repo.remote_branch_exists(self.remote, self.main):
            ahead_r = self._repo.count_commits(f"{upstream}..HEAD")
            behind_r = self._repo.count_commits(f"HEAD..{upstream}")
            ahead = ahead_r.value if isinstance(ahead_r, Ok) else 0
            behind = behind_r.value if isinstance(behind_r, Ok) else 0

        desc_r = self.describe(branch, require_description=False)
        descriptor = desc_r.value if isinstance(desc_r, Ok) else None

        prs: list[PullRequest] = []
        if descriptor is not None and descriptor.kind.is_work_branch and gh.gh_available():
            for base in (self.staging, self.main):
                listed = gh.list_prs(workspace_root=self._workspace.root, head=branch, base=base)
                if isinstance(listed, Ok):
                    prs.extend(listed.value)

        result = BranchStatus(
            branch=branch,
            descriptor=descriptor,
            clean=not dirty_r.value,
            ahead=ahead,
            behind=behind,
            pull_requests=prs,
        )
        self._print(result, desc_error=desc_r.error.message if isinstance(desc_r, Err) else None)
        return Ok(result)

    def _print(self, st: BranchStatus, *, desc_error: str | None) -> None:
        c = self._console
        c.header("Branch status")
        c.print(f"Branch:  {st.branch}", Style.HIGHLIGHT)

        if st.descriptor is not None:
            d = st.descriptor
            c.print(f"Kind:    {d.kind.value}")
            if d.ticket_id:
                note = " (sentinel)" if d.sentinel_ticket else ""
                c.print(f"Ticket:  {d.ticket_id}{note}")
            if d.description:
                c.print(f"Desc:    {d.text}")
        elif desc_error:
            c.warning(desc_error)

        if st.clean:
            c.success("Working tree clean")
        else:
            c.warning("Uncommitted changes")

        c.print(f"vs {self.remote}/{self.main}: {st.ahead} ahead, {st.behind} behind")
        if st.behind and st.descriptor is not None and st.descriptor.kind.is_work_branch:
            c.print("Run: pnpm run git:sync", Style.DIM)

        for pr in st.pull_requests:
            c.print(f"PR #{pr.number} -> {pr.base}: {pr.title} ({pr.url})", Style.INFO)
