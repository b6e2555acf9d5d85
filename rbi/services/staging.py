"""UAT on staging: open the release PR and merge it with a merge commit."""

from __future__ import annotations

from rbi.core.branch import BranchKind, build_staging_title
from rbi.core.result import Err, Ok, Result
from rbi.output.console import Style
from rbi.services import gh
from rbi.services.base import WorkflowService
from rbi.services.errors import WorkflowError
from rbi.services.gh import PullRequest


class StagingService(WorkflowService):
    def to_staging(self) -> Result[str, WorkflowError]:
        """Push the current release branch and open (or reuse) its PR to staging.

        Returns the PR URL.
        """
        branch_r = self.current_branch()
        if isinstance(branch_r, Err):
            return branch_r
        branch = branch_r.value

        kind_ok = self.require_kind(
            branch,
            (BranchKind.RELEASE,),
            hint="Create the release branch first with: pnpm run git:release",
        )
        if isinstance(kind_ok, Err):
            return kind_ok

        desc_r = self.describe(branch)
        if isinstance(desc_r, Err):
            return desc_r
        desc = desc_r.value

        clean = self.require_clean_tree("creating a staging PR")
        if isinstance(clean, Err):
            return clean

        ready = gh.ensure_gh_available()
        if isinstance(ready, Err):
            return ready

        self._console.print(f"Preparing PR to {self.staging}", Style.HEADER)
        self._console.print(f"Source branch: {branch}", Style.HIGHLIGHT)
        self._console.newline()

        self.step(f"Pushing branch to {self.remote}...")
        r = self.git(self._repo.push(self.remote, branch))
        if isinstance(r, Err):
            return r

        root = self._workspace.root
        existing = gh.list_prs(workspace_root=root, head=branch, base=self.staging)
        if isinstance(existing, Err):
            return existing

        if existing.value:
            pr = existing.value[0]
            self._console.print(f"PR #{pr.number} to {self.staging} already exists", Style.WARNING)
            url = pr.url
        else:
            title = build_staging_title(desc.commit_type, desc.ticket_id or "", desc.text)
            self.step(f"Creating PR: {title}")
            created = gh.create_pr(
                workspace_root=root,
                base=self.staging,
                head=branch,
                title=title,
                body=f"UAT for {branch}.\n\nMerge commit into {self.staging}.",
            )
            if isinstance(created, Err):
                return created
            url = created.value

        self._console.newline()
        self._console.banner(f"PR to {self.staging} ready!")
        self._console.print(f"PR URL: {url}", Style.INFO)
        self.next_steps(
            "Next steps:",
            [
                "1. Wait for checks, then merge it:",
                "     pnpm run git:merge-staging <PR-number>",
                "2. After UAT approval, ship to main:",
                "     pnpm run git:ship <major|minor|patch>",
            ],
        )
        return Ok(url)

    def merge_staging(self, number: int) -> Result[PullRequest, WorkflowError]:
        """Merge an open PR into staging with a merge commit."""
        pr_r = self.mergeable_pr(
            number, base=self.staging, other_base=self.main, other_command="git:merge-main"
        )
        if isinstance(pr_r, Err):
            return pr_r
        pr = pr_r.value

        self._console.print(f"Merging PR to {self.staging}", Style.HEADER)
        self._console.newline()
        self._console.print(f"PR:     #{pr.number} - {pr.title}", Style.HIGHLIGHT)
        self._console.print("Method: merge commit (preserves history for UAT iterations)")
        self._console.newline()

        merged = gh.merge_pr(workspace_root=self._workspace.root, number=number, method="merge")
        if isinstance(merged, Err):
            return Err(
                WorkflowError(
                    kind="gh_failed",
                    message=merged.error.message,
                    hint="Check if:",
                    guidance=(
                        "- All status checks have passed",
                        "- Required approvals are present",
                        "- There are no merge conflicts",
                    ),
                )
            )

        self._console.newline()
        self._console.banner(f"PR #{pr.number} merged to {self.staging}!")
        self.next_steps(
            "Next steps:",
            [
                "1. Test in staging environment",
                "2. When ready, ship to main:",
                "     pnpm run git:ship <major|minor|patch>",
            ],
        )
        return Ok(pr)
