"""Shipping to production: the squash-merge PR into main.

A release branch normally goes through staging first; `ship` checks that with
gh and asks before skipping it. Hotfix branches go straight to main.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from rbi.core.branch import BranchKind, Bump, build_pr_title
from rbi.core.result import Err, Ok, Result
from rbi.output.console import Style
from rbi.services import gh
from rbi.services.base import WorkflowService
from rbi.services.errors import WorkflowError
from rbi.services.gh import PullRequest

MERGE_CHECKLIST = (
    "- All status checks have passed",
    "- Required approvals are present",
    "- PR title starts with [major], [minor], or [patch]",
    "- There are no merge conflicts",
)

AFTER_MERGE = [
    "- Tag will be auto-created by GitHub Actions",
    "- Release branch will be auto-deleted",
    "- Staging will be auto-synced from main",
]

_GITHUB_REMOTE_RE = re.compile(
    r"^(?:https://|ssh://git@|git@)github\.com[:/](?P<slug>[^/]+/[^/]+?)(?:\.git)?/?$"
)


@dataclass(frozen=True, slots=True)
class ShipResult:
    branch: str
    title: str
    url: str | None  # None when gh is not installed


def github_web_url(remote_url: str | None) -> str | None:
    """git@github.com:o/r.git | https://github.com/o/r.git -> https://github.com/o/r"""
    if not remote_url:
        return None
    m = _GITHUB_REMOTE_RE.match(remote_url.strip())
    if m is None:
        return None
    return f"https://github.com/{m.group('slug')}"


class ShipService(WorkflowService):
    def ship(
        self,
        *,
        bump: Bump,
        description: str | None = None,
        override: bool = False,
    ) -> Result[ShipResult, WorkflowError]:
        """Push the current release/hotfix branch and open its PR to main."""
        branch_r = self.current_branch()
        if isinstance(branch_r, Err):
            return branch_r
        branch = branch_r.value

        kind_ok = self.require_kind(branch, (BranchKind.RELEASE, BranchKind.HOTFIX))
        if isinstance(kind_ok, Err):
            return kind_ok

        self._console.print(f"Preparing PR to {self.main}", Style.HEADER)
        self._console.newline()
        self._console.print(f"Source branch: {branch}", Style.HIGHLIGHT)
        self._console.print(f"Bump type:     [{bump}]", Style.HIGHLIGHT)
        self._console.newline()

        clean = self.require_clean_tree("shipping")
        if isinstance(clean, Err):
            return clean

        # Title is built before anything is pushed so a bad branch name fails early.
        desc_r = self.describe(branch, description=description)
        if isinstance(desc_r, Err):
            err = desc_r.error
            if err.kind == "missing_description":
                return Err(
                    WorkflowError(
                        kind=err.kind,
                        message=err.message,
                        hint="You can provide a custom description:",
                        guidance=(f'pnpm run git:ship {bump} "your description here"',),
                    )
                )
            return desc_r
        desc = desc_r.value
        title = build_pr_title(bump, desc.commit_type, desc.ticket_id or "", desc.text)

        has_gh = gh.gh_available()
        if desc.kind is BranchKind.RELEASE and has_gh:
            staged = self._check_staging(branch, bump=bump, override=override)
            if isinstance(staged, Err):
                return staged

        self.step(f"Pushing branch to {self.remote}...")
        r = self.git(self._repo.push(self.remote, branch))
        if isinstance(r, Err):
            return r
        self._console.newline()

        if not has_gh:
            self._print_manual_instructions(branch, title)
            return Ok(ShipResult(branch=branch, title=title, url=None))

        self.step(f"Creating PR to {self.main}...")
        root = self._workspace.root
        existing = gh.list_prs(workspace_root=root, head=branch, base=self.main)
        if isinstance(existing, Err):
            return existing

        if existing.value:
            self._console.print("PR already exists for this branch", Style.WARNING)
            url = existing.value[0].url
        else:
            created = gh.create_pr(
                workspace_root=root,
                base=self.main,
                head=branch,
                title=title,
                body=f"Ship {branch} to production.\n\nSquash merge of {branch}.",
            )
            if isinstance(created, Err):
                return created
            url = created.value

        self._console.newline()
        self._console.banner(f"PR created to {self.main}!")
        self._console.print(f"PR URL: {url}", Style.INFO)
        self.next_steps("After PR is merged:", AFTER_MERGE)
        return Ok(ShipResult(branch=branch, title=title, url=url))

    def _check_staging(self, branch: str, *, bump: Bump, override: bool) -> Result[None, WorkflowError]:
        root = self._workspace.root
        open_r = gh.list_prs(workspace_root=root, head=branch, base=self.staging, state="open")
        if isinstance(open_r, Err):
            return open_r
        if open_r.value:
            pr = open_r.value[0]
            if not override:
                return Err(
                    WorkflowError(
                        kind="open_staging_pr",
                        message=f"Open PR #{pr.number} to {self.staging} exists",
                        hint=f"Please merge or close the {self.staging} PR before shipping to {self.main}.",
                        guidance=(
                            f"URL: {pr.url}",
                            f"To override, use: pnpm run git:ship {bump} --override",
                        ),
                    )
                )
            self._console.warning(f"Overriding open {self.staging} PR #{pr.number}")
            self._console.newline()

        merged_r = gh.list_prs(workspace_root=root, head=branch, base=self.staging, state="merged")
        if isinstance(merged_r, Err):
            return merged_r
        if merged_r.value:
            self.step(f"Staging PR #{merged_r.value[0].number} was merged. Proceeding to {self.main}...")
            self._console.newline()
            return Ok(None)

        self._console.warning(f"No merged PR to {self.staging} found for this branch")
        self._console.print(f"The workflow expects: release -> {self.staging} (PR) -> {self.main} (PR)")
        self._console.newline()
        if not self.ask(f"Skip {self.staging} and PR directly to {self.main}?"):
            return Err(
                WorkflowError(
                    kind="aborted",
                    message=f"Not shipping without a merged {self.staging} PR",
                    hint="Run 'pnpm run git:to-staging' first, then merge the PR.",
                )
            )
        return Ok(None)

    def _print_manual_instructions(self, branch: str, title: str) -> None:
        self._console.warning("gh CLI not found - showing manual instructions")
        self._console.newline()
        self._console.banner("Branch pushed! Now create a PR")
        lines = [f'gh pr create --base {self.main} --title "{title}"']
        web = self._config.github.compare_url or github_web_url(self._repo.remote_url(self.remote))
        if web:
            lines += ["", "Or via GitHub UI:", f"{web.rstrip('/')}/compare/{self.main}...{branch}"]
        self.next_steps(f"Create PR to {self.main}:", lines)
        self.next_steps("After PR is merged:", AFTER_MERGE)

    def merge_main(self, number: int) -> Result[PullRequest, WorkflowError]:
        """Squash-merge an open PR into main and delete its branch."""
        pr_r = self.mergeable_pr(
            number, base=self.main, other_base=self.staging, other_command="git:merge-staging"
        )
        if isinstance(pr_r, Err):
            return pr_r
        pr = pr_r.value

        head_kind = pr.head.partition("/")[0]
        if head_kind not in (BranchKind.RELEASE.value, BranchKind.HOTFIX.value):
            self._console.warning(f"PR is from '{pr.head}'")
            self._console.print(f"Only release/* and hotfix/* branches should merge to {self.main}.")
            self._console.newline()
            if not self.ask("Continue anyway?"):
                return Err(
                    WorkflowError(
                        kind="aborted",
                        message=f"Not merging '{pr.head}' into {self.main}",
                    )
                )

        self._console.print(f"Merging PR to {self.main}", Style.HEADER)
        self._console.newline()
        self._console.print(f"PR:     #{pr.number} - {pr.title}", Style.HIGHLIGHT)
        self._console.print(f"From:   {pr.head}", Style.HIGHLIGHT)
        self._console.print("Method: squash merge (clean production history)")
        self._console.newline()

        merged = gh.merge_pr(
            workspace_root=self._workspace.root,
            number=number,
            method="squash",
            delete_branch=True,
        )
        if isinstance(merged, Err):
            return Err(
                WorkflowError(
                    kind="gh_failed",
                    message=merged.error.message,
                    hint="Check if:",
                    guidance=MERGE_CHECKLIST,
                )
            )

        self._console.newline()
        self._console.banner(f"PR #{pr.number} merged to {self.main}!")
        self.next_steps(
            "What happens next:",
            [
                "- Tag will be auto-created by GitHub Actions",
                "- Release branch has been deleted",
                "- Staging will be auto-synced from main",
            ],
        )
        self._console.warning(f"IMPORTANT: Do NOT manually sync {self.staging}!")
        self._console.print(f"  - {self.staging} will auto-sync from {self.main} in 2-3 minutes")
        return Ok(pr)
