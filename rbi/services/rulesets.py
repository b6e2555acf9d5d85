"""GitHub repository settings and branch rulesets for main and staging."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from rbi.core.result import Err, Ok, Result
from rbi.core.structured import StrDict, as_obj_list, as_str_dict, get_str
from rbi.output.console import Style
from rbi.services import gh
from rbi.services.base import WorkflowService
from rbi.services.errors import WorkflowError

MERGE_MESSAGE_SETTINGS: StrDict = {
    "squash_merge_commit_title": "PR_TITLE",
    "squash_merge_commit_message": "PR_BODY",
    "merge_commit_title": "PR_TITLE",
    "merge_commit_message": "PR_BODY",
}

WORKFLOW_PERMISSIONS: StrDict = {
    "default_workflow_permissions": "write",
    "can_approve_pull_request_reviews": True,
}


@dataclass(frozen=True, slots=True)
class RulesetSpec:
    name: str
    branch: str
    merge_method: str
    checks: tuple[str, ...]
    strict: bool
    block_force_push: bool
    summary: tuple[str, ...]

    def payload(self) -> StrDict:
        rules: list[object] = [
            {
                "type": "pull_request",
                "parameters": {
                    "required_approving_review_count": 0,
                    "dismiss_stale_reviews_on_push": False,
                    "require_code_owner_review": False,
                    "require_last_push_approval": False,
                    "required_review_thread_resolution": False,
                    "allowed_merge_methods": [self.merge_method],
                },
            },
            {
                "type": "required_status_checks",
                "parameters": {
                    "strict_required_status_checks_policy": self.strict,
                    "required_status_checks": [{"context": c} for c in self.checks],
                },
            },
        ]
        if self.block_force_push:
            rules.append({"type": "non_fast_forward"})
        rules.append({"type": "deletion"})

        return {
            "name": self.name,
            "target": "branch",
            "enforcement": "active",
            "conditions": {
                "ref_name": {
                    "include": [f"refs/heads/{self.branch}"],
                    "exclude": [],
                }
            },
            "rules": rules,
        }


def default_rulesets(*, main: str = "main", staging: str = "staging") -> tuple[RulesetSpec, ...]:
    return (
        RulesetSpec(
            name=f"{main}-protection",
            branch=main,
            merge_method="squash",
            checks=("validate-pr", "validate-title", "validate-commits", "validate-branch-name"),
            strict=True,
            block_force_push=True,
            summary=(
                "PRs must be squash merged (clean history)",
                "PR title becomes the commit message",
                "All status checks must pass",
                "No force push or deletion",
            ),
        ),
        RulesetSpec(
            name=f"{staging}-protection",
            branch=staging,
            merge_method="merge",
            checks=("validate-pr", "validate-branch-name"),
            strict=False,
            block_force_push=False,
            summary=(
                "PRs must use merge commit (preserves history)",
                "Basic status checks must pass",
                "Force push allowed (for reset operations)",
                "No deletion",
            ),
        ),
    )


def ruleset_names(payload: object) -> set[str]:
    """Names from a `GET repos/<repo>/rulesets` response."""
    items = as_obj_list(payload) or []
    names: set[str] = set()
    for item in items:
        data = as_str_dict(item)
        name = get_str(data, "name") if data is not None else None
        if name:
            names.add(name)
    return names


class RulesetsService(WorkflowService):
    def setup_rulesets(self) -> Result[list[str], WorkflowError]:
        """Apply repo settings and create missing rulesets.

        Returns the names of the rulesets that were created.
        """
        self._console.banner("GitHub Rulesets Setup\nRelease Branch Isolation Strategy", Style.INFO)
        self._console.newline()

        root = self._workspace.root
        for check in (gh.ensure_gh_available, lambda: gh.ensure_gh_auth(workspace_root=root)):
            ready = check()
            if isinstance(ready, Err):
                return ready

        repo_r = gh.repo_name_with_owner(workspace_root=root)
        if isinstance(repo_r, Err):
            return repo_r
        repo = repo_r.value
        self._console.print(f"Repository: {repo}", Style.INFO)
        self._console.newline()

        self._console.header("Step 1: Configuring repository settings...")
        self.step("Setting merge commit messages to use PR title...")
        r = gh.gh_api_write(
            workspace_root=root, endpoint=f"repos/{repo}", method="PATCH", payload=MERGE_MESSAGE_SETTINGS
        )
        if isinstance(r, Err):
            return r
        self._console.success("Squash merge will use PR title as commit message")
        self._console.success("Merge commit will use PR title as commit message")

        self.step("Setting GitHub Actions workflow permissions...")
        r = gh.gh_api_write(
            workspace_root=root,
            endpoint=f"repos/{repo}/actions/permissions/workflow",
            method="PUT",
            payload=WORKFLOW_PERMISSIONS,
        )
        if isinstance(r, Err):
            return r
        self._console.success("GitHub Actions has read/write permissions")
        self._console.success("GitHub Actions can create and approve PRs")
        self._console.newline()

        self._console.header("Step 2: Creating branch rulesets...")
        specs = default_rulesets(main=self.main, staging=self.staging)
        created = self._create_missing(repo, specs)
        if isinstance(created, Err):
            return created

        self._console.newline()
        self._console.banner("Setup Complete!")
        lines = [f"https://github.com/{repo}/settings/rules", "", "What these rulesets enforce:"]
        for spec in specs:
            lines += ["", f"{spec.branch} branch:", *(f"  - {s}" for s in spec.summary)]
        self.next_steps("View rulesets:", lines)
        return created

    def _create_missing(self, repo: str, specs: Sequence[RulesetSpec]) -> Result[list[str], WorkflowError]:
        root = self._workspace.root
        self._console.print("Checking for existing rulesets...", Style.WARNING)
        listed = gh.gh_api_json(workspace_root=root, endpoint=f"repos/{repo}/rulesets")
        # An unreadable list is treated as empty; POST then reports real problems.
        existing = ruleset_names(listed.value) if isinstance(listed, Ok) else set()

        created: list[str] = []
        for spec in specs:
            if spec.name in existing:
                self._console.warning(f"Ruleset '{spec.name}' already exists. Skipping.")
                continue

            self.step(f"Creating '{spec.name}' ruleset...")
            self._console.print(f"  - Merge method: {spec.merge_method} only")
            self._console.print(f"  - Required checks: {', '.join(spec.checks)}")
            r = gh.gh_api_write(
                workspace_root=root,
                endpoint=f"repos/{repo}/rulesets",
                method="POST",
                payload=spec.payload(),
            )
            if isinstance(r, Err):
                return r
            self._console.success(f"{spec.name} ruleset created")
            created.append(spec.name)
        return Ok(created)
