"""Release branches: created from main, fed from exactly one feature branch.

`feature/CU-x-desc` is released as `release/CU-x-desc`: the release branch is
cut from the latest main and the feature is merged into it with --no-ff, so
the release carries nothing but that feature. Backs `git:release` and
`git:sync-feature`.
"""

from __future__ import annotations

from dataclasses import dataclass

from rbi.core.branch import BranchKind
from rbi.core.result import Err, Ok, Result
from rbi.output.console import Style
from rbi.services.base import WorkflowService, conflict_error
from rbi.services.errors import WorkflowError


@dataclass(frozen=True, slots=True)
class ReleaseBranches:
    feature: str
    release: str
    ticket_id: str


def release_branch_for(feature_branch: str) -> str:
    """feature/CU-xxx-desc -> release/CU-xxx-desc"""
    return f"{BranchKind.RELEASE.value}/{feature_branch.partition('/')[2]}"


def feature_branch_for(release_branch: str) -> str:
    """release/CU-xxx-desc -> feature/CU-xxx-desc"""
    return f"{BranchKind.FEATURE.value}/{release_branch.partition('/')[2]}"


class ReleaseService(WorkflowService):
    def _feature_context(self, *, action: str) -> Result[ReleaseBranches, WorkflowError]:
        branch_r = self.current_branch()
        if isinstance(branch_r, Err):
            return branch_r
        feature = branch_r.value

        kind_ok = self.require_kind(
            feature,
            (BranchKind.FEATURE,),
            hint=(
                "If you want to create a release without a feature branch, "
                "use git:hotfix instead."
            ),
        )
        if isinstance(kind_ok, Err):
            return kind_ok

        desc = self.describe(feature, require_description=False)
        if isinstance(desc, Err):
            return desc

        clean = self.require_clean_tree(action)
        if isinstance(clean, Err):
            return clean

        return Ok(
            ReleaseBranches(
                feature=feature,
                release=release_branch_for(feature),
                ticket_id=desc.value.ticket_id or self._config.ticket.sentinel,
            )
        )

    def create_release(self) -> Result[ReleaseBranches, WorkflowError]:
        """Cut release/<suffix> from main and merge the current feature into it."""
        ctx_r = self._feature_context(action="creating a release")
        if isinstance(ctx_r, Err):
            return ctx_r
        ctx = ctx_r.value

        self._console.print("Creating release branch", Style.HEADER)
        self._console.newline()
        self._console.print(f"Feature branch: {ctx.feature}", Style.HIGHLIGHT)
        self._console.print(f"Release branch: {ctx.release}", Style.HIGHLIGHT)
        self._console.newline()

        if self._repo.branch_exists(ctx.release):
            return Err(
                WorkflowError(
                    kind="usage",
                    message=f"Release branch '{ctx.release}' already exists",
                    hint="To bring new feature commits into it, use: pnpm run git:sync-feature",
                )
            )

        synced = self._sync_feature_with_main()
        if isinstance(synced, Err):
            return synced

        self.step(f"Fetching latest from {self.remote}...")
        r = self.git(self._repo.fetch(self.remote))
        if isinstance(r, Err):
            return r

        self.step(f"Checking out {self.main}...")
        r = self.git(self._repo.checkout(self.main))
        if isinstance(r, Err):
            return r
        r = self.git(self._repo.pull(self.remote, self.main))
        if isinstance(r, Err):
            return r

        self.step(f"Creating release branch from {self.main}...")
        r = self.git(self._repo.create_branch(ctx.release))
        if isinstance(r, Err):
            return r

        self.step("Merging feature branch into release (--no-ff)...")
        merged = self._repo.merge(
            ctx.feature,
            message=f"feat({ctx.ticket_id}): merge {ctx.feature} into release",
            no_ff=True,
        )
        if isinstance(merged, Err):
            return Err(conflict_error(merged.error))

        self.step("Pushing release branch to remote...")
        r = self.git(self._repo.push(self.remote, ctx.release))
        if isinstance(r, Err):
            return r

        self._console.newline()
        self._console.banner("Release branch created and pushed!")
        self._console.print(f"Release branch: {ctx.release}", Style.INFO)
        self.next_steps(
            "Next steps:",
            [
                "1. Create PR to staging for UAT:",
                "     pnpm run git:to-staging",
                "",
                "2. If UAT finds bugs, fix in feature branch then sync:",
                "     pnpm run git:sync-feature",
                "",
                "3. After UAT approval, ship to main:",
                "     pnpm run git:ship <major|minor|patch>",
            ],
        )
        return Ok(ctx)

    def _sync_feature_with_main(self) -> Result[None, WorkflowError]:
        self.step(f"Checking if feature branch is up to date with {self.main}...")
        r = self.git(self._repo.fetch(self.remote))
        if isinstance(r, Err):
            return r

        behind_r = self._repo.count_commits(f"HEAD..{self.remote}/{self.main}")
        behind = behind_r.value if isinstance(behind_r, Ok) else 0
        if behind == 0:
            self.step(f"Feature branch is up to date with {self.main}")
            return Ok(None)

        self._console.print(f"Feature branch is {behind} commit(s) behind {self.main}", Style.WARNING)
        self.step(f"Syncing feature branch with {self.main} first...")
        merged = self._repo.merge(
            f"{self.remote}/{self.main}",
            message=f"chore: sync with {self.main} before release",
        )
        if isinstance(merged, Err):
            return Err(conflict_error(merged.error, rerun="pnpm run git:release"))
        self.step("Sync complete!")
        return Ok(None)

    def sync_feature(self) -> Result[ReleaseBranches, WorkflowError]:
        """Merge new commits of the current feature into its release branch."""
        ctx_r = self._feature_context(action="syncing the release branch")
        if isinstance(ctx_r, Err):
            return ctx_r
        ctx = ctx_r.value

        self._console.print("Syncing feature into release", Style.HEADER)
        self._console.print(f"{ctx.feature} -> {ctx.release}", Style.HIGHLIGHT)
        self._console.newline()

        r = self.git(self._repo.fetch(self.remote))
        if isinstance(r, Err):
            return r

        if not self._repo.branch_exists(ctx.release) and not self._repo.remote_branch_exists(
            self.remote, ctx.release
        ):
            return Err(
                WorkflowError(
                    kind="branch_missing",
                    message=f"Release branch '{ctx.release}' does not exist",
                    hint="Create it first with: pnpm run git:release",
                )
            )

        r = self.git(self._repo.push(self.remote, ctx.feature))
        if isinstance(r, Err):
            return r

        self.step(f"Checking out {ctx.release}...")
        r = self.git(self._repo.checkout(ctx.release))
        if isinstance(r, Err):
            return r
        r = self.git(self._repo.pull(self.remote, ctx.release))
        if isinstance(r, Err):
            return r

        self.step("Merging feature branch into release (--no-ff)...")
        merged = self._repo.merge(
            ctx.feature,
            message=f"feat({ctx.ticket_id}): sync {ctx.feature} into release",
            no_ff=True,
        )
        if isinstance(merged, Err):
            return Err(conflict_error(merged.error))

        r = self.git(self._repo.push(self.remote, ctx.release))
        if isinstance(r, Err):
            return r

        r = self.git(self._repo.checkout(ctx.feature))
        if isinstance(r, Err):
            return r

        self._console.newline()
        self._console.banner("Release branch updated!")
        self.next_steps(
            "Next steps:",
            [
                "An open PR to staging picks up the new commits automatically.",
                "Otherwise create one with: pnpm run git:to-staging",
            ],
        )
        return Ok(ctx)
