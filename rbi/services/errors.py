from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from rbi.core.branch import BranchError
from rbi.git.repository import GitError

WorkflowErrorKind = Literal[
    # usage
    "usage",
    "wrong_branch",
    "missing_ticket",
    "missing_description",
    "invalid_branch",
    "invalid_title",
    "protected_branch",
    "aborted",
    # preconditions
    "dirty_tree",
    "gh_missing",
    "gh_auth_required",
    "missing_files",
    "no_package_manager",
    "repo_unknown",
    "config_invalid",
    "branch_missing",
    # external operations
    "merge_conflict",
    "git_failed",
    "gh_failed",
    "pr_not_found",
    "pr_wrong_base",
    "pr_not_open",
    "open_staging_pr",
    "io_failed",
]

ErrorCategory = Literal["usage", "precondition", "operation"]

_USAGE_KINDS = frozenset(
    {
        "usage",
        "wrong_branch",
        "missing_ticket",
        "missing_description",
        "invalid_branch",
        "invalid_title",
        "protected_branch",
        "aborted",
    }
)
_PRECONDITION_KINDS = frozenset(
    {
        "dirty_tree",
        "gh_missing",
        "gh_auth_required",
        "missing_files",
        "no_package_manager",
        "repo_unknown",
        "config_invalid",
        "branch_missing",
    }
)


@dataclass(frozen=True, slots=True)
class WorkflowError:
    """Terminal failure of a workflow command.

    Attributes:
        kind: Machine-readable reason
        message: One-line error
        hint: Short suggestion printed dimmed under the error
        guidance: Numbered/bulleted follow-up lines (conflict resolution etc.)
    """

    kind: WorkflowErrorKind
    message: str
    hint: str | None = None
    guidance: tuple[str, ...] = ()

    @property
    def category(self) -> ErrorCategory:
        if self.kind in _USAGE_KINDS:
            return "usage"
        if self.kind in _PRECONDITION_KINDS:
            return "precondition"
        return "operation"


def from_branch_error(error: BranchError) -> WorkflowError:
    kind: WorkflowErrorKind
    match error.kind:
        case "missing_ticket":
            kind = "missing_ticket"
        case "missing_description":
            kind = "missing_description"
        case _:
            kind = "invalid_branch"
    return WorkflowError(kind=kind, message=error.message, hint=error.hint)


def from_git_error(error: GitError, *, hint: str | None = None) -> WorkflowError:
    return WorkflowError(
        kind="git_failed",
        message=f"git {error.command} failed: {error.message}",
        hint=hint,
    )
