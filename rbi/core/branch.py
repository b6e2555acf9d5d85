"""Branch-name convention parser and PR-title builder.

Branches that carry work follow the convention

    <kind>/<PREFIX>-<id>-<description-words>

e.g. `release/CU-doc1-workflow-docs`. A BranchDescriptor is derived from the
current branch name on demand and never stored.

PR titles to main follow

    [<bump>] <commit-type>(<ticket>): <description>

e.g. `[minor] feat(CU-doc1): workflow docs`, where the commit type is `fix`
for hotfix branches and `feat` for everything else.

Usage:
    match parse_branch("release/CU-doc1-workflow-docs"):
        case Ok(desc):
            title = build_pr_title("minor", desc.commit_type, desc.ticket_id, desc.text)
        case Err(error):
            print(error.message)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from .config import MissingTicketPolicy
from .result import Err, Ok, Result

__all__ = [
    "BUMP_TYPES",
    "BranchDescriptor",
    "BranchError",
    "BranchKind",
    "Bump",
    "CommitType",
    "build_branch_name",
    "build_pr_title",
    "build_staging_title",
    "commit_type_for",
    "is_valid_branch_name",
    "is_valid_pr_title",
    "normalize_ticket",
    "parse_branch",
    "parse_bump",
    "slugify",
]

Bump = Literal["major", "minor", "patch"]
CommitType = Literal["feat", "fix"]

BUMP_TYPES: tuple[Bump, ...] = ("major", "minor", "patch")

_TICKET_ID_RE = re.compile(r"^[a-z0-9]+$")
_SLUG_INVALID_RE = re.compile(r"[^a-z0-9]+")


class BranchKind(StrEnum):
    """Branch kind, taken from the branch name's path prefix."""

    FEATURE = "feature"
    RELEASE = "release"
    HOTFIX = "hotfix"
    STAGING = "staging"
    MAIN = "main"

    @property
    def is_work_branch(self) -> bool:
        """True for kinds that carry a ticket and description."""
        return self in (BranchKind.FEATURE, BranchKind.RELEASE, BranchKind.HOTFIX)


@dataclass(frozen=True, slots=True)
class BranchError:
    """A branch name that does not follow the convention.

    Attributes:
        kind: What is wrong with the name
        branch: The offending branch name
        message: Human-readable error
        hint: Suggested fix, if any
    """

    kind: Literal["unknown_kind", "missing_ticket", "missing_description", "invalid_ticket"]
    branch: str
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class BranchDescriptor:
    """Parsed view of a branch name.

    Attributes:
        kind: Branch kind
        ticket_id: Ticket id (e.g. "CU-doc1"), None for main/staging
        description: Description words, in branch order
        sentinel_ticket: True when ticket_id is the configured sentinel
    """

    kind: BranchKind
    ticket_id: str | None = None
    description: tuple[str, ...] = ()
    sentinel_ticket: bool = False

    @property
    def text(self) -> str:
        """Description as a space-separated phrase."""
        return " ".join(self.description)

    @property
    def slug(self) -> str:
        """Description words joined with hyphens."""
        return "-".join(self.description)

    @property
    def commit_type(self) -> CommitType:
        return commit_type_for(self.kind)

    @property
    def name(self) -> str:
        """Rebuild the branch name from its parts."""
        if not self.kind.is_work_branch:
            return self.kind.value
        parts = [p for p in (self.ticket_id if not self.sentinel_ticket else None, self.slug) if p]
        return f"{self.kind.value}/{'-'.join(parts)}"


def commit_type_for(kind: BranchKind) -> CommitType:
    """hotfix branches ship fixes, everything else ships features."""
    return "fix" if kind == BranchKind.HOTFIX else "feat"


def parse_bump(value: str) -> Bump | None:
    v = value.strip().lower()
    for bump in BUMP_TYPES:
        if v == bump:
            return bump
    return None


def _work_branch_re(prefix: str) -> re.Pattern[str]:
    return re.compile(
        rf"^(?P<kind>feature|release|hotfix)/(?P<ticket>{re.escape(prefix)}-[a-z0-9]+)"
        rf"(?:-(?P<rest>.*))?$"
    )


def parse_branch(
    branch: str,
    *,
    prefix: str = "CU",
    missing_ticket: MissingTicketPolicy = "error",
    sentinel: str = "MISC",
    description: str | None = None,
    require_description: bool = True,
) -> Result[BranchDescriptor, BranchError]:
    """Parse a branch name into a BranchDescriptor.

    Args:
        branch: Branch name, e.g. "feature/CU-abc1-add-login"
        prefix: Ticket prefix (without the trailing hyphen)
        missing_ticket: "error" rejects names without a ticket id,
            "sentinel" substitutes `sentinel` and keeps the whole suffix as
            the description
        sentinel: Ticket id used by the "sentinel" policy
        description: Explicit description; replaces the one in the name
        require_description: Reject names without description words

    Returns:
        Ok(BranchDescriptor) or Err(BranchError)
    """
    name = branch.strip()
    for fixed in (BranchKind.MAIN, BranchKind.STAGING):
        if name == fixed.value:
            return Ok(BranchDescriptor(kind=fixed))

    kind_part, sep, suffix = name.partition("/")
    try:
        kind = BranchKind(kind_part)
    except ValueError:
        kind = None
    if not sep or kind is None or not kind.is_work_branch:
        return Err(
            BranchError(
                kind="unknown_kind",
                branch=name,
                message=f"'{name}' is not a feature/*, release/* or hotfix/* branch",
            )
        )

    override = tuple(description.split()) if description and description.strip() else None

    m = _work_branch_re(prefix).match(name)
    if m is None:
        if missing_ticket == "error":
            return Err(
                BranchError(
                    kind="missing_ticket",
                    branch=name,
                    message=f"could not extract task ID from branch name: {name}",
                    hint=f"expected format: {kind.value}/{prefix}-{{taskid}}-{{description}}",
                )
            )
        words = override or tuple(w for w in suffix.split("-") if w)
        return _finish(
            BranchDescriptor(kind=kind, ticket_id=sentinel, description=words, sentinel_ticket=True),
            branch=name,
            require_description=require_description,
            prefix=prefix,
        )

    rest = m.group("rest") or ""
    words = override or (tuple(rest.split("-")) if rest else ())
    return _finish(
        BranchDescriptor(kind=kind, ticket_id=m.group("ticket"), description=words),
        branch=name,
        require_description=require_description,
        prefix=prefix,
    )


def _finish(
    desc: BranchDescriptor, *, branch: str, require_description: bool, prefix: str
) -> Result[BranchDescriptor, BranchError]:
    if require_description and not desc.text.strip():
        return Err(
            BranchError(
                kind="missing_description",
                branch=branch,
                message=f"could not extract description from branch name: {branch}",
                hint=(
                    f"expected format: {desc.kind.value}/{prefix}-{{taskid}}-{{description}}, "
                    "or pass a description explicitly"
                ),
            )
        )
    return Ok(desc)


def build_pr_title(bump: str, commit_type: str, ticket_id: str, description: str) -> str:
    """Build a PR title for main: `[bump] type(ticket): description`.

    No quoting or escaping is applied; the title is passed to gh as a single
    argument.
    """
    return f"[{bump}] {commit_type}({ticket_id}): {description}"


def build_staging_title(commit_type: str, ticket_id: str, description: str) -> str:
    """Build a PR title for staging (no bump, staging is never tagged)."""
    return f"{commit_type}({ticket_id}): {description}"


def normalize_ticket(raw: str, *, prefix: str = "CU") -> Result[str, BranchError]:
    """Normalize user input ("42", "cu-42", "CU-42") to "CU-42"."""
    value = raw.strip().lower()
    lead = f"{prefix.lower()}-"
    if value.startswith(lead):
        value = value[len(lead):]
    if not _TICKET_ID_RE.match(value):
        return Err(
            BranchError(
                kind="invalid_ticket",
                branch=raw,
                message=f"invalid task ID: {raw!r}",
                hint=f"use letters and digits only, e.g. {prefix}-86b2x1",
            )
        )
    return Ok(f"{prefix}-{value}")


def slugify(description: str) -> str:
    """Lower-case, hyphen-joined words; "" if nothing usable remains."""
    return _SLUG_INVALID_RE.sub("-", description.lower()).strip("-")


def build_branch_name(
    kind: BranchKind, ticket: str, description: str, *, prefix: str = "CU"
) -> Result[str, BranchError]:
    """Build `<kind>/<PREFIX>-<id>-<slug>` for a new work branch."""
    ticket_r = normalize_ticket(ticket, prefix=prefix)
    if isinstance(ticket_r, Err):
        return ticket_r

    slug = slugify(description)
    if not slug:
        return Err(
            BranchError(
                kind="missing_description",
                branch=f"{kind.value}/{ticket_r.value}",
                message="description is empty",
                hint="describe the work in a few words, e.g. \"add login form\"",
            )
        )
    return Ok(f"{kind.value}/{ticket_r.value}-{slug}")


def is_valid_branch_name(name: str, *, prefix: str = "CU") -> bool:
    """True for main, staging, or a well-formed work branch."""
    if name in (BranchKind.MAIN.value, BranchKind.STAGING.value):
        return True
    m = _work_branch_re(prefix).match(name)
    return m is not None and bool(m.group("rest"))


def is_valid_pr_title(title: str, *, prefix: str = "CU") -> bool:
    """True if title follows `[bump] feat|fix(PREFIX-id): description`."""
    pattern = rf"^\[(major|minor|patch)\] (feat|fix)\({re.escape(prefix)}-[a-z0-9]+\): \S.*$"
    return re.match(pattern, title) is not None
