"""GitHub CLI (gh) wrappers.

Reads (`pr list`, `pr view`, `repo view`, `api GET`) retry transient network
errors; writes (`pr create`, `pr merge`, `api -X POST/PATCH/PUT`) run once.
All `--json` output is decoded with json.loads.
"""

from __future__ import annotations

import json
import shutil
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from time import sleep
from typing import Literal

from rbi.core.result import Err, Ok, Result
from rbi.core.structured import as_obj_list, as_str_dict, get_int, get_str
from rbi.platform.process import ProcessError
from rbi.platform.process import run as run_process
from rbi.services.errors import WorkflowError, WorkflowErrorKind
from rbi.services.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
)

PrState = Literal["open", "closed", "merged", "all"]
MergeMethod = Literal["merge", "squash"]

_PR_FIELDS = "number,url,title,state,baseRefName,headRefName"


@dataclass(frozen=True, slots=True)
class PullRequest:
    number: int
    url: str
    title: str
    state: str  # OPEN | CLOSED | MERGED
    base: str
    head: str

    @property
    def is_open(self) -> bool:
        return self.state == "OPEN"


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    if error.returncode == -1 and "timed out" in text:
        return True
    return any(marker in text for marker in markers)


def run_gh_read(
    *,
    workspace_root: Path,
    cmd: list[str],
    kind: WorkflowErrorKind,
    message: str,
    hint: str | None = None,
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> Result[str, WorkflowError]:
    attempts = max(1, retry_attempts)
    for attempt in range(attempts):
        result = run_process(cmd, cwd=workspace_root, timeout=timeout)
        if isinstance(result, Ok):
            return result

        error = result.error
        if attempt < attempts - 1 and _is_transient_gh_error(error):
            sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
            continue

        return Err(WorkflowError(kind=kind, message=message, hint=error.stderr.strip() or hint))

    return Err(WorkflowError(kind=kind, message=message, hint=hint))


def gh_available() -> bool:
    return shutil.which("gh") is not None


def ensure_gh_available() -> Result[None, WorkflowError]:
    if not gh_available():
        return Err(
            WorkflowError(
                kind="gh_missing",
                message="GitHub CLI (gh) is not installed",
                hint="Install it from: https://cli.github.com/",
            )
        )
    return Ok(None)


def ensure_gh_auth(*, workspace_root: Path) -> Result[None, WorkflowError]:
    result = run_process(["gh", "auth", "status"], cwd=workspace_root, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            WorkflowError(
                kind="gh_auth_required",
                message="GitHub CLI is not authenticated",
                hint="Run: gh auth login",
            )
        )
    return Ok(None)


def _decode_json(payload: str, *, what: str) -> Result[object, WorkflowError]:
    try:
        obj: object = json.loads(payload)
    except json.JSONDecodeError as e:
        return Err(WorkflowError(kind="gh_failed", message=f"invalid JSON from {what}: {e}"))
    return Ok(obj)


def _pr_from_obj(obj: object) -> PullRequest | None:
    data = as_str_dict(obj)
    if data is None:
        return None
    number = get_int(data, "number")
    if number is None:
        return None
    return PullRequest(
        number=number,
        url=get_str(data, "url") or "",
        title=get_str(data, "title") or "",
        state=get_str(data, "state") or "",
        base=get_str(data, "baseRefName") or "",
        head=get_str(data, "headRefName") or "",
    )


def list_prs(
    *,
    workspace_root: Path,
    head: str,
    base: str,
    state: PrState = "open",
) -> Result[list[PullRequest], WorkflowError]:
    result = run_gh_read(
        workspace_root=workspace_root,
        cmd=[
            "gh",
            "pr",
            "list",
            "--head",
            head,
            "--base",
            base,
            "--state",
            state,
            "--json",
            _PR_FIELDS,
        ],
        kind="gh_failed",
        message=f"failed to list PRs from {head} to {base}",
    )
    if isinstance(result, Err):
        return result

    obj = _decode_json(result.value, what="gh pr list")
    if isinstance(obj, Err):
        return obj

    raw = as_obj_list(obj.value)
    if raw is None:
        return Err(WorkflowError(kind="gh_failed", message="unexpected gh pr list payload"))

    return Ok([pr for pr in (_pr_from_obj(item) for item in raw) if pr is not None])


def view_pr(*, workspace_root: Path, number: int) -> Result[PullRequest, WorkflowError]:
    result = run_gh_read(
        workspace_root=workspace_root,
        cmd=["gh", "pr", "view", str(number), "--json", _PR_FIELDS],
        kind="pr_not_found",
        message=f"PR #{number} not found",
    )
    if isinstance(result, Err):
        return result

    obj = _decode_json(result.value, what="gh pr view")
    if isinstance(obj, Err):
        return obj

    pr = _pr_from_obj(obj.value)
    if pr is None:
        return Err(WorkflowError(kind="pr_not_found", message=f"PR #{number} not found"))
    return Ok(pr)


def create_pr(
    *,
    workspace_root: Path,
    base: str,
    head: str,
    title: str,
    body: str,
) -> Result[str, WorkflowError]:
    """Create a PR and return its URL."""
    result = run_process(
        [
            "gh",
            "pr",
            "create",
            "--base",
            base,
            "--head",
            head,
            "--title",
            title,
            "--body",
            body,
        ],
        cwd=workspace_root,
        timeout=GH_TIMEOUT_SECONDS,
    )
    if isinstance(result, Err):
        return Err(
            WorkflowError(
                kind="gh_failed",
                message=f"failed to create PR from {head} to {base}",
                hint=result.error.detail,
            )
        )

    # gh prints the new PR URL as the last line of stdout.
    lines = [ln.strip() for ln in result.value.splitlines() if ln.strip()]
    return Ok(lines[-1] if lines else "")


def merge_pr(
    *,
    workspace_root: Path,
    number: int,
    method: MergeMethod,
    delete_branch: bool = False,
) -> Result[None, WorkflowError]:
    cmd = ["gh", "pr", "merge", str(number), f"--{method}"]
    if delete_branch:
        cmd.append("--delete-branch")
    result = run_process(cmd, cwd=workspace_root, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            WorkflowError(
                kind="gh_failed",
                message="Merge failed",
                hint=result.error.detail,
            )
        )
    return Ok(None)


def repo_name_with_owner(*, workspace_root: Path) -> Result[str, WorkflowError]:
    result = run_gh_read(
        workspace_root=workspace_root,
        cmd=["gh", "repo", "view", "--json", "nameWithOwner"],
        kind="repo_unknown",
        message="Could not determine repository",
        hint="Make sure you're in a git repository with a GitHub remote.",
    )
    if isinstance(result, Err):
        return result

    obj = _decode_json(result.value, what="gh repo view")
    if isinstance(obj, Err):
        return obj

    data = as_str_dict(obj.value)
    name = get_str(data, "nameWithOwner") if data is not None else None
    if name is None:
        return Err(
            WorkflowError(
                kind="repo_unknown",
                message="Could not determine repository",
                hint="Make sure you're in a git repository with a GitHub remote.",
            )
        )
    return Ok(name)


def gh_api_json(*, workspace_root: Path, endpoint: str) -> Result[object, WorkflowError]:
    result = run_gh_read(
        workspace_root=workspace_root,
        cmd=["gh", "api", endpoint],
        kind="gh_failed",
        message=f"gh api failed: {endpoint}",
        hint=endpoint,
    )
    if isinstance(result, Err):
        return result
    return _decode_json(result.value, what=f"gh api {endpoint}")


def gh_api_write(
    *,
    workspace_root: Path,
    endpoint: str,
    method: Literal["POST", "PATCH", "PUT"],
    payload: Mapping[str, object],
) -> Result[None, WorkflowError]:
    """Send a JSON document to the GitHub REST API via `gh api --input -`."""
    result = run_process(
        ["gh", "api", endpoint, "-X", method, "--input", "-"],
        cwd=workspace_root,
        timeout=GH_TIMEOUT_SECONDS,
        input=json.dumps(payload),
    )
    if isinstance(result, Err):
        return Err(
            WorkflowError(
                kind="gh_failed",
                message=f"gh api {method} {endpoint} failed",
                hint=result.error.detail,
            )
        )
    return Ok(None)
