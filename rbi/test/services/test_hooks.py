from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from rbi.core.config import BranchesConfig, Config
from rbi.core.result import Err, Ok, Result
from rbi.core.workspace import Workspace
from rbi.output.console import MockConsole
from rbi.services.hooks import HookService, pushed_branches

ZERO = "0" * 40
SHA = "a" * 40


@dataclass
class FakeRepo:
    branch: str | None

    def current_branch(self) -> Result[str, str]:
        if self.branch is None:
            return Err("HEAD is detached")
        return Ok(self.branch)


def _hooks(tmp_path: Path, branch: str | None, config: Config | None = None) -> HookService:
    service = HookService(workspace=Workspace(root=tmp_path), config=config or Config(), console=MockConsole())
    service._repo = FakeRepo(branch)  # pyright: ignore[reportAttributeAccessIssue]
    return service


def test_pushed_branches() -> None:
    lines = [
        f"refs/heads/feature/CU-1-x {SHA} refs/heads/feature/CU-1-x {ZERO}",
        f"refs/tags/v1.0.0 {SHA} refs/tags/v1.0.0 {ZERO}",
        "",
        f"refs/heads/main {SHA} refs/heads/main {SHA}\n",
    ]
    assert pushed_branches(lines) == ["feature/CU-1-x", "main"]


class TestGuards:
    @pytest.mark.parametrize("branch", ["main", "staging"])
    def test_commit_on_protected_branch(self, tmp_path: Path, branch: str) -> None:
        result = _hooks(tmp_path, branch).pre_commit()
        assert isinstance(result, Err)
        assert result.error.kind == "protected_branch"
        assert result.error.message == f"Direct commit to '{branch}' is not allowed"

    def test_commit_on_feature_branch(self, tmp_path: Path) -> None:
        assert _hooks(tmp_path, "feature/CU-1-x").pre_commit() == Ok(None)

    def test_detached_head_is_allowed(self, tmp_path: Path) -> None:
        assert _hooks(tmp_path, None).pre_commit() == Ok(None)

    def test_merge_commit_on_staging(self, tmp_path: Path) -> None:
        result = _hooks(tmp_path, "staging").pre_merge_commit()
        assert isinstance(result, Err)

    def test_configured_branch_names(self, tmp_path: Path) -> None:
        config = Config(branches=BranchesConfig(main="prod", staging="uat"))
        assert isinstance(_hooks(tmp_path, "prod", config).pre_commit(), Err)
        assert _hooks(tmp_path, "main", config).pre_commit() == Ok(None)

    def test_push_to_main_from_feature_branch(self, tmp_path: Path) -> None:
        lines = [f"refs/heads/feature/CU-1-x {SHA} refs/heads/main {SHA}"]
        result = _hooks(tmp_path, "feature/CU-1-x").pre_push(lines)
        assert isinstance(result, Err)
        assert "'main'" in result.error.message

    def test_push_of_work_branch(self, tmp_path: Path) -> None:
        lines = [f"refs/heads/release/CU-1-x {SHA} refs/heads/release/CU-1-x {ZERO}"]
        assert _hooks(tmp_path, "release/CU-1-x").pre_push(lines) == Ok(None)

    def test_push_without_ref_lines_checks_current_branch(self, tmp_path: Path) -> None:
        assert isinstance(_hooks(tmp_path, "main").pre_push(), Err)


class TestChecks:
    def test_valid_branch_name(self, tmp_path: Path) -> None:
        assert _hooks(tmp_path, None).check_branch_name("feature/CU-doc1-workflow-docs") == Ok(None)

    def test_invalid_branch_name(self, tmp_path: Path) -> None:
        result = _hooks(tmp_path, None).check_branch_name("bugfix/login")
        assert isinstance(result, Err)
        assert result.error.kind == "invalid_branch"
        assert "feature/CU-<taskid>-<description>" in result.error.guidance

    def test_valid_pr_title(self, tmp_path: Path) -> None:
        assert _hooks(tmp_path, None).check_pr_title("[patch] fix(CU-1): null login") == Ok(None)

    def test_invalid_pr_title(self, tmp_path: Path) -> None:
        result = _hooks(tmp_path, None).check_pr_title("fix login")
        assert isinstance(result, Err)
        assert result.error.kind == "invalid_title"
