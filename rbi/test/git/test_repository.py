"""Tests for git/repository.py against real throwaway repositories."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from rbi.core.result import Err, Ok
from rbi.git.repository import Repository

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _git(cwd: Path, *args: str) -> str:
    proc = subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True)
    return proc.stdout


@pytest.fixture
def repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Repository:
    """A work tree pushed to a bare `origin`, one commit on main."""
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(tmp_path / "gitconfig"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for var, value in {
        "GIT_AUTHOR_NAME": "Test",
        "GIT_AUTHOR_EMAIL": "test@example.com",
        "GIT_COMMITTER_NAME": "Test",
        "GIT_COMMITTER_EMAIL": "test@example.com",
    }.items():
        monkeypatch.setenv(var, value)

    origin = tmp_path / "origin.git"
    _git(tmp_path, "init", "--bare", "-b", "main", str(origin))
    work = tmp_path / "work"
    _git(tmp_path, "init", "-b", "main", str(work))
    _git(work, "remote", "add", "origin", str(origin))
    (work / "README.md").write_text("hello\n", encoding="utf-8")
    _git(work, "add", ".")
    _git(work, "commit", "-m", "chore: initial commit")
    _git(work, "push", "-u", "origin", "main")
    return Repository(work)


# =============================================================================
# Queries
# =============================================================================


class TestQueries:
    def test_current_branch(self, repo: Repository) -> None:
        assert repo.current_branch() == Ok("main")

    def test_detached_head_is_an_error(self, repo: Repository) -> None:
        _git(repo.path, "checkout", "--detach")
        assert isinstance(repo.current_branch(), Err)

    def test_uncommitted_changes(self, repo: Repository) -> None:
        assert repo.has_uncommitted_changes() == Ok(False)
        (repo.path / "README.md").write_text("changed\n", encoding="utf-8")
        assert repo.has_uncommitted_changes() == Ok(True)

    def test_untracked_files_do_not_count(self, repo: Repository) -> None:
        (repo.path / "new.txt").write_text("x\n", encoding="utf-8")
        assert repo.has_uncommitted_changes() == Ok(False)

    def test_staged_changes(self, repo: Repository) -> None:
        (repo.path / "new.txt").write_text("x\n", encoding="utf-8")
        assert repo.has_staged_changes() == Ok(False)
        _git(repo.path, "add", "new.txt")
        assert repo.has_staged_changes() == Ok(True)

    def test_branch_exists(self, repo: Repository) -> None:
        assert repo.branch_exists("main")
        assert not repo.branch_exists("staging")
        assert repo.remote_branch_exists("origin", "main")
        assert not repo.remote_branch_exists("origin", "staging")

    def test_count_commits(self, repo: Repository) -> None:
        _git(repo.path, "commit", "--allow-empty", "-m", "one")
        _git(repo.path, "commit", "--allow-empty", "-m", "two")
        assert repo.count_commits("origin/main..HEAD") == Ok(2)
        assert repo.count_commits("HEAD..origin/main") == Ok(0)

    def test_local_branches(self, repo: Repository) -> None:
        _git(repo.path, "branch", "staging")
        result = repo.local_branches()
        assert isinstance(result, Ok)
        assert sorted(result.value) == ["main", "staging"]

    def test_remote_url(self, repo: Repository, tmp_path: Path) -> None:
        assert repo.remote_url("origin") == str(tmp_path / "origin.git")
        assert repo.remote_url("upstream") is None


# =============================================================================
# Mutations
# =============================================================================


class TestMutations:
    def test_create_branch_and_push(self, repo: Repository) -> None:
        assert repo.create_branch("feature/CU-1-x") == Ok(None)
        assert repo.current_branch() == Ok("feature/CU-1-x")
        assert repo.push("origin", "feature/CU-1-x") == Ok(None)
        assert repo.remote_branch_exists("origin", "feature/CU-1-x")

    def test_checkout_missing_branch_fails(self, repo: Repository) -> None:
        result = repo.checkout("nope")
        assert isinstance(result, Err)
        assert result.error.command == "checkout nope"

    def test_merge_no_ff_creates_merge_commit(self, repo: Repository) -> None:
        repo.create_branch("feature/CU-1-x")
        (repo.path / "a.txt").write_text("a\n", encoding="utf-8")
        repo.add(["a.txt"])
        repo.commit("feat: a")
        repo.checkout("main")

        assert repo.merge("feature/CU-1-x", message="merge it", no_ff=True) == Ok(None)
        assert _git(repo.path, "log", "-1", "--format=%s").strip() == "merge it"
        parents = _git(repo.path, "log", "-1", "--format=%P").split()
        assert len(parents) == 2

    def test_merge_conflict_is_flagged(self, repo: Repository) -> None:
        repo.create_branch("other")
        (repo.path / "README.md").write_text("theirs\n", encoding="utf-8")
        repo.add(["README.md"])
        repo.commit("change on other")
        repo.checkout("main")
        (repo.path / "README.md").write_text("ours\n", encoding="utf-8")
        repo.add(["README.md"])
        repo.commit("change on main")

        result = repo.merge("other", message="merge other")
        assert isinstance(result, Err)
        assert result.error.conflict is True

    def test_commit_nothing_fails(self, repo: Repository) -> None:
        assert isinstance(repo.commit("empty"), Err)

    def test_rename_branch(self, repo: Repository) -> None:
        _git(repo.path, "branch", "master")
        assert repo.rename_branch("master", "trunk") == Ok(None)
        assert repo.branch_exists("trunk")
        assert not repo.branch_exists("master")

    def test_set_remote_url(self, repo: Repository) -> None:
        assert repo.set_remote_url("origin", "git@github.com:o/r.git") == Ok(None)
        assert repo.remote_url("origin") == "git@github.com:o/r.git"
