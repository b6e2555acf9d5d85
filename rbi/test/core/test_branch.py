"""Tests for rbi.core.branch (branch-name parser and PR-title builder)."""

from __future__ import annotations

import pytest

from rbi.core.branch import (
    BranchKind,
    build_branch_name,
    build_pr_title,
    build_staging_title,
    commit_type_for,
    is_valid_branch_name,
    is_valid_pr_title,
    normalize_ticket,
    parse_branch,
    parse_bump,
    slugify,
)
from rbi.core.result import Err, Ok


class TestParseBranch:
    @pytest.mark.parametrize(
        ("branch", "ticket", "words"),
        [
            ("feature/CU-doc1-workflow-docs", "CU-doc1", "workflow docs"),
            ("release/CU-doc1-workflow-docs", "CU-doc1", "workflow docs"),
            ("hotfix/CU-86b2x1-fix-null-login", "CU-86b2x1", "fix null login"),
            ("feature/CU-a-x", "CU-a", "x"),
        ],
    )
    def test_recovers_ticket_and_description(self, branch: str, ticket: str, words: str) -> None:
        result = parse_branch(branch)
        assert isinstance(result, Ok)
        desc = result.value
        assert desc.ticket_id == ticket
        assert desc.text == words
        assert slugify(desc.text) == branch.split(f"{ticket}-", 1)[1]
        assert desc.name == branch

    def test_kinds_map_to_commit_types(self) -> None:
        hotfix = parse_branch("hotfix/CU-1-a")
        release = parse_branch("release/CU-1-a")
        feature = parse_branch("feature/CU-1-a")
        assert isinstance(hotfix, Ok) and hotfix.value.commit_type == "fix"
        assert isinstance(release, Ok) and release.value.commit_type == "feat"
        assert isinstance(feature, Ok) and feature.value.commit_type == "feat"
        assert commit_type_for(BranchKind.HOTFIX) == "fix"

    @pytest.mark.parametrize("name", ["main", "staging"])
    def test_long_lived_branches(self, name: str) -> None:
        result = parse_branch(name)
        assert isinstance(result, Ok)
        assert result.value.kind == BranchKind(name)
        assert result.value.ticket_id is None
        assert not result.value.kind.is_work_branch

    @pytest.mark.parametrize("name", ["develop", "bugfix/CU-1-x", "feature", "feature-CU-1-x"])
    def test_unknown_kind(self, name: str) -> None:
        result = parse_branch(name)
        assert isinstance(result, Err)
        assert result.error.kind == "unknown_kind"

    def test_missing_ticket_is_an_error_by_default(self) -> None:
        result = parse_branch("feature/add-login")
        assert isinstance(result, Err)
        assert result.error.kind == "missing_ticket"
        assert "feature/CU-" in (result.error.hint or "")

    def test_missing_ticket_with_sentinel_policy(self) -> None:
        result = parse_branch("feature/add-login", missing_ticket="sentinel", sentinel="MISC")
        assert isinstance(result, Ok)
        assert result.value.ticket_id == "MISC"
        assert result.value.sentinel_ticket is True
        assert result.value.text == "add login"

    def test_uppercase_ticket_id_is_not_recognised(self) -> None:
        # ids are lower-case alphanumerics after the prefix
        result = parse_branch("feature/CU-ABC-thing")
        assert isinstance(result, Err)
        assert result.error.kind == "missing_ticket"

    def test_missing_description(self) -> None:
        result = parse_branch("release/CU-doc1")
        assert isinstance(result, Err)
        assert result.error.kind == "missing_description"

    def test_missing_description_names_the_branch_as_given(self) -> None:
        result = parse_branch("release/CU-abc1-")
        assert isinstance(result, Err)
        assert result.error.kind == "missing_description"
        assert result.error.branch == "release/CU-abc1-"
        assert result.error.message == "could not extract description from branch name: release/CU-abc1-"

    def test_missing_description_with_sentinel_names_the_branch_as_given(self) -> None:
        result = parse_branch("feature/--", missing_ticket="sentinel")
        assert isinstance(result, Err)
        assert result.error.kind == "missing_description"
        assert result.error.branch == "feature/--"

    def test_missing_description_allowed_when_not_required(self) -> None:
        result = parse_branch("release/CU-doc1", require_description=False)
        assert isinstance(result, Ok)
        assert result.value.ticket_id == "CU-doc1"
        assert result.value.description == ()

    def test_explicit_description_replaces_branch_words(self) -> None:
        result = parse_branch("release/CU-doc1", description="Document the  workflow")
        assert isinstance(result, Ok)
        assert result.value.text == "Document the workflow"

    def test_custom_prefix(self) -> None:
        result = parse_branch("feature/JIRA-12-thing", prefix="JIRA")
        assert isinstance(result, Ok)
        assert result.value.ticket_id == "JIRA-12"


class TestTitles:
    def test_pr_title(self) -> None:
        assert (
            build_pr_title("minor", "feat", "CU-doc1", "workflow docs")
            == "[minor] feat(CU-doc1): workflow docs"
        )

    def test_pr_title_keeps_shell_metacharacters_verbatim(self) -> None:
        title = build_pr_title("patch", "fix", "CU-1", 'quote " and $HOME')
        assert title == '[patch] fix(CU-1): quote " and $HOME'

    def test_staging_title(self) -> None:
        assert build_staging_title("feat", "CU-doc1", "workflow docs") == "feat(CU-doc1): workflow docs"

    def test_built_titles_validate(self) -> None:
        assert is_valid_pr_title(build_pr_title("major", "fix", "CU-9z", "x"))

    @pytest.mark.parametrize(
        "title",
        [
            "feat(CU-doc1): workflow docs",
            "[huge] feat(CU-doc1): workflow docs",
            "[minor] chore(CU-doc1): workflow docs",
            "[minor] feat(CU-doc1):",
            "[minor] feat(doc1): workflow docs",
        ],
    )
    def test_invalid_titles(self, title: str) -> None:
        assert not is_valid_pr_title(title)


class TestBranchNames:
    @pytest.mark.parametrize(("raw", "expected"), [("42", "CU-42"), ("cu-42", "CU-42"), ("CU-86B2x1", "CU-86b2x1")])
    def test_normalize_ticket(self, raw: str, expected: str) -> None:
        result = normalize_ticket(raw)
        assert isinstance(result, Ok)
        assert result.value == expected

    @pytest.mark.parametrize("raw", ["", "cu-", "4 2", "CU-4_2"])
    def test_normalize_ticket_rejects(self, raw: str) -> None:
        result = normalize_ticket(raw)
        assert isinstance(result, Err)
        assert result.error.kind == "invalid_ticket"

    def test_slugify(self) -> None:
        assert slugify("Add Login  Form!") == "add-login-form"
        assert slugify("  --  ") == ""

    def test_build_branch_name(self) -> None:
        result = build_branch_name(BranchKind.FEATURE, "doc1", "Workflow docs")
        assert isinstance(result, Ok)
        assert result.value == "feature/CU-doc1-workflow-docs"

    def test_build_branch_name_needs_description(self) -> None:
        result = build_branch_name(BranchKind.HOTFIX, "doc1", "!!!")
        assert isinstance(result, Err)
        assert result.error.kind == "missing_description"

    @pytest.mark.parametrize(
        ("name", "valid"),
        [
            ("main", True),
            ("staging", True),
            ("feature/CU-doc1-workflow-docs", True),
            ("hotfix/CU-1-x", True),
            ("release/CU-doc1", False),
            ("feature/workflow-docs", False),
            ("dev", False),
        ],
    )
    def test_is_valid_branch_name(self, name: str, valid: bool) -> None:
        assert is_valid_branch_name(name) is valid


def test_parse_bump() -> None:
    assert parse_bump("minor") == "minor"
    assert parse_bump(" PATCH ") == "patch"
    assert parse_bump("huge") is None
