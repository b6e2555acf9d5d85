"""Tests for rbi.output.console and rbi.output.errors."""

from __future__ import annotations

import pytest

from rbi.output.console import ConsoleProtocol, MockConsole, RichConsole, Style
from rbi.output.errors import print_workflow_error
from rbi.services.errors import WorkflowError


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.HIGHLIGHT) == "highlight"

    def test_all_styles_exist(self) -> None:
        expected = {"DEFAULT", "SUCCESS", "ERROR", "WARNING", "INFO", "DIM", "BOLD", "HEADER", "HIGHLIGHT"}
        assert {s.name for s in Style} == expected


class TestMockConsole:
    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("hello", Style.HIGHLIGHT)
        assert console.outputs[0].message == "hello"
        assert console.outputs[0].style == Style.HIGHLIGHT

    def test_prefixed_helpers(self) -> None:
        console = MockConsole()
        console.success("done")
        console.error("broken")
        console.warning("careful")
        assert console.messages == ["✓ done", "error: broken", "warning: careful"]
        assert console.has_success() and console.has_error() and console.has_warning()

    def test_banner_keeps_style(self) -> None:
        console = MockConsole()
        console.banner("Setup Complete!", Style.INFO)
        assert console.outputs[0].style == Style.INFO

    def test_find_and_count(self) -> None:
        console = MockConsole()
        console.print("PR #12 -> staging")
        console.print("PR #13 -> main")
        console.error("e")
        assert len(console.find("PR #")) == 2
        assert console.count(Style.ERROR) == 1

    def test_clear(self) -> None:
        console = MockConsole()
        console.newline()
        console.clear()
        assert console.outputs == []


class TestRichConsole:
    def test_satisfies_protocol(self, capsys: pytest.CaptureFixture[str]) -> None:
        def use_console(c: ConsoleProtocol) -> None:
            c.print("[not markup]", Style.WARNING)
            c.success("ok [x]")
            c.header("Step 1")
            c.banner("Done")
            c.newline()

        use_console(RichConsole())
        out = capsys.readouterr().out
        assert "[not markup]" in out
        assert "ok [x]" in out
        assert "Done" in out


class TestPrintWorkflowError:
    def test_usage_error_is_plain(self) -> None:
        console = MockConsole()
        print_workflow_error(WorkflowError(kind="wrong_branch", message="Not on a feature branch"), console)
        assert console.messages == ["error: Not on a feature branch"]

    def test_precondition_prefix(self) -> None:
        console = MockConsole()
        print_workflow_error(WorkflowError(kind="dirty_tree", message="You have uncommitted changes"), console)
        assert console.messages[0] == "error: ERROR: You have uncommitted changes"

    def test_operation_prefix_hint_and_guidance(self) -> None:
        console = MockConsole()
        error = WorkflowError(
            kind="merge_conflict",
            message="Merge conflicts detected!",
            hint="Please resolve the conflicts and then:",
            guidance=("1. git add <resolved-files>", "2. git commit"),
        )
        print_workflow_error(error, console)
        assert console.messages == [
            "error: FAILED: Merge conflicts detected!",
            "",
            "Please resolve the conflicts and then:",
            "  1. git add <resolved-files>",
            "  2. git commit",
        ]
        assert console.outputs[2].style == Style.DIM


@pytest.mark.parametrize(
    ("kind", "category"),
    [
        ("usage", "usage"),
        ("aborted", "usage"),
        ("protected_branch", "usage"),
        ("gh_missing", "precondition"),
        ("branch_missing", "precondition"),
        ("gh_failed", "operation"),
        ("open_staging_pr", "operation"),
    ],
)
def test_error_categories(kind: str, category: str) -> None:
    error = WorkflowError(kind=kind, message="m")  # type: ignore[arg-type]
    assert error.category == category
