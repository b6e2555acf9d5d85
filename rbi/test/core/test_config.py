"""Tests for rbi.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from rbi.core.config import (
    BranchesConfig,
    Config,
    TicketConfig,
    load_config,
    load_config_or_default,
)
from rbi.core.result import Err, Ok


class TestDefaults:
    def test_config_defaults(self) -> None:
        config = Config()
        assert config.remote == "origin"
        assert config.branches.main == "main"
        assert config.branches.staging == "staging"
        assert config.ticket.prefix == "CU"
        assert config.ticket.missing == "error"
        assert config.github.compare_url is None

    def test_protected_branches(self) -> None:
        assert BranchesConfig(main="trunk").protected == ("trunk", "staging")

    def test_frozen(self) -> None:
        config = TicketConfig()
        with pytest.raises(AttributeError):
            config.prefix = "X"  # type: ignore[misc]


class TestFromDict:
    def test_empty_dict_uses_defaults(self) -> None:
        assert Config.from_dict({}) == Config()

    def test_partial_override(self) -> None:
        config = Config.from_dict(
            {
                "remote": "upstream",
                "branches": {"staging": "uat"},
                "ticket": {"missing": "sentinel", "sentinel": "NOTICKET"},
            }
        )
        assert config.remote == "upstream"
        assert config.branches.main == "main"
        assert config.branches.staging == "uat"
        assert config.ticket.missing == "sentinel"
        assert config.ticket.sentinel == "NOTICKET"

    def test_invalid_missing_policy(self) -> None:
        with pytest.raises(ValueError, match="ticket.missing"):
            Config.from_dict({"ticket": {"missing": "ignore"}})

    def test_wrong_types_fall_back_to_defaults(self) -> None:
        config = Config.from_dict({"remote": 3, "branches": "main"})
        assert config.remote == "origin"
        assert config.branches == BranchesConfig()


class TestLoadConfig:
    def test_load_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / ".rbi.toml"
        path.write_text(
            '[ticket]\nprefix = "JIRA"\n\n[github]\ncompare_url = "https://github.com/o/r"\n',
            encoding="utf-8",
        )
        result = load_config(path)
        assert isinstance(result, Ok)
        assert result.value.ticket.prefix == "JIRA"
        assert result.value.github.compare_url == "https://github.com/o/r"

    def test_missing_file_is_error(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / ".rbi.toml")
        assert isinstance(result, Err)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / ".rbi.toml"
        path.write_text("[ticket\n", encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message

    def test_invalid_structure(self, tmp_path: Path) -> None:
        path = tmp_path / ".rbi.toml"
        path.write_text('[ticket]\nmissing = "maybe"\n', encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert result.error.path == path


class TestLoadConfigOrDefault:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        result = load_config_or_default(tmp_path / ".rbi.toml")
        assert result == Ok(Config())

    def test_broken_file_is_still_an_error(self, tmp_path: Path) -> None:
        path = tmp_path / ".rbi.toml"
        path.write_text("not toml = = =", encoding="utf-8")
        assert isinstance(load_config_or_default(path), Err)
