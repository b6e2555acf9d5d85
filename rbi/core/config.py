"""Typed configuration loading and access.

Configuration lives in an optional `.rbi.toml` at the repository root.
Every key has a default, so a repository without the file behaves like the
stock Release Branch Isolation setup (origin, main, staging, CU- tickets).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_table

__all__ = [
    "BranchesConfig",
    "Config",
    "ConfigError",
    "CONFIG_FILENAME",
    "GitHubConfig",
    "MissingTicketPolicy",
    "TicketConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILENAME = ".rbi.toml"

MissingTicketPolicy = Literal["error", "sentinel"]


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class BranchesConfig:
    """Names of the long-lived branches."""

    main: str = "main"
    staging: str = "staging"

    @property
    def protected(self) -> tuple[str, ...]:
        return (self.main, self.staging)


@dataclass(frozen=True, slots=True)
class TicketConfig:
    """Ticket id convention.

    `missing` applies to every command that needs a ticket id: "error" makes a
    branch without one a usage error, "sentinel" substitutes `sentinel`.
    """

    prefix: str = "CU"
    missing: MissingTicketPolicy = "error"
    sentinel: str = "MISC"


@dataclass(frozen=True, slots=True)
class GitHubConfig:
    """Optional GitHub details used when gh is not installed."""

    compare_url: str | None = None


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    remote: str = "origin"
    branches: BranchesConfig = field(default_factory=BranchesConfig)
    ticket: TicketConfig = field(default_factory=TicketConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        branches: StrDict = get_table(data, "branches") or {}
        ticket: StrDict = get_table(data, "ticket") or {}
        github: StrDict = get_table(data, "github") or {}

        missing = get_str(ticket, "missing") or "error"
        if missing not in ("error", "sentinel"):
            raise ValueError(f"ticket.missing must be 'error' or 'sentinel', got {missing!r}")

        return cls(
            remote=get_str(data, "remote") or "origin",
            branches=BranchesConfig(
                main=get_str(branches, "main") or "main",
                staging=get_str(branches, "staging") or "staging",
            ),
            ticket=TicketConfig(
                prefix=get_str(ticket, "prefix") or "CU",
                missing="sentinel" if missing == "sentinel" else "error",
                sentinel=get_str(ticket, "sentinel") or "MISC",
            ),
            github=GitHubConfig(compare_url=get_str(github, "compare_url")),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to .rbi.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load config if the file exists, defaults otherwise.

    A present but broken file is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
