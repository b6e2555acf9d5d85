"""Core domain types and logic."""

from .branch import (
    BranchDescriptor,
    BranchError,
    BranchKind,
    Bump,
    build_pr_title,
    parse_branch,
)
from .config import Config, ConfigError, load_config, load_config_or_default
from .errors import ErrorCode
from .result import Err, Ok, Result, is_err, is_ok
from .workspace import Workspace, WorkspaceError, detect_workspace

__all__ = [
    # branch
    "BranchDescriptor",
    "BranchError",
    "BranchKind",
    "Bump",
    "build_pr_title",
    "parse_branch",
    # config
    "Config",
    "ConfigError",
    "load_config",
    "load_config_or_default",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
    # workspace
    "Workspace",
    "WorkspaceError",
    "detect_workspace",
]
