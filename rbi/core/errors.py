"""Exit codes for rbi commands.

Every workflow failure is terminal for the invocation and exits with 1,
whatever its category (usage, precondition, git/GitHub operation, declined
prompt). The category is carried by the error value itself and only changes
what is printed, not the exit status seen by `pnpm run git:*` callers.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands."""

    OK = 0
    FAILURE = 1

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
