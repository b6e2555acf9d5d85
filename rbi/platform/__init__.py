"""Platform abstraction layer."""

from .files import atomic_write_text, read_text_or_empty
from .process import (
    ProcessError,
    run,
    run_silent,
)

__all__ = [
    # files
    "atomic_write_text",
    "read_text_or_empty",
    # process
    "ProcessError",
    "run",
    "run_silent",
]
