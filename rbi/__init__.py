"""Release Branch Isolation: git/GitHub workflow commands."""

__version__ = "0.1.0"
