"""
Base exceptions for gitmeta.
"""


class GitMetaError(Exception):
    """Base exception for all structural gitmeta failures."""

    pass


class PreconditionError(GitMetaError):
    """Raised when an action cannot start with the given options or state."""

    pass
