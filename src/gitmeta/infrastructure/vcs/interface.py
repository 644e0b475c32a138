"""
Abstract interface for the version-control queries gitmeta needs.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from gitmeta.core.errors import GitMetaError
from gitmeta.core.path_utils import tracked_directories


class VCSError(GitMetaError):
    """Raised when the working tree cannot be queried."""

    pass


class ChangeStatus(str, Enum):
    """Path-level change kinds reported for the staging area."""

    ADDED = "A"
    MODIFIED = "M"
    DELETED = "D"


@dataclass(frozen=True)
class StagedChange:
    """A staged change of one path."""

    status: ChangeStatus
    path: str


class VCSInterface(ABC):
    """
    Read-only view of a working tree under version control.

    Paths are tree-relative and slash-separated. Implementations never
    write to the version-control object store.
    """

    @property
    @abstractmethod
    def root(self) -> Path:
        """Top level directory of the working tree."""
        pass

    @abstractmethod
    def list_files(self) -> list[str]:
        """Return every tracked path."""
        pass

    def list_directories(self) -> list[str]:
        """
        Return every tracked directory.

        Derived from the tracked paths, so it reflects the staged tree
        rather than whatever happens to exist in the working tree.
        """
        return tracked_directories(self.list_files())

    @abstractmethod
    def staged_changes(self) -> list[StagedChange]:
        """Return staged changes; renames are reported as delete plus add."""
        pass

    @abstractmethod
    def is_dirty(self) -> bool:
        """Check for uncommitted changes to tracked files."""
        pass

    @abstractmethod
    def hooks_dir(self) -> Path:
        """Directory where hook scripts are installed."""
        pass
