"""
Abstract interfaces for reading and changing filesystem attributes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from gitmeta.core.models import FileType

NS_PER_SECOND = 1_000_000_000


@dataclass(frozen=True)
class FileStatus:
    """
    Link-aware status of a filesystem entry.

    Attributes:
        type: Entry type, or None for unsupported entries (sockets, devices, fifos)
        mode: Permission bits (st_mode & 0o7777)
        uid: Owner id
        gid: Group id
        atime_ns: Access time in nanoseconds
        mtime_ns: Modification time in nanoseconds
    """

    type: FileType | None
    mode: int
    uid: int
    gid: int
    atime_ns: int
    mtime_ns: int

    @property
    def atime(self) -> int:
        return self.atime_ns // NS_PER_SECOND

    @property
    def mtime(self) -> int:
        return self.mtime_ns // NS_PER_SECOND


class LinkAwareSetter(ABC):
    """
    Changes attributes of a symbolic link itself, never its target.

    Methods return True on success and False on any failure.
    """

    @abstractmethod
    def chown(self, path: str, uid: int, gid: int) -> bool:
        """Change owner and group of a link; -1 leaves an id unchanged."""
        pass

    @abstractmethod
    def utime(self, path: str, atime_ns: int, mtime_ns: int) -> bool:
        """Set both timestamps of a link."""
        pass


class AttributeLayerInterface(ABC):
    """
    Capability interface over the OS attribute primitives.

    Mutators report success as a boolean and never raise for OS failures.
    Passing ``link=True`` routes the change through a LinkAwareSetter so a
    symbolic link is changed instead of its target.
    """

    @abstractmethod
    def stat(self, path: str) -> FileStatus | None:
        """Return the link-aware status of a path, or None if it does not exist."""
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Check existence without following a final symlink."""
        pass

    @abstractmethod
    def is_file(self, path: str) -> bool:
        """Check for a regular file, following symlinks."""
        pass

    @abstractmethod
    def is_link(self, path: str) -> bool:
        """Check for a symbolic link."""
        pass

    @abstractmethod
    def is_dir(self, path: str) -> bool:
        """Check for a directory, following symlinks."""
        pass

    @abstractmethod
    def user_name(self, uid: int) -> str:
        """Name of a user id, or an empty string if it has none."""
        pass

    @abstractmethod
    def group_name(self, gid: int) -> str:
        """Name of a group id, or an empty string if it has none."""
        pass

    @abstractmethod
    def lookup_user(self, name: str) -> int | None:
        """User id for a name, or None if the user is unknown."""
        pass

    @abstractmethod
    def lookup_group(self, name: str) -> int | None:
        """Group id for a name, or None if the group is unknown."""
        pass

    @abstractmethod
    def get_acl(self, path: str) -> str:
        """Comma-joined extended ACL entries, or an empty string."""
        pass

    @abstractmethod
    def set_acl(self, path: str, acl: str) -> bool:
        """Replace the extended ACL entries of a path."""
        pass

    @abstractmethod
    def chown(self, path: str, uid: int, gid: int, link: bool = False) -> bool:
        """Change owner and group; -1 leaves an id unchanged."""
        pass

    @abstractmethod
    def chmod(self, path: str, mode: int) -> bool:
        """Change permission bits (follows symlinks)."""
        pass

    @abstractmethod
    def utime(self, path: str, atime_ns: int, mtime_ns: int, link: bool = False) -> bool:
        """Set access and modification times."""
        pass
