"""
Fake implementations for testing.

Provides an in-memory repository and a recording attribute layer so the
services can be exercised on a temporary directory without git.
"""

from __future__ import annotations

from pathlib import Path

from gitmeta.infrastructure.attributes import PosixAttributeLayer
from gitmeta.infrastructure.vcs import ChangeStatus, StagedChange, VCSInterface


class InMemoryRepository(VCSInterface):
    """
    In-memory stand-in for a git working tree.

    The tracked set and staging area are plain lists; helpers mimic
    `git add`, `git rm` and `git commit` on them. The files themselves live
    in a real directory under ``root``.
    """

    def __init__(
        self,
        root: Path | str,
        files: list[str] | None = None,
        dirty: bool = False,
        hooks_dir: Path | str | None = None,
    ):
        self._root = Path(root)
        self._files: list[str] = list(files or [])
        self._staged: list[StagedChange] = []
        self.dirty = dirty
        self._hooks_dir = Path(hooks_dir) if hooks_dir else self._root / ".git" / "hooks"

    @property
    def root(self) -> Path:
        return self._root

    def list_files(self) -> list[str]:
        return sorted(self._files)

    def staged_changes(self) -> list[StagedChange]:
        return list(self._staged)

    def is_dirty(self) -> bool:
        return self.dirty

    def hooks_dir(self) -> Path:
        return self._hooks_dir

    def add(self, path: str) -> None:
        """Stage a new or modified path."""
        status = ChangeStatus.MODIFIED if path in self._files else ChangeStatus.ADDED
        if status == ChangeStatus.ADDED:
            self._files.append(path)
        self._staged.append(StagedChange(status=status, path=path))

    def remove(self, path: str) -> None:
        """Stage the deletion of a tracked path."""
        self._files.remove(path)
        self._staged.append(StagedChange(status=ChangeStatus.DELETED, path=path))

    def commit(self) -> None:
        """Clear the staging area."""
        self._staged.clear()


class RecordingAttributeLayer(PosixAttributeLayer):
    """
    POSIX attribute layer that records every mutation and can be told to
    fail specific ones.

    Failures are declared per (operation, path suffix); a failing call
    returns False without touching the filesystem.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls: list[tuple[str, str]] = []
        self._failures: set[tuple[str, str]] = set()

    def fail_on(self, operation: str, path: str) -> None:
        self._failures.add((operation, path))

    def _should_fail(self, operation: str, path: str) -> bool:
        for failing_op, suffix in self._failures:
            if failing_op == operation and (path == suffix or path.endswith("/" + suffix)):
                return True
        return False

    def _record(self, operation: str, path: str) -> bool:
        self.calls.append((operation, path))
        return not self._should_fail(operation, path)

    def chown(self, path: str, uid: int, gid: int, link: bool = False) -> bool:
        if not self._record("chown", path):
            return False
        return super().chown(path, uid, gid, link=link)

    def chmod(self, path: str, mode: int) -> bool:
        if not self._record("chmod", path):
            return False
        return super().chmod(path, mode)

    def utime(self, path: str, atime_ns: int, mtime_ns: int, link: bool = False) -> bool:
        if not self._record("utime", path):
            return False
        return super().utime(path, atime_ns, mtime_ns, link=link)

    def set_acl(self, path: str, acl: str) -> bool:
        if not self._record("set_acl", path):
            return False
        return super().set_acl(path, acl)
