"""
Git implementation of the VCS interface.

Runs git as a subprocess with NUL-separated output so that paths with any
bytes survive unquoted.
"""

import logging
import os
import subprocess
from pathlib import Path

from .interface import ChangeStatus, StagedChange, VCSError, VCSInterface

logger = logging.getLogger(__name__)

# Statuses of `git diff --name-status` that map onto our change kinds.
# A type change (T, e.g. file -> symlink) must be re-measured like a modification.
_STATUS_MAP: dict[str, ChangeStatus] = {
    "A": ChangeStatus.ADDED,
    "M": ChangeStatus.MODIFIED,
    "T": ChangeStatus.MODIFIED,
    "D": ChangeStatus.DELETED,
}


def _run_git(
    args: list[str],
    cwd: Path | str | None,
    executable: str = "git",
    timeout: float | None = None,
) -> bytes:
    """
    Run a git command and return its raw stdout.

    Raises:
        VCSError: If git is missing, times out, or exits non-zero
    """
    command = [executable, *args]
    logger.debug(f"Running: {' '.join(command)}")
    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise VCSError(f"{executable} is not installed or not on PATH") from e
    except subprocess.TimeoutExpired as e:
        raise VCSError(f"`{' '.join(command)}' timed out after {timeout}s") from e

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        raise VCSError(f"`{' '.join(command)}' failed: {stderr}")
    return result.stdout


def _split_nul(output: bytes) -> list[str]:
    return [os.fsdecode(item) for item in output.split(b"\0") if item]


class GitRepository(VCSInterface):
    """Working tree of a git repository."""

    def __init__(self, root: Path | str, executable: str = "git", timeout: float | None = 120.0):
        self._root = Path(root)
        self._executable = executable
        self._timeout = timeout

    @classmethod
    def discover(
        cls,
        start: Path | str | None = None,
        executable: str = "git",
        timeout: float | None = 120.0,
    ) -> "GitRepository":
        """
        Locate the working tree containing a directory.

        Args:
            start: Directory to start from (defaults to the current directory)
            executable: git executable
            timeout: Per-command timeout in seconds

        Raises:
            VCSError: If the directory is not inside a git working tree
        """
        try:
            output = _run_git(
                ["rev-parse", "--show-toplevel"],
                cwd=start,
                executable=executable,
                timeout=timeout,
            )
        except VCSError as e:
            raise VCSError(f"current working directory is not in a git working tree ({e})") from e

        toplevel = os.fsdecode(output).rstrip("\n")
        if not toplevel:
            raise VCSError("current working directory is not in a git working tree")
        return cls(Path(toplevel), executable=executable, timeout=timeout)

    @property
    def root(self) -> Path:
        return self._root

    def _git(self, *args: str) -> bytes:
        return _run_git(list(args), cwd=self._root, executable=self._executable, timeout=self._timeout)

    def list_files(self) -> list[str]:
        return _split_nul(self._git("ls-files", "-z"))

    def staged_changes(self) -> list[StagedChange]:
        tokens = _split_nul(self._git("diff", "--cached", "--name-status", "--no-renames", "-z"))
        if len(tokens) % 2:
            raise VCSError("unexpected output from git diff --name-status")

        changes: list[StagedChange] = []
        for status_code, path in zip(tokens[::2], tokens[1::2]):
            status = _STATUS_MAP.get(status_code)
            if status is None:
                logger.debug(f"Ignoring staged change {status_code} for {path}")
                continue
            changes.append(StagedChange(status=status, path=path))
        return changes

    def is_dirty(self) -> bool:
        return self._git("status", "--porcelain", "-uno", "-z") != b""

    def hooks_dir(self) -> Path:
        hooks = Path(os.fsdecode(self._git("rev-parse", "--git-path", "hooks")).rstrip("\n"))
        return hooks if hooks.is_absolute() else self._root / hooks
