"""
Link-aware setters: direct syscalls where the platform has them, external
tools otherwise.
"""

import logging
import os
import subprocess

from gitmeta.core.codec import time_to_text

from .interface import NS_PER_SECOND, LinkAwareSetter

logger = logging.getLogger(__name__)


def run_tool(command: list[str]) -> bool:
    """Run an external attribute tool; True if it exited with status 0."""
    try:
        result = subprocess.run(command, capture_output=True, text=True)
    except FileNotFoundError:
        logger.debug(f"{command[0]} is not installed or not on PATH")
        return False
    except OSError as e:
        logger.debug(f"Failed to run {command[0]}: {e}")
        return False

    if result.returncode != 0:
        logger.debug(f"`{' '.join(command)}' exited {result.returncode}: {result.stderr.strip()}")
        return False
    return True


def _touch_time(ns: int) -> str:
    """ISO-8601 UTC text accepted by ``touch -d``, with fraction when needed."""
    seconds, fraction = divmod(ns, NS_PER_SECOND)
    text = time_to_text(seconds)
    if fraction:
        text = f"{text[:-1]}.{fraction:09d}Z"
    return text


class SyscallLinkSetter(LinkAwareSetter):
    """Uses lchown and utime(follow_symlinks=False)."""

    @staticmethod
    def is_supported() -> bool:
        return hasattr(os, "lchown") and os.utime in os.supports_follow_symlinks

    def chown(self, path: str, uid: int, gid: int) -> bool:
        try:
            os.lchown(path, uid, gid)
            return True
        except (OSError, OverflowError) as e:
            logger.debug(f"lchown {path} failed: {e}")
            return False

    def utime(self, path: str, atime_ns: int, mtime_ns: int) -> bool:
        try:
            os.utime(path, ns=(atime_ns, mtime_ns), follow_symlinks=False)
            return True
        except (OSError, NotImplementedError) as e:
            logger.debug(f"utime (no follow) {path} failed: {e}")
            return False


class ToolLinkSetter(LinkAwareSetter):
    """Uses ``chown -h``, ``chgrp -h`` and ``touch -h``."""

    def __init__(self, chown: str = "chown", chgrp: str = "chgrp", touch: str = "touch"):
        self._chown = chown
        self._chgrp = chgrp
        self._touch = touch

    def chown(self, path: str, uid: int, gid: int) -> bool:
        ok = True
        if uid != -1:
            ok = run_tool([self._chown, "-h", str(uid), path]) and ok
        if gid != -1:
            ok = run_tool([self._chgrp, "-h", str(gid), path]) and ok
        return ok

    def utime(self, path: str, atime_ns: int, mtime_ns: int) -> bool:
        atime_ok = run_tool([self._touch, "-h", "-c", "-a", "-d", _touch_time(atime_ns), path])
        mtime_ok = run_tool([self._touch, "-h", "-c", "-m", "-d", _touch_time(mtime_ns), path])
        return atime_ok and mtime_ok


def create_link_setter(strategy: str = "auto") -> LinkAwareSetter:
    """
    Build the link-aware setter for a strategy.

    Args:
        strategy: 'syscall', 'tool', or 'auto' (syscall when supported)

    Raises:
        ValueError: If the strategy is unknown
    """
    if strategy == "syscall":
        return SyscallLinkSetter()
    if strategy == "tool":
        return ToolLinkSetter()
    if strategy == "auto":
        if SyscallLinkSetter.is_supported():
            return SyscallLinkSetter()
        logger.debug("Link-aware syscalls unavailable, using external tools")
        return ToolLinkSetter()
    raise ValueError(f"Unknown link strategy: {strategy}")
