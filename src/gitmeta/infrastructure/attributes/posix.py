"""
POSIX attribute layer.

Stats, ownership, permissions and timestamps go through os; ACLs go through
the getfacl/setfacl tools.
"""

import grp
import logging
import os
import pwd
import re
import stat
import subprocess

from gitmeta.core.models import FileType

from .interface import AttributeLayerInterface, FileStatus, LinkAwareSetter
from .links import create_link_setter, run_tool

logger = logging.getLogger(__name__)

# Base entries duplicate the permission bits and are not stored.
_BASE_ACL_ENTRY = re.compile(r"^(?:user|group|other)::")


def _file_type(mode: int) -> FileType | None:
    if stat.S_ISLNK(mode):
        return FileType.LINK
    if stat.S_ISREG(mode):
        return FileType.FILE
    if stat.S_ISDIR(mode):
        return FileType.DIRECTORY
    return None


def parse_acl_output(output: str) -> str:
    """Join the extended entries of ``getfacl -c -E`` output with commas."""
    entries = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or _BASE_ACL_ENTRY.match(line):
            continue
        entries.append(line)
    return ",".join(entries)


class PosixAttributeLayer(AttributeLayerInterface):
    """Attribute layer for POSIX systems."""

    def __init__(
        self,
        link_setter: LinkAwareSetter | None = None,
        getfacl: str = "getfacl",
        setfacl: str = "setfacl",
    ):
        self._link_setter = link_setter or create_link_setter("auto")
        self._getfacl = getfacl
        self._setfacl = setfacl

    @property
    def link_setter(self) -> LinkAwareSetter:
        return self._link_setter

    def stat(self, path: str) -> FileStatus | None:
        try:
            st = os.lstat(path)
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.debug(f"lstat {path} failed: {e}")
            return None
        return FileStatus(
            type=_file_type(st.st_mode),
            mode=stat.S_IMODE(st.st_mode),
            uid=st.st_uid,
            gid=st.st_gid,
            atime_ns=st.st_atime_ns,
            mtime_ns=st.st_mtime_ns,
        )

    def exists(self, path: str) -> bool:
        return os.path.lexists(path)

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path)

    def is_link(self, path: str) -> bool:
        return os.path.islink(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def user_name(self, uid: int) -> str:
        try:
            return pwd.getpwuid(uid).pw_name
        except KeyError:
            return ""

    def group_name(self, gid: int) -> str:
        try:
            return grp.getgrgid(gid).gr_name
        except KeyError:
            return ""

    def lookup_user(self, name: str) -> int | None:
        try:
            return pwd.getpwnam(name).pw_uid
        except KeyError:
            return None

    def lookup_group(self, name: str) -> int | None:
        try:
            return grp.getgrnam(name).gr_gid
        except KeyError:
            return None

    def get_acl(self, path: str) -> str:
        try:
            result = subprocess.run(
                [self._getfacl, "-c", "-E", path],
                capture_output=True,
                text=True,
                errors="surrogateescape",
            )
        except FileNotFoundError:
            logger.debug(f"{self._getfacl} is not installed; ACLs are recorded empty")
            return ""
        if result.returncode != 0:
            return ""
        return parse_acl_output(result.stdout)

    def set_acl(self, path: str, acl: str) -> bool:
        return run_tool([self._setfacl, "-b", "-m", acl, path])

    def chown(self, path: str, uid: int, gid: int, link: bool = False) -> bool:
        if link:
            return self._link_setter.chown(path, uid, gid)
        try:
            os.chown(path, uid, gid)
            return True
        except (OSError, OverflowError) as e:
            logger.debug(f"chown {path} failed: {e}")
            return False

    def chmod(self, path: str, mode: int) -> bool:
        try:
            os.chmod(path, mode)
            return True
        except OSError as e:
            logger.debug(f"chmod {path} failed: {e}")
            return False

    def utime(self, path: str, atime_ns: int, mtime_ns: int, link: bool = False) -> bool:
        if link:
            return self._link_setter.utime(path, atime_ns, mtime_ns)
        try:
            os.utime(path, ns=(atime_ns, mtime_ns))
            return True
        except OSError as e:
            logger.debug(f"utime {path} failed: {e}")
            return False
