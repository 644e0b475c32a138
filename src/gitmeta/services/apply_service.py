"""
Apply Service for gitmeta.

Restores recorded metadata onto the working tree. Every attribute is
applied on its own: a failure is reported as a warning and the run moves
on to the next attribute or record.
"""

import logging
from collections.abc import Sequence
from typing import Callable, Optional

from gitmeta.core.codec import time_to_text
from gitmeta.core.models import Field, FileType, MetadataRecord
from gitmeta.core.options import RunOptions
from gitmeta.infrastructure.attributes import NS_PER_SECOND, AttributeLayerInterface
from gitmeta.infrastructure.store_file import (
    APPLY_VERSION_RANGE,
    check_compatible,
    iter_data_lines,
    read_header_state,
)
from gitmeta.infrastructure.vcs import VCSInterface
from gitmeta.services.measurement import resolve_fields
from gitmeta.services.models import ApplyResult, DirtyWorkingTreeError

logger = logging.getLogger(__name__)


def _parse_id(text: str) -> Optional[int]:
    # -1 is passed through to chown, which leaves that id unchanged.
    try:
        value = int(text)
    except ValueError:
        return None
    return value if value >= -1 else None


class ApplyService:
    """
    Service for applying a store onto the working tree.

    A file record also matches a symlink and a symlink record also matches
    a regular file, since a link can be checked out as a plain file.
    Directory records are only applied when ``directory`` is among the
    fields of the run.
    """

    def __init__(
        self,
        vcs: VCSInterface,
        attributes: AttributeLayerInterface,
        options: RunOptions,
        default_fields: Sequence[str],
        report: Optional[Callable[[str], None]] = None,
    ):
        """
        Initialize the apply service.

        Args:
            vcs: Used to check that the working tree is clean
            attributes: Filesystem attribute layer that performs the changes
            options: Options of this run
            default_fields: Fields used when neither the command line nor
                the store names any
            report: Receives a line before every attempted change in
                verbose mode (default: print)
        """
        self._vcs = vcs
        self._attributes = attributes
        self._options = options
        self._default_fields = tuple(default_fields)
        self._report_callback = report or print
        self._fields: frozenset[str] = frozenset()
        self._result: Optional[ApplyResult] = None

    def run(self) -> ApplyResult:
        """
        Apply the store.

        Returns:
            ApplyResult; ``noop`` is set when there is no store to apply

        Raises:
            DirtyWorkingTreeError: If the tree has uncommitted changes and
                force is off
            StoreFileError: If the store is unreadable, of another schema or
                of an unsupported version
            RecordParseError: If a recorded timestamp cannot be decoded
        """
        options = self._options
        state = read_header_state(options.target)
        if not state.exists:
            logger.info(f"{options.target} does not exist, nothing to apply")
            return ApplyResult(target=options.target, noop=True, dry_run=options.dry_run)

        if not options.force and self._vcs.is_dirty():
            raise DirtyWorkingTreeError(
                "git working tree is not clean.\n"
                "Commit, stash, or revert changes before running this, or add --force."
            )

        check_compatible(state, APPLY_VERSION_RANGE)
        fields = resolve_fields(options, state, self._default_fields)
        logger.info(f"Applying metadata from {options.target} (fields: {', '.join(fields)})")

        self._fields = frozenset(fields)
        self._result = ApplyResult(target=options.target, fields=fields, dry_run=options.dry_run)
        for line in iter_data_lines(options.target):
            record = MetadataRecord.from_line(line, state.fields)
            if self._apply_record(record):
                self._result.applied += 1
            else:
                self._result.skipped += 1
        return self._result

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self._result.warnings.append(message)

    def _report(self, message: str) -> None:
        if self._options.verbose:
            self._report_callback(message)

    def _apply_record(self, record: MetadataRecord) -> bool:
        name = record.escaped_file
        if self._options.is_store_file(record.file):
            return False

        path = str(self._options.root / record.file)
        attrs = self._attributes
        if not attrs.exists(path):
            self._warn(f"`{name}' does not exist, skip applying metadata")
            return False

        if record.type in (FileType.FILE.value, FileType.LINK.value):
            if not attrs.is_file(path) and not attrs.is_link(path):
                self._warn(f"`{name}' is not a file, skip applying metadata")
                return False
        elif record.type == FileType.DIRECTORY.value:
            if not attrs.is_dir(path):
                self._warn(f"`{name}' is not a directory, skip applying metadata")
                return False
            if Field.DIRECTORY not in self._fields:
                return False
        else:
            self._warn(f"`{name}' is recorded as an unknown type, skip applying metadata")
            return False

        is_link = attrs.is_link(path)
        self._apply_owner(path, name, record, is_link)
        self._apply_group(path, name, record, is_link)
        self._apply_mode(path, name, record, is_link)
        self._apply_acl(path, name, record, is_link)
        self._apply_times(path, name, record, is_link)
        return True

    def _apply_owner(self, path: str, name: str, record: MetadataRecord, is_link: bool) -> None:
        if Field.USER in self._fields and record.user:
            self._report(f"`{name}' set user to '{record.user}'")
            uid = self._attributes.lookup_user(record.user)
            if uid is None:
                self._warn(f"{record.user} is not a valid user")
            elif self._chown(path, uid, -1, is_link):
                return
            else:
                self._warn(f"`{name}' cannot set user to '{record.user}'")

        if Field.UID in self._fields and record.uid:
            self._report(f"`{name}' set uid to '{record.uid}'")
            uid = _parse_id(record.uid)
            if uid is None or not self._chown(path, uid, -1, is_link):
                self._warn(f"`{name}' cannot set uid to '{record.uid}'")

    def _apply_group(self, path: str, name: str, record: MetadataRecord, is_link: bool) -> None:
        if Field.GROUP in self._fields and record.group:
            self._report(f"`{name}' set group to '{record.group}'")
            gid = self._attributes.lookup_group(record.group)
            if gid is None:
                self._warn(f"{record.group} is not a valid user group")
            elif self._chown(path, -1, gid, is_link):
                return
            else:
                self._warn(f"`{name}' cannot set group to '{record.group}'")

        if Field.GID in self._fields and record.gid:
            self._report(f"`{name}' set gid to '{record.gid}'")
            gid = _parse_id(record.gid)
            if gid is None or not self._chown(path, -1, gid, is_link):
                self._warn(f"`{name}' cannot set gid to '{record.gid}'")

    def _apply_mode(self, path: str, name: str, record: MetadataRecord, is_link: bool) -> None:
        # Symlink permissions are not meaningful.
        if Field.MODE not in self._fields or not record.mode or is_link:
            return
        self._report(f"`{name}' set mode to '{record.mode}'")
        try:
            mode = int(record.mode, 8) & 0o7777
        except ValueError:
            self._warn(f"`{name}' cannot set mode to '{record.mode}'")
            return
        if not self._options.dry_run and not self._attributes.chmod(path, mode):
            self._warn(f"`{name}' cannot set mode to '{record.mode}'")

    def _apply_acl(self, path: str, name: str, record: MetadataRecord, is_link: bool) -> None:
        if Field.ACL not in self._fields or not record.acl or is_link:
            return
        self._report(f"`{name}' set acl to '{record.acl}'")
        if not self._options.dry_run and not self._attributes.set_acl(path, record.acl):
            self._warn(f"`{name}' cannot set acl to '{record.acl}'")

    def _apply_times(self, path: str, name: str, record: MetadataRecord, is_link: bool) -> None:
        if Field.MTIME in self._fields and record.mtime is not None:
            text = time_to_text(record.mtime)
            self._report(f"`{name}' set mtime to '{text}'")
            current = self._attributes.stat(path)
            if current is None or not self._utime(
                path, current.atime_ns, record.mtime * NS_PER_SECOND, is_link
            ):
                self._warn(f"`{name}' cannot set mtime to '{text}'")

        if Field.ATIME in self._fields and record.atime is not None:
            text = time_to_text(record.atime)
            self._report(f"`{name}' set atime to '{text}'")
            current = self._attributes.stat(path)
            if current is None or not self._utime(
                path, record.atime * NS_PER_SECOND, current.mtime_ns, is_link
            ):
                self._warn(f"`{name}' cannot set atime to '{text}'")

    def _chown(self, path: str, uid: int, gid: int, is_link: bool) -> bool:
        if self._options.dry_run:
            return True
        return self._attributes.chown(path, uid, gid, link=is_link)

    def _utime(self, path: str, atime_ns: int, mtime_ns: int, is_link: bool) -> bool:
        if self._options.dry_run:
            return True
        return self._attributes.utime(path, atime_ns, mtime_ns, link=is_link)
