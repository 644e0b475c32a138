"""
Per-path measurement shared by the store and update services.
"""

import logging
from collections.abc import Sequence
from pathlib import Path

from gitmeta.core.models import SYMLINK_MODE, Field, FileType, MetadataRecord, select_fields
from gitmeta.core.options import RunOptions
from gitmeta.infrastructure.attributes import AttributeLayerInterface
from gitmeta.infrastructure.store_file import CacheHeaderState, has_directory_entry

logger = logging.getLogger(__name__)


def resolve_fields(
    options: RunOptions,
    state: CacheHeaderState,
    default_fields: Sequence[str],
) -> tuple[str, ...]:
    """
    Decide the fields of a run from the options and the existing store.

    A legacy store (before the ``directory`` field existed) that holds
    directory records gets ``directory`` added, since those versions
    switched directory handling on separately.
    """
    inherited: list[str] | None = None
    if state.valid:
        inherited = list(state.fields)
        if (
            state.is_legacy
            and Field.DIRECTORY.value not in inherited
            and has_directory_entry(state.path, state.fields)
        ):
            inherited.append(Field.DIRECTORY.value)
    return select_fields(options.fields, inherited, default_fields)


class FileMeasurer:
    """
    Builds fresh records from the live filesystem.

    Only the requested fields are measured; ownership names and ACLs are
    looked up only when asked for.
    """

    def __init__(self, root: Path, attributes: AttributeLayerInterface, fields: Sequence[str]):
        self._root = Path(root)
        self._attributes = attributes
        self._fields = tuple(fields)
        self._wanted = frozenset(fields)

    @property
    def fields(self) -> tuple[str, ...]:
        return self._fields

    def measure(self, path: str) -> MetadataRecord | None:
        """
        Measure one tree-relative path.

        Returns:
            The record, or None if the path is gone or is not a file,
            directory or symlink
        """
        status = self._attributes.stat(str(self._root / path))
        if status is None:
            logger.debug(f"Skipping {path}: does not exist")
            return None
        if status.type is None:
            logger.debug(f"Skipping {path}: unsupported file type")
            return None

        wanted = self._wanted
        record = MetadataRecord(file=path, type=status.type.value)
        if Field.MTIME in wanted:
            record.mtime = status.mtime
        if Field.ATIME in wanted:
            record.atime = status.atime
        if Field.MODE in wanted:
            record.mode = SYMLINK_MODE if status.type == FileType.LINK else f"{status.mode:04o}"
        if Field.UID in wanted:
            record.uid = str(status.uid)
        if Field.GID in wanted:
            record.gid = str(status.gid)
        if Field.USER in wanted:
            record.user = self._attributes.user_name(status.uid)
        if Field.GROUP in wanted:
            record.group = self._attributes.group_name(status.gid)
        if Field.ACL in wanted:
            record.acl = self._attributes.get_acl(str(self._root / path))
        return record

    def measure_line(self, path: str) -> str | None:
        """Measure a path and encode it as a record line."""
        record = self.measure(path)
        return record.to_line(self._fields) if record is not None else None
