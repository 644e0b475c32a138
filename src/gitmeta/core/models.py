"""
Data models for metadata records.
"""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from gitmeta.core.codec import escape_path, text_to_time, time_to_text, unescape_path

logger = logging.getLogger(__name__)

# Mode recorded for symlinks; it is what a link checked out as a plain file gets.
SYMLINK_MODE = "0664"


class FileType(str, Enum):
    """Filesystem entry types that can be recorded."""

    FILE = "f"
    LINK = "l"
    DIRECTORY = "d"


class Field(str, Enum):
    """Fields a store file may declare, in canonical order."""

    FILE = "file"
    TYPE = "type"
    MTIME = "mtime"
    ATIME = "atime"
    MODE = "mode"
    UID = "uid"
    GID = "gid"
    USER = "user"
    GROUP = "group"
    ACL = "acl"
    DIRECTORY = "directory"


KNOWN_FIELDS: frozenset[str] = frozenset(f.value for f in Field)
REQUIRED_FIELDS: tuple[str, str] = (Field.FILE.value, Field.TYPE.value)


def parse_field_list(text: str) -> list[str]:
    """Split a comma-separated field list such as ``"mtime, mode"``."""
    return [part for part in re.split(r",\s*", text.strip()) if part]


def select_fields(
    requested: Sequence[str] | None,
    inherited: Sequence[str] | None,
    default: Sequence[str],
) -> tuple[str, ...]:
    """
    Decide which fields a run handles.

    Precedence: an explicit request, then the fields declared by the
    existing store, then the configured default. Explicit and default lists
    are prefixed with ``file`` and ``type``. Unknown names are dropped and
    duplicates keep their first position.

    Args:
        requested: Fields given by the caller, or None
        inherited: Fields declared by a valid existing store, or None
        default: Fallback fields (without file/type)

    Returns:
        Ordered tuple of field names
    """
    if requested is not None:
        parts = [*REQUIRED_FIELDS, *requested]
    elif inherited is not None:
        parts = list(inherited)
    else:
        parts = [*REQUIRED_FIELDS, *default]

    seen: set[str] = set()
    fields: list[str] = []
    for name in parts:
        if name not in KNOWN_FIELDS:
            logger.warning(f"Ignoring unknown field: {name}")
            continue
        if name in seen:
            continue
        seen.add(name)
        fields.append(name)
    return tuple(fields)


@dataclass
class MetadataRecord:
    """
    One row of the store: the attributes of a single tracked path.

    Attributes:
        file: Relative path (unescaped)
        type: Recorded type code ('f', 'l', 'd'; anything else is unknown)
        mtime: Modification time in epoch seconds
        atime: Access time in epoch seconds
        mode: Four-digit octal permission string
        uid: Numeric owner id as text
        gid: Numeric group id as text
        user: Owner name
        group: Group name
        acl: Comma-joined extended ACL entries
    """

    file: str
    type: str
    mtime: int | None = None
    atime: int | None = None
    mode: str | None = None
    uid: str | None = None
    gid: str | None = None
    user: str | None = None
    group: str | None = None
    acl: str | None = None

    @property
    def escaped_file(self) -> str:
        return escape_path(self.file)

    def to_line(self, fields: Sequence[str]) -> str:
        """Encode the record as a tab-joined line in the given field order."""
        return "\t".join(self._encode_value(name) for name in fields)

    def _encode_value(self, name: str) -> str:
        if name == Field.FILE:
            return self.escaped_file
        if name == Field.DIRECTORY:
            return ""
        value = getattr(self, name)
        if value is None:
            return ""
        if name in (Field.MTIME, Field.ATIME):
            return time_to_text(value)
        return str(value)

    @classmethod
    def from_line(cls, line: str, fields: Sequence[str]) -> "MetadataRecord":
        """
        Decode a record line written with the given field order.

        Missing trailing columns and empty values decode as absent.

        Raises:
            RecordParseError: If a timestamp cannot be decoded
        """
        columns = line.split("\t")
        values: dict[str, str] = {}
        for index, name in enumerate(fields):
            values[name] = columns[index] if index < len(columns) else ""

        def _text(name: str) -> str | None:
            return values.get(name) or None

        def _time(name: str) -> int | None:
            text = values.get(name)
            return text_to_time(text) if text else None

        return cls(
            file=unescape_path(values.get(Field.FILE.value, "")),
            type=values.get(Field.TYPE.value, ""),
            mtime=_time(Field.MTIME.value),
            atime=_time(Field.ATIME.value),
            mode=_text(Field.MODE.value),
            uid=_text(Field.UID.value),
            gid=_text(Field.GID.value),
            user=_text(Field.USER.value),
            group=_text(Field.GROUP.value),
            acl=_text(Field.ACL.value),
        )
