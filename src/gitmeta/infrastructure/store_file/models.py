"""
Data models and constants for the store file.
"""

import re
from dataclasses import dataclass, field

from gitmeta.core.errors import GitMetaError

STORE_PREFIX = "# generated by"
STORE_APP = "git-store-meta"
STORE_VERSION = "2.0.0"

# Half-open [low, high) schema version ranges accepted per action.
UPDATE_VERSION_RANGE: tuple[tuple[int, int, int], tuple[int, int, int]] = ((1, 1, 0), (2, 1, 0))
APPLY_VERSION_RANGE: tuple[tuple[int, int, int], tuple[int, int, int]] = ((1, 0, 0), (2, 1, 0))

# Stores older than this declared directories with a separate switch.
DIRECTORY_FIELD_VERSION: tuple[int, int, int] = (2, 0, 0)

_VERSION_RE = re.compile(r"^v?(\d+)\.(\d+)(?:\.(\d+))?(?:[._-]\w+)?$")


class StoreFileError(GitMetaError):
    """Base exception for store file errors."""

    pass


class StoreFileMissingError(StoreFileError):
    """The store file does not exist."""

    pass


class StoreFileAccessError(StoreFileError):
    """The store file is not a readable regular file."""

    pass


class MalformedStoreFileError(StoreFileError):
    """The store file header is not well-formed."""

    pass


class UnknownSchemaError(StoreFileError):
    """The store file was produced by another application."""

    pass


class UnsupportedVersionError(StoreFileError):
    """The store file schema version is outside the supported range."""

    pass


def parse_version(text: str) -> tuple[int, int, int] | None:
    """
    Parse a schema version such as ``2.0.0`` or ``2.0.0_003``.

    A development suffix is ignored, so ``2.0.0_003`` compares equal to
    ``2.0.0``.

    Returns:
        (major, minor, patch) tuple, or None if the text is not a version
    """
    match = _VERSION_RE.match(text.strip())
    if match is None:
        return None
    major, minor, patch = match.groups()
    return (int(major), int(minor), int(patch or 0))


@dataclass
class CacheHeaderState:
    """
    What the existing store file says about itself.

    Attributes:
        path: Store file location
        exists: Something exists at the path
        accessible: It is a regular file that could be opened
        valid: Both header lines are well-formed and declare file and type
        app: Producer name from the header
        version: Parsed schema version
        version_text: Schema version as written
        fields: Declared field names in order
    """

    path: str
    exists: bool = False
    accessible: bool = False
    valid: bool = False
    app: str | None = None
    version: tuple[int, int, int] | None = None
    version_text: str | None = None
    fields: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_legacy(self) -> bool:
        """Whether the store predates the ``directory`` field."""
        return self.version is not None and self.version < DIRECTORY_FIELD_VERSION
