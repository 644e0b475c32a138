"""
Store file reading: header state, compatibility checks and record lines.
"""

import logging
import os
from collections.abc import Iterator
from pathlib import Path

from gitmeta.core.codec import STORE_ENCODING, STORE_ERRORS
from gitmeta.core.models import Field, FileType

from .models import (
    STORE_APP,
    STORE_PREFIX,
    CacheHeaderState,
    MalformedStoreFileError,
    StoreFileAccessError,
    StoreFileMissingError,
    UnknownSchemaError,
    UnsupportedVersionError,
    parse_version,
)

logger = logging.getLogger(__name__)

HEADER_LINES = 2


def _open_store(path: Path):
    return open(path, "r", encoding=STORE_ENCODING, errors=STORE_ERRORS, newline="\n")


def _parse_field_line(line: str) -> tuple[str, ...] | None:
    fields: list[str] = []
    for token in line.split("\t"):
        if len(token) < 2 or not (token.startswith("<") and token.endswith(">")):
            return None
        fields.append(token[1:-1])
    return tuple(fields)


def read_header_state(path: Path | str) -> CacheHeaderState:
    """
    Inspect an existing store file.

    Never raises for a missing, unreadable or malformed file; the returned
    state records how far the inspection got.

    Args:
        path: Store file location

    Returns:
        CacheHeaderState describing the file
    """
    path = Path(path)
    state = CacheHeaderState(path=str(path))

    if not path.exists():
        return state
    state.exists = True

    if not path.is_file():
        return state

    try:
        with _open_store(path) as f:
            state.accessible = True
            header = f.readline().strip()
            field_line = f.readline().strip()
    except OSError as e:
        logger.debug(f"Cannot read store header of {path}: {e}")
        return state

    parts = header.split("\t")
    if len(parts) < 3 or parts[0] != STORE_PREFIX:
        return state
    state.app = parts[1]
    state.version_text = parts[2]
    state.version = parse_version(parts[2])
    if state.version is None:
        return state

    if not field_line:
        return state
    fields = _parse_field_line(field_line)
    if fields is None:
        return state
    if Field.FILE.value not in fields or Field.TYPE.value not in fields:
        return state

    state.fields = fields
    state.valid = True
    return state


def check_compatible(
    state: CacheHeaderState,
    version_range: tuple[tuple[int, int, int], tuple[int, int, int]],
) -> None:
    """
    Verify that a store can be used by an action.

    Args:
        state: Header state of the store file
        version_range: Half-open [low, high) range of accepted schema versions

    Raises:
        StoreFileMissingError: If the file does not exist
        StoreFileAccessError: If it is not an accessible regular file
        MalformedStoreFileError: If the header is not well-formed
        UnknownSchemaError: If another application produced it
        UnsupportedVersionError: If the schema version is out of range
    """
    if not state.exists:
        raise StoreFileMissingError(f"`{state.path}' doesn't exist")
    if not state.accessible:
        raise StoreFileAccessError(f"`{state.path}' is not an accessible file")
    if not state.valid:
        raise MalformedStoreFileError(f"`{state.path}' is malformatted")
    if state.app != STORE_APP:
        raise UnknownSchemaError(
            f"`{state.path}' is using an unknown schema: {state.app} {state.version_text}"
        )
    low, high = version_range
    if state.version is None or not (low <= state.version < high):
        raise UnsupportedVersionError(
            f"`{state.path}' is using an unsupported version: {state.version_text}"
        )


def iter_data_lines(path: Path | str, verbatim: bool = False) -> Iterator[str]:
    """
    Yield the record lines of a store file, skipping the header.

    Blank lines are skipped. By default lines are stripped of surrounding
    whitespace; with ``verbatim`` only the line terminator is removed so
    the line can be copied unchanged into a new store.

    Raises:
        StoreFileAccessError: If the file cannot be read
    """
    try:
        with _open_store(Path(path)) as f:
            for index, line in enumerate(f):
                if index < HEADER_LINES:
                    continue
                if not line.strip():
                    continue
                yield line.rstrip("\n") if verbatim else line.strip()
    except OSError as e:
        raise StoreFileAccessError(f"failed to access `{path}': {e}") from e


def has_directory_entry(path: Path | str, fields: tuple[str, ...]) -> bool:
    """Check whether any record of the store has the directory type."""
    type_index = fields.index(Field.TYPE.value) if Field.TYPE.value in fields else 1
    for line in iter_data_lines(path):
        columns = line.split("\t")
        if len(columns) > type_index and columns[type_index] == FileType.DIRECTORY.value:
            return True
    return False


def stale_temp_files(path: Path | str) -> list[Path]:
    """List temporary files left next to the store by an interrupted run."""
    path = Path(path)
    if not path.parent.is_dir():
        return []
    prefix = f"{path.name}.tmp"
    return sorted(
        entry for entry in path.parent.iterdir()
        if entry.name.startswith(prefix) and entry.is_file() and not os.path.islink(entry)
    )
