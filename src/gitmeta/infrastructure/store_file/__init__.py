"""
Store file module for gitmeta.

Header model, compatibility checks, record line reading and atomic writing
of the metadata store file.
"""

from .models import (
    APPLY_VERSION_RANGE,
    STORE_APP,
    STORE_PREFIX,
    STORE_VERSION,
    UPDATE_VERSION_RANGE,
    CacheHeaderState,
    MalformedStoreFileError,
    StoreFileAccessError,
    StoreFileError,
    StoreFileMissingError,
    UnknownSchemaError,
    UnsupportedVersionError,
    parse_version,
)
from .reader import (
    check_compatible,
    has_directory_entry,
    iter_data_lines,
    read_header_state,
    stale_temp_files,
)
from .writer import (
    StoreFileWriter,
    current_umask,
    render_field_line,
    render_header,
    render_store,
)

__all__ = [
    # Constants
    "STORE_PREFIX",
    "STORE_APP",
    "STORE_VERSION",
    "UPDATE_VERSION_RANGE",
    "APPLY_VERSION_RANGE",
    # Models
    "CacheHeaderState",
    "parse_version",
    # Errors
    "StoreFileError",
    "StoreFileMissingError",
    "StoreFileAccessError",
    "MalformedStoreFileError",
    "UnknownSchemaError",
    "UnsupportedVersionError",
    # Reading
    "read_header_state",
    "check_compatible",
    "iter_data_lines",
    "has_directory_entry",
    "stale_temp_files",
    # Writing
    "StoreFileWriter",
    "render_header",
    "render_field_line",
    "render_store",
    "current_umask",
]
