"""
Core Layer - Record codec, data models, configuration, and run options.
"""

from gitmeta.core.codec import (
    RecordParseError,
    escape_path,
    path_sort_key,
    text_to_time,
    time_to_text,
    unescape_path,
)
from gitmeta.core.config import (
    AttributesConfig,
    GitConfig,
    GitMetaConfig,
    LoggingConfig,
    StoreConfig,
    load_config,
)
from gitmeta.core.errors import GitMetaError, PreconditionError
from gitmeta.core.models import (
    SYMLINK_MODE,
    Field,
    FileType,
    MetadataRecord,
    parse_field_list,
    select_fields,
)
from gitmeta.core.options import Action, RunOptions, build_run_options
from gitmeta.core.path_utils import iter_ancestors, tracked_directories

__all__ = [
    # Errors
    "GitMetaError",
    "PreconditionError",
    "RecordParseError",
    # Codec
    "escape_path",
    "unescape_path",
    "path_sort_key",
    "time_to_text",
    "text_to_time",
    # Models
    "Field",
    "FileType",
    "MetadataRecord",
    "SYMLINK_MODE",
    "parse_field_list",
    "select_fields",
    # Config
    "GitMetaConfig",
    "StoreConfig",
    "GitConfig",
    "AttributesConfig",
    "LoggingConfig",
    "load_config",
    # Options
    "Action",
    "RunOptions",
    "build_run_options",
    # Paths
    "iter_ancestors",
    "tracked_directories",
]
