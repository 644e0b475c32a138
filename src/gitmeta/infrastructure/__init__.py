"""
Infrastructure Layer - Store file, git collaborator and filesystem attribute layer.
"""

from gitmeta.infrastructure.attributes import (
    AttributeLayerInterface,
    FileStatus,
    LinkAwareSetter,
    PosixAttributeLayer,
    SyscallLinkSetter,
    ToolLinkSetter,
    create_attribute_layer,
    create_link_setter,
)
from gitmeta.infrastructure.fakes import InMemoryRepository, RecordingAttributeLayer
from gitmeta.infrastructure.store_file import (
    CacheHeaderState,
    StoreFileError,
    StoreFileWriter,
    read_header_state,
)
from gitmeta.infrastructure.vcs import (
    ChangeStatus,
    GitRepository,
    StagedChange,
    VCSError,
    VCSInterface,
)

__all__ = [
    # Attributes
    "AttributeLayerInterface",
    "FileStatus",
    "LinkAwareSetter",
    "PosixAttributeLayer",
    "SyscallLinkSetter",
    "ToolLinkSetter",
    "create_attribute_layer",
    "create_link_setter",
    # Store file
    "CacheHeaderState",
    "StoreFileError",
    "StoreFileWriter",
    "read_header_state",
    # VCS
    "VCSInterface",
    "VCSError",
    "ChangeStatus",
    "StagedChange",
    "GitRepository",
    # Fakes
    "InMemoryRepository",
    "RecordingAttributeLayer",
]
