"""
Filesystem attribute layer for gitmeta.
"""

from .interface import NS_PER_SECOND, AttributeLayerInterface, FileStatus, LinkAwareSetter
from .links import SyscallLinkSetter, ToolLinkSetter, create_link_setter
from .posix import PosixAttributeLayer, parse_acl_output


def create_attribute_layer(
    link_strategy: str = "auto",
    getfacl: str = "getfacl",
    setfacl: str = "setfacl",
) -> PosixAttributeLayer:
    """Create the attribute layer with the configured link strategy."""
    return PosixAttributeLayer(
        link_setter=create_link_setter(link_strategy),
        getfacl=getfacl,
        setfacl=setfacl,
    )


__all__ = [
    # Interfaces
    "AttributeLayerInterface",
    "LinkAwareSetter",
    "FileStatus",
    "NS_PER_SECOND",
    # Implementations
    "PosixAttributeLayer",
    "SyscallLinkSetter",
    "ToolLinkSetter",
    # Factories and helpers
    "create_attribute_layer",
    "create_link_setter",
    "parse_acl_output",
]
