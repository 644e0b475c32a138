"""
Centralized services container module for gitmeta.

Builds the collaborators every command shares: configuration, the git
working tree and the filesystem attribute layer.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from gitmeta.core.config import GitMetaConfig, load_config
from gitmeta.infrastructure import (
    AttributeLayerInterface,
    GitRepository,
    VCSInterface,
    create_attribute_layer,
)


@dataclass
class ServicesContainer:
    """
    Container holding the shared collaborators of one invocation.

    Attributes:
        config: Application configuration
        vcs: Working tree the command runs against
        attributes: Filesystem attribute layer
    """

    config: GitMetaConfig
    vcs: VCSInterface
    attributes: AttributeLayerInterface


def create_services(
    config_path: Optional[Path] = None,
    start: Optional[Path] = None,
    config: Optional[GitMetaConfig] = None,
) -> ServicesContainer:
    """
    Create and initialize the shared collaborators.

    Args:
        config_path: Optional path to a configuration file. If None, uses
                    environment variables and defaults.
        start: Directory to look for the working tree from (default: cwd)
        config: Already loaded configuration; takes precedence over
                config_path

    Returns:
        ServicesContainer with all collaborators initialized.

    Raises:
        VCSError: If the start directory is not inside a git working tree
        ValueError: If the configuration is invalid
    """
    if config is None:
        config = load_config(config_path)

    vcs = GitRepository.discover(
        start,
        executable=config.git.executable,
        timeout=config.git.timeout,
    )

    attributes = create_attribute_layer(
        link_strategy=config.attributes.link_strategy,
        getfacl=config.attributes.getfacl,
        setfacl=config.attributes.setfacl,
    )

    return ServicesContainer(config=config, vcs=vcs, attributes=attributes)
