"""
Version-control collaborator for gitmeta.
"""

from .git import GitRepository
from .interface import ChangeStatus, StagedChange, VCSError, VCSInterface

__all__ = [
    "VCSInterface",
    "VCSError",
    "ChangeStatus",
    "StagedChange",
    "GitRepository",
]
