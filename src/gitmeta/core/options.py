"""
Per-run options.

A RunOptions value is built once from the command line and passed to every
service; nothing reads run settings from module state.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from gitmeta.core.errors import PreconditionError


class Action(str, Enum):
    """Actions the driver can run."""

    STORE = "store"
    UPDATE = "update"
    APPLY = "apply"
    INSTALL = "install"


@dataclass(frozen=True)
class RunOptions:
    """
    Immutable settings for one invocation.

    Attributes:
        action: The action being run
        root: Top level of the working tree
        target: Absolute path of the store file
        target_name: Store file name as given (used when writing hooks)
        fields: Explicitly requested fields (without file/type), or None
        dry_run: Measure and report without persisting or mutating
        verbose: Report every attribute before it is applied
        force: Apply on a dirty tree / overwrite existing hooks
    """

    action: Action
    root: Path
    target: Path
    target_name: str
    fields: tuple[str, ...] | None = None
    dry_run: bool = False
    verbose: bool = False
    force: bool = False

    @property
    def target_relpath(self) -> str | None:
        """Store file path relative to the root, or None if it lives outside."""
        try:
            return self.target.relative_to(self.root).as_posix()
        except ValueError:
            return None

    def is_store_file(self, path: str) -> bool:
        """Check whether a tree-relative path names the store file itself."""
        return path == self.target_relpath


def build_run_options(
    action: Action,
    root: Path,
    target_name: str,
    fields: tuple[str, ...] | None = None,
    dry_run: bool = False,
    verbose: bool = False,
    force: bool = False,
) -> RunOptions:
    """
    Validate and build the options for a run.

    Args:
        action: Action to run
        root: Working tree top level
        target_name: Store file name, relative to the root or absolute
        fields: Explicit field request, or None to inherit
        dry_run: Dry-run toggle
        verbose: Verbose toggle
        force: Force toggle

    Raises:
        PreconditionError: If the options are not valid for the action
    """
    if action == Action.UPDATE and fields is not None:
        raise PreconditionError(
            "update always uses the fields of the existing store; --fields is not accepted"
        )

    root = Path(root).resolve()
    target = Path(target_name)
    if not target.is_absolute():
        target = root / target
    target = Path(os.path.normpath(target))

    return RunOptions(
        action=action,
        root=root,
        target=target,
        target_name=target_name,
        fields=fields,
        dry_run=dry_run,
        verbose=verbose,
        force=force,
    )
