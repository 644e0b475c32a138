"""
Service layer data models.

Contains result dataclasses for store, update and apply runs and the
precondition errors the services raise.
"""

from dataclasses import dataclass, field
from pathlib import Path

from gitmeta.core.errors import PreconditionError


class DirtyWorkingTreeError(PreconditionError):
    """Raised when apply would run on a tree with uncommitted changes."""

    pass


class HookExistsError(PreconditionError):
    """Raised when hook files already exist and force was not given."""

    def __init__(self, message: str, paths: list[Path] | None = None):
        self.paths = paths or []
        super().__init__(message)


@dataclass
class StoreResult:
    """Result of a full store run."""

    target: Path
    fields: tuple[str, ...]
    records: int = 0
    skipped: int = 0
    dry_run: bool = False


@dataclass
class UpdateResult:
    """Result of an incremental update run."""

    target: Path
    fields: tuple[str, ...]
    records: int = 0
    remeasured: int = 0
    dropped: int = 0
    dry_run: bool = False


@dataclass
class ApplyResult:
    """Result of an apply run."""

    target: Path
    fields: tuple[str, ...] = ()
    applied: int = 0
    skipped: int = 0
    warnings: list[str] = field(default_factory=list)
    noop: bool = False
    dry_run: bool = False
