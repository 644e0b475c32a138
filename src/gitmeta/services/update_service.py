"""
Update Service for gitmeta.

Incrementally refreshes an existing store from the staged changes: only
paths the index says changed (plus the directories around them) are
measured again, every other record is carried over byte for byte.

The merge works on a single stream of lines. Existing records enter as
UNCHANGED, staged changes as MODIFY or DELETE, and every tracked
directory as a PLACEHOLDER that cancels a DELETE of the same path. The
stream is sorted by escaped path and each path group is resolved on its
own, so the result does not depend on the order events were produced in.
"""

import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import IntEnum
from itertools import groupby
from operator import attrgetter
from typing import Callable, Optional

from gitmeta.core.codec import escape_path, path_sort_key, unescape_path
from gitmeta.core.models import Field
from gitmeta.core.options import RunOptions
from gitmeta.core.path_utils import iter_ancestors
from gitmeta.infrastructure.attributes import AttributeLayerInterface
from gitmeta.infrastructure.store_file import (
    UPDATE_VERSION_RANGE,
    StoreFileWriter,
    check_compatible,
    iter_data_lines,
    read_header_state,
    render_store,
)
from gitmeta.infrastructure.vcs import ChangeStatus, StagedChange, VCSInterface
from gitmeta.services.measurement import FileMeasurer, resolve_fields
from gitmeta.services.models import UpdateResult

logger = logging.getLogger(__name__)


class MergeKind(IntEnum):
    """Kind of a merge line. Lower values sort first within a path."""

    DELETE = 0
    PLACEHOLDER = 1
    MODIFY = 2
    UNCHANGED = 3


@dataclass(frozen=True)
class MergeLine:
    """
    One entry of the merge stream.

    Attributes:
        path: Escaped path
        kind: What the entry asks for
        payload: The existing record line, for UNCHANGED entries only
    """

    path: str
    kind: MergeKind
    payload: Optional[str] = None

    def sort_key(self) -> tuple[bytes, int]:
        return path_sort_key(self.path), int(self.kind)


@dataclass
class MergeStats:
    """Counters filled in while a merge stream is resolved."""

    remeasured: int = 0
    dropped: int = 0


def change_events(changes: Iterable[StagedChange], with_directories: bool) -> Iterator[MergeLine]:
    """
    Turn staged changes into merge lines.

    Added and modified paths are measured again. A deleted path is
    removed. With directory tracking on, an added path also refreshes
    every ancestor directory, and a deleted path refreshes its parent and
    tentatively deletes every ancestor; the placeholders decide which of
    those deletions survive.
    """
    for change in changes:
        path = change.path
        if change.status in (ChangeStatus.ADDED, ChangeStatus.MODIFIED):
            yield MergeLine(escape_path(path), MergeKind.MODIFY)
            if with_directories and change.status == ChangeStatus.ADDED:
                for ancestor in iter_ancestors(path):
                    yield MergeLine(escape_path(ancestor), MergeKind.MODIFY)
        elif change.status == ChangeStatus.DELETED:
            yield MergeLine(escape_path(path), MergeKind.DELETE)
            if with_directories:
                ancestors = list(iter_ancestors(path))
                if ancestors:
                    yield MergeLine(escape_path(ancestors[0]), MergeKind.MODIFY)
                for ancestor in ancestors:
                    yield MergeLine(escape_path(ancestor), MergeKind.DELETE)


def placeholder_events(directories: Iterable[str]) -> Iterator[MergeLine]:
    """Yield a placeholder for every directory that still holds tracked paths."""
    for directory in directories:
        yield MergeLine(escape_path(directory), MergeKind.PLACEHOLDER)


def existing_lines(lines: Iterable[str]) -> Iterator[MergeLine]:
    """
    Wrap the record lines of the current store as UNCHANGED entries.

    The merge key ignores surrounding whitespace; the payload is kept as read.
    """
    for line in lines:
        path = line.strip().split("\t", 1)[0]
        yield MergeLine(path, MergeKind.UNCHANGED, payload=line)


def resolve_merge(
    lines: Iterable[MergeLine],
    measure: Callable[[str], Optional[str]],
    exclude: Callable[[str], bool],
    stats: Optional[MergeStats] = None,
) -> Iterator[str]:
    """
    Resolve a merge stream into the record lines of the new store.

    For each path: a DELETE without a PLACEHOLDER drops the path; otherwise
    a MODIFY measures it again; otherwise the first UNCHANGED line is kept
    as is. A path holding only a placeholder produces nothing.

    Args:
        lines: Merge lines in any order
        measure: Measures an unescaped path, returning the new record line
            or None if the path can no longer be measured
        exclude: Tells whether an unescaped path must never be written
        stats: Optional counters to fill in

    Yields:
        Record lines sorted by escaped path
    """
    stats = stats if stats is not None else MergeStats()
    ordered = sorted(lines, key=MergeLine.sort_key)
    for escaped, group in groupby(ordered, key=attrgetter("path")):
        entries = list(group)
        kinds = {entry.kind for entry in entries}
        path = unescape_path(escaped)

        if exclude(path):
            continue
        if MergeKind.DELETE in kinds and MergeKind.PLACEHOLDER not in kinds:
            if MergeKind.UNCHANGED in kinds:
                stats.dropped += 1
            continue
        if MergeKind.MODIFY in kinds:
            line = measure(path)
            if line is None:
                logger.debug(f"{escaped} can no longer be measured, dropping it")
                stats.dropped += 1
                continue
            stats.remeasured += 1
            yield line
            continue
        if MergeKind.UNCHANGED in kinds:
            yield next(entry.payload for entry in entries if entry.kind == MergeKind.UNCHANGED)


class UpdateService:
    """
    Service for incremental updates of an existing store.

    The field list always comes from the existing store. Every record line
    of the old store is read before the new one is written.
    """

    def __init__(
        self,
        vcs: VCSInterface,
        attributes: AttributeLayerInterface,
        options: RunOptions,
        default_fields: Sequence[str],
        echo: Optional[Callable[[str], None]] = None,
    ):
        self._vcs = vcs
        self._attributes = attributes
        self._options = options
        self._default_fields = tuple(default_fields)
        self._echo = echo or print

    def run(self) -> UpdateResult:
        """
        Run an incremental update.

        Raises:
            StoreFileError: If the store is missing, unreadable, of another
                schema or of an unsupported version, or cannot be written
            VCSError: If the staged changes cannot be read
        """
        options = self._options
        state = read_header_state(options.target)
        check_compatible(state, UPDATE_VERSION_RANGE)
        fields = resolve_fields(options, state, self._default_fields)
        with_directories = Field.DIRECTORY.value in fields
        logger.info(f"Updating metadata in {options.target} (fields: {', '.join(fields)})")

        events: list[MergeLine] = list(existing_lines(iter_data_lines(options.target, verbatim=True)))
        events.extend(change_events(self._vcs.staged_changes(), with_directories))
        if with_directories:
            events.extend(placeholder_events(self._vcs.list_directories()))

        measurer = FileMeasurer(options.root, self._attributes, fields)
        stats = MergeStats()
        records = list(resolve_merge(events, measurer.measure_line, options.is_store_file, stats))
        lines = render_store(fields, records)

        if options.dry_run:
            for line in lines:
                self._echo(line)
        else:
            writer = StoreFileWriter(options.target)
            writer.cleanup_stale()
            writer.write(lines)

        logger.debug(f"Re-measured {stats.remeasured} paths, dropped {stats.dropped}")
        return UpdateResult(
            target=options.target,
            fields=fields,
            records=len(records),
            remeasured=stats.remeasured,
            dropped=stats.dropped,
            dry_run=options.dry_run,
        )
