"""
Store Service for gitmeta.

Measures every tracked path (and, when requested, every directory that
holds a tracked path) and writes a fresh store file.
"""

import logging
from collections.abc import Sequence
from typing import Callable, Optional

from gitmeta.core.codec import path_sort_key
from gitmeta.core.models import Field, MetadataRecord
from gitmeta.core.options import RunOptions
from gitmeta.infrastructure.attributes import AttributeLayerInterface
from gitmeta.infrastructure.store_file import StoreFileWriter, read_header_state, render_store
from gitmeta.infrastructure.vcs import VCSInterface
from gitmeta.services.measurement import FileMeasurer, resolve_fields
from gitmeta.services.models import StoreResult

logger = logging.getLogger(__name__)


class StoreService:
    """
    Service for full stores.

    Records are unique per path and sorted by the byte order of their
    escaped path, so two stores of the same tree compare equal.
    """

    def __init__(
        self,
        vcs: VCSInterface,
        attributes: AttributeLayerInterface,
        options: RunOptions,
        default_fields: Sequence[str],
        echo: Optional[Callable[[str], None]] = None,
    ):
        """
        Initialize the store service.

        Args:
            vcs: Source of the tracked path list
            attributes: Filesystem attribute layer used for measuring
            options: Options of this run
            default_fields: Fields used when neither the command line nor
                an existing store names any
            echo: Receives the store lines in dry-run mode (default: print)
        """
        self._vcs = vcs
        self._attributes = attributes
        self._options = options
        self._default_fields = tuple(default_fields)
        self._echo = echo or print

    def resolve_fields(self) -> tuple[str, ...]:
        state = read_header_state(self._options.target)
        return resolve_fields(self._options, state, self._default_fields)

    def collect_records(self, fields: Sequence[str]) -> tuple[list[MetadataRecord], int]:
        """
        Measure the tracked tree.

        Returns:
            Tuple of (records sorted by escaped path, number of paths skipped)
        """
        measurer = FileMeasurer(self._options.root, self._attributes, fields)
        paths = list(self._vcs.list_files())
        if Field.DIRECTORY.value in fields:
            paths.extend(self._vcs.list_directories())

        records: dict[str, MetadataRecord] = {}
        skipped = 0
        for path in paths:
            if self._options.is_store_file(path):
                continue
            record = measurer.measure(path)
            if record is None:
                skipped += 1
                continue
            records[record.escaped_file] = record

        ordered = [records[key] for key in sorted(records, key=path_sort_key)]
        logger.debug(f"Measured {len(ordered)} paths, skipped {skipped}")
        return ordered, skipped

    def run(self) -> StoreResult:
        """
        Run a full store.

        Raises:
            StoreFileError: If the store file cannot be written
            VCSError: If the tracked path list cannot be read
        """
        options = self._options
        fields = self.resolve_fields()
        logger.info(f"Storing metadata to {options.target} (fields: {', '.join(fields)})")

        records, skipped = self.collect_records(fields)
        lines = render_store(fields, (record.to_line(fields) for record in records))

        if options.dry_run:
            for line in lines:
                self._echo(line)
        else:
            writer = StoreFileWriter(options.target)
            writer.cleanup_stale()
            writer.write(lines)

        return StoreResult(
            target=options.target,
            fields=fields,
            records=len(records),
            skipped=skipped,
            dry_run=options.dry_run,
        )
