"""
Atomic store file writer.
"""

import logging
import os
import shutil
import tempfile
from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path

from gitmeta.core.codec import STORE_ENCODING, STORE_ERRORS

from .models import STORE_APP, STORE_PREFIX, STORE_VERSION, StoreFileError
from .reader import stale_temp_files

logger = logging.getLogger(__name__)


def current_umask() -> int:
    """Return the process umask without changing it."""
    mask = os.umask(0)
    os.umask(mask)
    return mask


def render_header() -> str:
    """Return the producer header line."""
    return "\t".join((STORE_PREFIX, STORE_APP, STORE_VERSION))


def render_field_line(fields: Sequence[str]) -> str:
    """Return the field declaration line, e.g. ``<file>\\t<type>\\t<mtime>``."""
    return "\t".join(f"<{name}>" for name in fields)


def render_store(fields: Sequence[str], record_lines: Iterable[str]) -> Iterator[str]:
    """Yield every line of a store file: both header lines, then the records."""
    yield render_header()
    yield render_field_line(fields)
    yield from record_lines


class StoreFileWriter:
    """
    Writes a store file so that readers only ever see a complete file.

    Content goes to a temporary file next to the target and is moved over
    the target with os.replace once every line has been written. If
    producing the lines fails, the temporary file is removed and the
    previous store stays as it was.

    There is no locking. Running several writers against the same target
    at once is not supported and the resulting content is undefined.
    """

    def __init__(self, target: Path | str):
        self._target = Path(target)

    @property
    def target(self) -> Path:
        return self._target

    def cleanup_stale(self) -> int:
        """Remove temporaries left by interrupted runs. Returns count removed."""
        removed = 0
        for path in stale_temp_files(self._target):
            try:
                path.unlink()
                removed += 1
                logger.info(f"Removed stale temporary file: {path}")
            except OSError as e:
                logger.warning(f"Could not remove stale temporary file {path}: {e}")
        return removed

    def write(self, lines: Iterable[str]) -> int:
        """
        Write lines to the target atomically.

        Args:
            lines: Lines without terminators

        Returns:
            Number of lines written

        Raises:
            StoreFileError: If the file cannot be written
        """
        directory = self._target.parent
        try:
            fd, temp_name = tempfile.mkstemp(prefix=f"{self._target.name}.tmp", dir=directory)
        except OSError as e:
            raise StoreFileError(f"failed to write to `{self._target}': {e}") from e

        temp_path = Path(temp_name)
        count = 0
        try:
            with os.fdopen(fd, "w", encoding=STORE_ENCODING, errors=STORE_ERRORS, newline="\n") as f:
                for line in lines:
                    f.write(line)
                    f.write("\n")
                    count += 1
            self._copy_mode(temp_path)
            os.replace(temp_path, self._target)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise StoreFileError(f"failed to write to `{self._target}': {e}") from e
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

        logger.debug(f"Wrote {count} lines to {self._target}")
        return count

    def _copy_mode(self, temp_path: Path) -> None:
        # mkstemp creates 0600; keep the old store's mode or use the umask default.
        if self._target.is_file():
            shutil.copymode(self._target, temp_path)
        else:
            os.chmod(temp_path, 0o666 & ~current_umask())
