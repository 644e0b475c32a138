"""
Record codec for gitmeta.

Escapes filenames so they can live on one tab-separated line, and converts
timestamps between epoch seconds and the fixed ISO-8601 UTC form used in
the store file.
"""

import calendar
import re
from datetime import datetime, timezone

from gitmeta.core.errors import GitMetaError

TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_ESCAPE_RE = re.compile(r"[\x00-\x1f\\\x7f]")
_UNESCAPE_RE = re.compile(r"\\(?:x([0-9A-Fa-f]{2})|\\)")
_TIME_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})Z$")

# Paths cross the process boundary as raw bytes; undecodable bytes are
# carried as lone surrogates and must round-trip unchanged.
STORE_ENCODING = "utf-8"
STORE_ERRORS = "surrogateescape"


class RecordParseError(GitMetaError):
    """Raised when a stored record value cannot be decoded."""

    pass


def escape_path(path: str) -> str:
    """
    Escape control characters, the backslash and DEL as ``\\xHH``.

    Args:
        path: Raw relative path

    Returns:
        Escaped token safe to store in a tab-separated line
    """
    return _ESCAPE_RE.sub(lambda m: f"\\x{ord(m.group(0)):02X}", path)


def unescape_path(token: str) -> str:
    """
    Reverse of escape_path.

    A doubled backslash is read as one literal backslash, which is how
    stores written by old versions escaped it.
    """

    def _replace(match: re.Match) -> str:
        if match.group(1) is not None:
            return chr(int(match.group(1), 16))
        return "\\"

    return _UNESCAPE_RE.sub(_replace, token)


def path_sort_key(escaped: str) -> bytes:
    """Return the byte string used for locale-independent ordering."""
    return escaped.encode(STORE_ENCODING, STORE_ERRORS)


def time_to_text(epoch_seconds: int) -> str:
    """Format epoch seconds as ``YYYY-MM-DDTHH:MM:SSZ``."""
    return datetime.fromtimestamp(int(epoch_seconds), tz=timezone.utc).strftime(TIME_FORMAT)


def text_to_time(text: str) -> int:
    """
    Parse a ``YYYY-MM-DDTHH:MM:SSZ`` timestamp into epoch seconds.

    Raises:
        RecordParseError: If the text is not in the expected form
    """
    match = _TIME_RE.match(text)
    if match is None:
        raise RecordParseError(f"Malformed timestamp: {text!r}")
    year, month, day, hour, minute, second = (int(part) for part in match.groups())
    try:
        # Validates ranges (month 13, day 32 and so on).
        datetime(year, month, day, hour, minute, second)
    except ValueError as e:
        raise RecordParseError(f"Malformed timestamp: {text!r}: {e}") from e
    return calendar.timegm((year, month, day, hour, minute, second, 0, 0, 0))
