"""
Property-based tests for the record codec.

Covers filename escaping, byte-wise ordering and timestamp conversion.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from gitmeta.core.codec import (
    RecordParseError,
    escape_path,
    path_sort_key,
    text_to_time,
    time_to_text,
    unescape_path,
)

path_text = st.text(min_size=1, max_size=60)

# 1970-01-01 .. 9999-12-31
epoch_seconds = st.integers(min_value=0, max_value=253402300799)


@given(path=path_text)
@settings(max_examples=100, deadline=None)
def test_escape_round_trip(path: str):
    """*For any* path, unescaping its escaped form gives the path back."""
    assert unescape_path(escape_path(path)) == path


@given(path=path_text)
@settings(max_examples=100, deadline=None)
def test_escaped_path_has_no_control_characters(path: str):
    """*For any* path, the escaped form holds no tab, newline or other control byte."""
    escaped = escape_path(path)
    assert not any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in escaped)


@given(paths=st.lists(path_text, min_size=2, max_size=20))
@settings(max_examples=100, deadline=None)
def test_sort_key_matches_byte_order(paths: list[str]):
    """Ordering by path_sort_key equals ordering by the UTF-8 bytes."""
    escaped = [escape_path(p) for p in paths]
    by_key = sorted(escaped, key=path_sort_key)
    by_bytes = sorted(escaped, key=lambda s: s.encode("utf-8", "surrogateescape"))
    assert by_key == by_bytes


@given(seconds=epoch_seconds)
@settings(max_examples=100, deadline=None)
def test_time_round_trip(seconds: int):
    """*For any* epoch second, formatting then parsing is the identity."""
    assert text_to_time(time_to_text(seconds)) == seconds


class TestEscaping:
    """Concrete escaping cases."""

    def test_newline_and_tab(self):
        assert escape_path("a\nb\tc") == "a\\x0Ab\\x09c"

    def test_backslash_and_delete(self):
        assert escape_path("a\\b\x7f") == "a\\x5Cb\\x7F"

    def test_plain_path_unchanged(self):
        assert escape_path("dir/sub dir/ünïcode.txt") == "dir/sub dir/ünïcode.txt"

    def test_legacy_double_backslash(self):
        """A doubled backslash written by old stores reads as one backslash."""
        assert unescape_path("a\\\\b") == "a\\b"

    def test_lowercase_hex_accepted(self):
        assert unescape_path("a\\x0ab") == "a\nb"

    def test_undecodable_bytes_survive(self):
        path = b"caf\xe9".decode("utf-8", "surrogateescape")
        assert unescape_path(escape_path(path)) == path
        assert path_sort_key(escape_path(path)) == b"caf\xe9"


class TestTimestamps:
    """Concrete timestamp cases."""

    def test_epoch(self):
        assert time_to_text(0) == "1970-01-01T00:00:00Z"
        assert text_to_time("1970-01-01T00:00:00Z") == 0

    def test_known_value(self):
        assert text_to_time("2020-01-02T03:04:05Z") == 1577934245

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "garbage",
            "2020-01-02 03:04:05",
            "2020-01-02T03:04:05",
            "2020-13-01T00:00:00Z",
            "2020-02-30T00:00:00Z",
            "2020-01-01T25:00:00Z",
        ],
    )
    def test_malformed(self, text: str):
        with pytest.raises(RecordParseError):
            text_to_time(text)
