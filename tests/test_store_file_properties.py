"""
Tests for the store file: header inspection, compatibility checks and
atomic writing.
"""

import os
import tempfile
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from gitmeta.infrastructure.store_file import (
    APPLY_VERSION_RANGE,
    UPDATE_VERSION_RANGE,
    MalformedStoreFileError,
    StoreFileAccessError,
    StoreFileError,
    StoreFileMissingError,
    StoreFileWriter,
    UnknownSchemaError,
    UnsupportedVersionError,
    check_compatible,
    has_directory_entry,
    iter_data_lines,
    parse_version,
    read_header_state,
    render_field_line,
    render_header,
    render_store,
    stale_temp_files,
)

record_line = st.from_regex(r"[a-z0-9_./]{1,20}\tf\t2020-01-0[1-9]T00:00:00Z", fullmatch=True)


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


@given(lines=st.lists(record_line, max_size=30))
@settings(max_examples=100, deadline=None)
def test_written_store_reads_back(lines: list[str]):
    """
    *For any* set of record lines, a written store declares its fields in
    the header and yields the same record lines.
    """
    fields = ("file", "type", "mtime")
    with tempfile.TemporaryDirectory() as tmpdir:
        target = Path(tmpdir) / ".git_store_meta"
        written = StoreFileWriter(target).write(render_store(fields, lines))

        assert written == len(lines) + 2
        state = read_header_state(target)
        assert state.valid
        assert state.fields == fields
        assert list(iter_data_lines(target)) == lines


class TestHeader:
    """Header rendering and inspection."""

    def test_render(self):
        assert render_header() == "# generated by\tgit-store-meta\t2.0.0"
        assert render_field_line(("file", "type", "mtime")) == "<file>\t<type>\t<mtime>"

    def test_missing(self, tmp_path):
        state = read_header_state(tmp_path / "absent")
        assert not state.exists
        assert not state.valid

    def test_directory_is_not_accessible(self, tmp_path):
        state = read_header_state(tmp_path)
        assert state.exists
        assert not state.accessible

    def test_malformed_header(self, tmp_path):
        store = _write(tmp_path / "store", "hello\n<file>\t<type>\n")
        state = read_header_state(store)
        assert state.accessible
        assert not state.valid

    def test_field_line_without_type(self, tmp_path):
        store = _write(tmp_path / "store", "# generated by\tgit-store-meta\t2.0.0\n<file>\t<mtime>\n")
        assert not read_header_state(store).valid

    def test_legacy_version(self, tmp_path):
        store = _write(tmp_path / "store", "# generated by\tgit-store-meta\t1.1.4\n<file>\t<type>\t<mtime>\n")
        state = read_header_state(store)
        assert state.valid
        assert state.version == (1, 1, 4)
        assert state.is_legacy

    def test_crlf_line_endings(self, tmp_path):
        store = tmp_path / "store"
        store.write_bytes(
            b"# generated by\tgit-store-meta\t2.0.0\r\n<file>\t<type>\t<mtime>\r\n"
            b"a.txt\tf\t2020-01-01T00:00:00Z\r\n"
        )
        state = read_header_state(store)
        assert state.valid
        assert state.version_text == "2.0.0"
        assert state.fields == ("file", "type", "mtime")
        assert list(iter_data_lines(store)) == ["a.txt\tf\t2020-01-01T00:00:00Z"]


class TestParseVersion:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2.0.0", (2, 0, 0)),
            ("1.1", (1, 1, 0)),
            ("2.0.0_003", (2, 0, 0)),
            ("v1.0.2", (1, 0, 2)),
            ("garbage", None),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_version(text) == expected


class TestCompatibility:
    """check_compatible raises the most fundamental problem first."""

    def _state(self, tmp_path: Path, header: str):
        return read_header_state(_write(tmp_path / "store", header + "\n<file>\t<type>\n"))

    def test_missing(self, tmp_path):
        with pytest.raises(StoreFileMissingError):
            check_compatible(read_header_state(tmp_path / "absent"), UPDATE_VERSION_RANGE)

    def test_not_a_file(self, tmp_path):
        with pytest.raises(StoreFileAccessError):
            check_compatible(read_header_state(tmp_path), UPDATE_VERSION_RANGE)

    def test_malformed(self, tmp_path):
        store = _write(tmp_path / "store", "nothing here\n")
        with pytest.raises(MalformedStoreFileError):
            check_compatible(read_header_state(store), UPDATE_VERSION_RANGE)

    def test_other_application(self, tmp_path):
        state = self._state(tmp_path, "# generated by\tother-tool\t2.0.0")
        with pytest.raises(UnknownSchemaError):
            check_compatible(state, UPDATE_VERSION_RANGE)

    def test_too_new(self, tmp_path):
        state = self._state(tmp_path, "# generated by\tgit-store-meta\t2.1.0")
        with pytest.raises(UnsupportedVersionError):
            check_compatible(state, APPLY_VERSION_RANGE)

    def test_update_rejects_1_0(self, tmp_path):
        state = self._state(tmp_path, "# generated by\tgit-store-meta\t1.0.0")
        with pytest.raises(UnsupportedVersionError):
            check_compatible(state, UPDATE_VERSION_RANGE)
        check_compatible(state, APPLY_VERSION_RANGE)

    def test_errors_share_base(self):
        assert issubclass(UnsupportedVersionError, StoreFileError)


class TestDataLines:
    def test_blank_lines_skipped(self, tmp_path):
        store = _write(
            tmp_path / "store",
            "# generated by\tgit-store-meta\t2.0.0\n<file>\t<type>\n\na\tf\n  \nb\tf\n",
        )
        assert list(iter_data_lines(store)) == ["a\tf", "b\tf"]

    def test_verbatim_keeps_trailing_tab(self, tmp_path):
        store = _write(
            tmp_path / "store",
            "# generated by\tgit-store-meta\t2.0.0\n<file>\t<type>\t<directory>\nd\td\t\n",
        )
        assert list(iter_data_lines(store, verbatim=True)) == ["d\td\t"]

    def test_has_directory_entry(self, tmp_path):
        fields = ("file", "type")
        with_dir = _write(tmp_path / "a", "h\n<file>\t<type>\nx\tf\nsub\td\n")
        without_dir = _write(tmp_path / "b", "h\n<file>\t<type>\nx\tf\n")
        assert has_directory_entry(with_dir, fields)
        assert not has_directory_entry(without_dir, fields)


class TestWriter:
    """Atomic replacement and temporary file handling."""

    def test_failed_write_keeps_previous_store(self, tmp_path):
        target = _write(tmp_path / ".git_store_meta", "previous\n")

        def lines():
            yield "first"
            raise RuntimeError("measurement failed")

        with pytest.raises(RuntimeError):
            StoreFileWriter(target).write(lines())

        assert target.read_text(encoding="utf-8") == "previous\n"
        assert stale_temp_files(target) == []

    def test_keeps_existing_mode(self, tmp_path):
        target = _write(tmp_path / ".git_store_meta", "previous\n")
        os.chmod(target, 0o640)
        StoreFileWriter(target).write(["new"])
        assert (target.stat().st_mode & 0o777) == 0o640

    def test_cleanup_stale(self, tmp_path):
        target = tmp_path / ".git_store_meta"
        stale = _write(tmp_path / ".git_store_meta.tmpabc123", "partial")
        unrelated = _write(tmp_path / "other.tmp", "keep")

        removed = StoreFileWriter(target).cleanup_stale()

        assert removed == 1
        assert not stale.exists()
        assert unrelated.exists()

    def test_undecodable_path_round_trips(self, tmp_path):
        target = tmp_path / ".git_store_meta"
        name = b"caf\xe9".decode("utf-8", "surrogateescape")
        StoreFileWriter(target).write(render_store(("file", "type"), [f"{name}\tf"]))
        assert target.read_bytes().endswith(b"caf\xe9\tf\n")
        assert list(iter_data_lines(target)) == [f"{name}\tf"]
