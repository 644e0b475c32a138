"""
Tests for field selection and record lines.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from gitmeta.core.models import (
    KNOWN_FIELDS,
    MetadataRecord,
    parse_field_list,
    select_fields,
)

optional_fields = sorted(KNOWN_FIELDS - {"file", "type"})

record_strategy = st.builds(
    MetadataRecord,
    file=st.text(min_size=1, max_size=40),
    type=st.sampled_from(["f", "l", "d"]),
    mtime=st.one_of(st.none(), st.integers(min_value=0, max_value=4102444800)),
    atime=st.one_of(st.none(), st.integers(min_value=0, max_value=4102444800)),
    mode=st.one_of(st.none(), st.from_regex(r"0[0-7]{3}", fullmatch=True)),
    uid=st.one_of(st.none(), st.integers(min_value=0, max_value=65535).map(str)),
    gid=st.one_of(st.none(), st.integers(min_value=0, max_value=65535).map(str)),
    user=st.one_of(st.none(), st.from_regex(r"[a-z_][a-z0-9_-]{0,15}", fullmatch=True)),
    group=st.one_of(st.none(), st.from_regex(r"[a-z_][a-z0-9_-]{0,15}", fullmatch=True)),
    acl=st.one_of(st.none(), st.just("user:alice:rw-,mask::rw-")),
)


@given(record=record_strategy, extra=st.lists(st.sampled_from(optional_fields), unique=True))
@settings(max_examples=100, deadline=None)
def test_record_line_round_trip(record: MetadataRecord, extra: list[str]):
    """*For any* record and field list, decoding the encoded line keeps the listed values."""
    fields = select_fields(extra, None, [])
    decoded = MetadataRecord.from_line(record.to_line(fields), fields)

    assert decoded.file == record.file
    assert decoded.type == record.type
    for name in ("mtime", "atime", "mode", "uid", "gid", "user", "group", "acl"):
        expected = getattr(record, name) if name in fields else None
        assert getattr(decoded, name) == expected


@given(requested=st.lists(st.sampled_from(optional_fields + ["bogus"]), max_size=12))
@settings(max_examples=100, deadline=None)
def test_selected_fields_start_with_file_and_type(requested: list[str]):
    """*For any* request, the result starts with file,type and has no duplicates or unknowns."""
    fields = select_fields(requested, None, ["mtime"])
    assert fields[:2] == ("file", "type")
    assert len(fields) == len(set(fields))
    assert set(fields) <= KNOWN_FIELDS


class TestSelectFields:
    """Precedence of requested, inherited and default field lists."""

    def test_requested_wins(self):
        assert select_fields(["mode"], ("file", "type", "mtime"), ["atime"]) == ("file", "type", "mode")

    def test_inherited_used_verbatim(self):
        inherited = ("file", "type", "mtime", "directory")
        assert select_fields(None, inherited, ["atime"]) == inherited

    def test_default_when_nothing_else(self):
        assert select_fields(None, None, ["mtime"]) == ("file", "type", "mtime")

    def test_duplicates_keep_first_position(self):
        assert select_fields(["mtime", "type", "mtime", "mode"], None, []) == (
            "file",
            "type",
            "mtime",
            "mode",
        )


class TestParseFieldList:
    def test_spaces_after_commas(self):
        assert parse_field_list("mtime, mode,uid") == ["mtime", "mode", "uid"]

    def test_empty_parts_dropped(self):
        assert parse_field_list("mtime,,mode,") == ["mtime", "mode"]


class TestRecordLines:
    """Concrete record line cases."""

    def test_directory_column_is_empty(self):
        record = MetadataRecord(file="dir", type="d", mtime=0)
        assert record.to_line(("file", "type", "mtime", "directory")) == "dir\td\t1970-01-01T00:00:00Z\t"

    def test_missing_columns_decode_as_absent(self):
        record = MetadataRecord.from_line("a.txt\tf", ("file", "type", "mtime", "mode"))
        assert record.file == "a.txt"
        assert record.mtime is None
        assert record.mode is None

    def test_escaped_file_name(self):
        record = MetadataRecord.from_line("a\\x0Ab\tf", ("file", "type"))
        assert record.file == "a\nb"
        assert record.escaped_file == "a\\x0Ab"
