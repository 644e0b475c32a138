"""
Property-based tests for path helpers.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from gitmeta.core.path_utils import iter_ancestors, tracked_directories

segment = st.from_regex(r"[a-z0-9_.-]{1,8}", fullmatch=True).filter(lambda s: s not in (".", ".."))
relpath = st.lists(segment, min_size=1, max_size=5).map("/".join)


@given(paths=st.lists(relpath, max_size=30))
@settings(max_examples=100, deadline=None)
def test_tracked_directories_closed_under_ancestors(paths: list[str]):
    """*For any* path set, every ancestor of a directory is also a directory."""
    directories = tracked_directories(paths)
    assert directories == sorted(set(directories))
    for directory in directories:
        for ancestor in iter_ancestors(directory):
            assert ancestor in directories


@given(paths=st.lists(relpath, max_size=30))
@settings(max_examples=100, deadline=None)
def test_tracked_directories_are_exact(paths: list[str]):
    """The directory set is exactly the union of every path's ancestors."""
    expected = {ancestor for path in paths for ancestor in iter_ancestors(path)}
    assert set(tracked_directories(paths)) == expected


class TestIterAncestors:
    def test_nearest_first(self):
        assert list(iter_ancestors("a/b/c.txt")) == ["a/b", "a"]

    def test_top_level_has_none(self):
        assert list(iter_ancestors("c.txt")) == []
