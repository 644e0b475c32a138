"""
Tests for building per-run options.
"""

from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from gitmeta.core.errors import PreconditionError
from gitmeta.core.options import Action, build_run_options

segment = st.from_regex(r"[a-z0-9_-]{1,8}", fullmatch=True)
relpath = st.lists(segment, min_size=1, max_size=4).map("/".join)


@given(name=relpath)
@settings(max_examples=100, deadline=None)
def test_target_inside_root_is_its_own_store_file(name: str):
    """*For any* relative target inside the root, that path is the store file."""
    root = Path("/nonexistent-gitmeta-root")
    options = build_run_options(Action.STORE, root, name)
    assert options.target_relpath == name
    assert options.is_store_file(name)


class TestRunOptions:
    """Building per-run options."""

    def test_relative_target_joined_to_root(self, tmp_path):
        options = build_run_options(Action.STORE, tmp_path, ".git_store_meta")
        assert options.target == tmp_path.resolve() / ".git_store_meta"
        assert options.target_relpath == ".git_store_meta"
        assert options.is_store_file(".git_store_meta")
        assert not options.is_store_file("other")

    def test_target_normalized(self, tmp_path):
        options = build_run_options(Action.STORE, tmp_path, "./meta/../store")
        assert options.target_relpath == "store"

    def test_target_outside_root(self, tmp_path):
        outside = tmp_path.parent / "elsewhere"
        options = build_run_options(Action.APPLY, tmp_path, str(outside))
        assert options.target_relpath is None
        assert not options.is_store_file("elsewhere")

    def test_update_rejects_fields(self, tmp_path):
        with pytest.raises(PreconditionError):
            build_run_options(Action.UPDATE, tmp_path, ".git_store_meta", fields=("mtime",))

    def test_options_are_frozen(self, tmp_path):
        options = build_run_options(Action.STORE, Path(tmp_path), ".git_store_meta")
        with pytest.raises(AttributeError):
            options.dry_run = True
