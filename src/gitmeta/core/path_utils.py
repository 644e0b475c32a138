"""
Path helpers for tree-relative, slash-separated paths as reported by git.
"""

from collections.abc import Iterable, Iterator


def iter_ancestors(path: str) -> Iterator[str]:
    """
    Yield the ancestor directories of a relative path, nearest first.

    ``"a/b/c.txt"`` yields ``"a/b"`` then ``"a"``.
    """
    parts = path.split("/")[:-1]
    while parts:
        yield "/".join(parts)
        parts.pop()


def tracked_directories(paths: Iterable[str]) -> list[str]:
    """
    Derive the directory set of a tree from its tracked paths.

    Git trees hold no empty directories, so the directories of a tree are
    exactly the ancestors of its entries.
    """
    directories: set[str] = set()
    for path in paths:
        for ancestor in iter_ancestors(path):
            if ancestor in directories:
                break
            directories.add(ancestor)
    return sorted(directories)
