"""
World sources for backup operations.

- filter_existing: drop candidate worlds that are not directories right now
- walk_world: lazy depth-first traversal of one world
- is_excluded: per-node exclusion rule applied by the archiver
"""

import os
import stat
from fnmatch import fnmatchcase
from typing import Iterable, Iterator, List, Sequence

from worldsnap.models import KIND_DIRECTORY, KIND_FILE, WalkEntry


# The server holds session.lock open while running, *.tmp are half-written saves
DEFAULT_EXCLUDE_PATTERNS = ('session.lock', '*.tmp')


def filter_existing(candidates: Iterable[str]) -> List[str]:
    """
    Keep the candidates that currently exist as directories.

    Order is preserved. Missing paths and non-directories are dropped
    silently; an empty result is not an error.

    Args:
        candidates: World directory paths

    Returns:
        Subsequence of candidates that are directories
    """
    result = []
    for candidate in candidates:
        try:
            if stat.S_ISDIR(os.stat(candidate).st_mode):
                result.append(candidate)
        except (OSError, ValueError):
            continue
    return result


def is_excluded(name: str, patterns: Sequence[str] = DEFAULT_EXCLUDE_PATTERNS) -> bool:
    """
    Check a base name against the exclusion patterns.

    Matching is case-sensitive on every platform.
    """
    return any(fnmatchcase(name, pattern) for pattern in patterns)


def _entry_for(path: str, st: os.stat_result) -> WalkEntry:
    if stat.S_ISDIR(st.st_mode):
        return WalkEntry(path=path, kind=KIND_DIRECTORY)
    return WalkEntry(path=path, kind=KIND_FILE, size=st.st_size)


def _children(directory: str) -> List[WalkEntry]:
    with os.scandir(directory) as it:
        items = sorted(it, key=lambda item: item.name)
    return [_entry_for(item.path, item.stat(follow_symlinks=False)) for item in items]


def walk_world(root: str) -> Iterator[WalkEntry]:
    """
    Walk a world directory depth-first, parents before children.

    The root itself is yielded first. Siblings come in name order. Symbolic
    links are reported as files and never descended into. A directory is
    only listed once the consumer has taken its own entry, so stopping the
    iteration stops all filesystem access.

    Args:
        root: World directory path; yielded paths are built on top of it

    Yields:
        WalkEntry records

    Raises:
        OSError: If the root or a directory cannot be read
    """
    stack = [_entry_for(root, os.lstat(root))]

    while stack:
        entry = stack.pop()
        yield entry

        if entry.is_dir:
            stack.extend(reversed(_children(entry.path)))
