from __future__ import annotations

import fnmatch
import os
from typing import Callable, List, Optional

from .abspath import AbsolutePath, PathInput


def _is_file_like(entry: os.DirEntry) -> bool:
    # Links count as files (even to directories) so archives can record them
    try:
        return entry.is_symlink() or entry.is_file(follow_symlinks=False)
    except OSError:
        return False


def _is_real_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False


def _scan_sorted(directory: str) -> List[os.DirEntry]:
    with os.scandir(directory) as it:
        return sorted(it, key=lambda e: e.path)


def get_directories(directory: PathInput, pattern: str = "*", depth: int = 1) -> List[AbsolutePath]:
    """Return subdirectories breadth first, ``depth`` levels deep.

    Each level is sorted by full path. Symlinked directories are not entered.
    """
    root = AbsolutePath.create(directory)
    if not root.is_dir():
        return []
    out: List[AbsolutePath] = []
    level = [root.path]
    while level and depth > 0:
        found: List[str] = []
        for d in level:
            for e in _scan_sorted(d):
                if _is_real_dir(e):
                    found.append(e.path)
        found.sort()
        out.extend(AbsolutePath(p) for p in found if fnmatch.fnmatch(os.path.basename(p), pattern))
        level = found
        depth -= 1
    return out


def _files_in(directory: str, pattern: str) -> List[AbsolutePath]:
    return [
        AbsolutePath(e.path)
        for e in _scan_sorted(directory)
        if _is_file_like(e) and fnmatch.fnmatch(e.name, pattern)
    ]


def get_files(
    directory: PathInput,
    pattern: str = "*",
    depth: int = 1,
    predicate: Optional[Callable[[AbsolutePath], bool]] = None,
) -> List[AbsolutePath]:
    """Enumerate files under ``directory`` in a stable, lexicographic order.

    Args:
        directory: Directory to walk.
        pattern: fnmatch glob applied to file names.
        depth: Number of directory levels to include; 1 means top level only.
        predicate: Optional filter; files for which it returns False are dropped.

    Returns:
        The directory's own files first, then the files of each subdirectory
        in breadth-first order. Empty when the directory is missing or depth is 0.
    """
    root = AbsolutePath.create(directory)
    if not root.is_dir() or depth <= 0:
        return []
    files = _files_in(root.path, pattern)
    # Walk every level, then take files of each directory found
    for sub in get_directories(root, depth=depth - 1):
        files.extend(_files_in(sub.path, pattern))
    if predicate is not None:
        files = [f for f in files if predicate(f)]
    return files
