from __future__ import annotations

import os

from .abspath import PathInput


def is_within(path: str, base: str) -> bool:
    try:
        common = os.path.commonpath([os.path.normcase(path), os.path.normcase(base)])
    except ValueError:
        return False
    return common == os.path.normcase(os.path.normpath(base))


def _strip_prefix_ci(text: str, prefix: str) -> str:
    if text.casefold().startswith(prefix.casefold()):
        return text[len(prefix):]
    return text


def relative_name(file: PathInput, base_directory: PathInput) -> str:
    """Archive entry name for ``file`` relative to ``base_directory``.

    Rules:
    - Relative path from the base (case-insensitive prefix match as fallback)
    - Drop any remaining drive/root marker
    - Convert backslashes to slashes
    - Strip leading slashes

    Returns "" when ``file`` is the base directory itself.
    """
    file_s = os.fspath(file)
    base_s = os.fspath(base_directory)
    if os.path.isabs(file_s) and os.path.isabs(base_s) and is_within(file_s, base_s):
        rel = os.path.relpath(file_s, base_s)
        if rel == os.curdir:
            rel = ""
    else:
        rel = _strip_prefix_ci(file_s, base_s)
        drive, rest = os.path.splitdrive(rel)
        if drive:
            rel = rest
    return rel.replace("\\", "/").lstrip("/")


def normalize_entry_name(name: str | None) -> str:
    """Normalize a stored archive entry name to a forward-slash relative form.

    Strips leading "./" segments and leading slashes; a bare "." becomes "".
    Unlike :func:`relative_name` this does not reject ".."; the extraction
    bounds check is what catches traversal.
    """
    if not name:
        return ""
    n = name.replace("\\", "/")
    while n.startswith("./"):
        n = n[2:]
    n = n.lstrip("/")
    if n == ".":
        return ""
    return n


def to_platform(relative: str) -> str:
    return relative.replace("/", os.sep)


def is_rooted(path: str) -> bool:
    """True for paths with a drive or a leading separator ("C:\\x", "\\x", "/x")."""
    drive, rest = os.path.splitdrive(path)
    if drive:
        return True
    seps = ("/", "\\") if os.name == "nt" else ("/",)
    return rest[:1] in seps
