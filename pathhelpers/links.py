from __future__ import annotations

import enum
import os
import shutil
from dataclasses import dataclass
from typing import Optional

from .abspath import PathInput
from .constants import (
    NT_DEVICE_PREFIX,
    UNSUPPORTED_SYMLINK_ERRNOS,
    UNSUPPORTED_SYMLINK_WINERRORS,
)
from .pathutil import is_rooted, is_within, to_platform


class LinkOutcome(enum.Enum):
    CREATED = "created"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class LinkResolution:
    platform_target: str  # what os.symlink gets
    absolute_target: str  # where that points, for existence checks and copies
    is_directory: bool


class SymlinkCreator:
    """Creates symbolic links, reporting a refused link as an outcome instead of raising.

    Subclasses decide which OSErrors mean "links are not allowed here".
    Anything else still propagates.
    """

    def create(self, link_path: str, target: str, is_directory: bool) -> LinkOutcome:
        symlink_fn = getattr(os, "symlink", None)
        if symlink_fn is None:
            return LinkOutcome.UNSUPPORTED
        try:
            symlink_fn(target, link_path, target_is_directory=is_directory)
        except NotImplementedError:
            return LinkOutcome.UNSUPPORTED
        except OSError as exc:
            if self.is_unsupported(exc):
                return LinkOutcome.UNSUPPORTED
            raise
        return LinkOutcome.CREATED

    def is_unsupported(self, exc: OSError) -> bool:
        raise NotImplementedError


class PosixSymlinkCreator(SymlinkCreator):
    def is_unsupported(self, exc: OSError) -> bool:
        return exc.errno in UNSUPPORTED_SYMLINK_ERRNOS


class WindowsSymlinkCreator(SymlinkCreator):
    """Windows refuses links without SeCreateSymbolicLinkPrivilege or developer mode."""

    def is_unsupported(self, exc: OSError) -> bool:
        if getattr(exc, "winerror", None) in UNSUPPORTED_SYMLINK_WINERRORS:
            return True
        return isinstance(exc, PermissionError)


def default_symlink_creator() -> SymlinkCreator:
    if os.name == "nt":
        return WindowsSymlinkCreator()
    return PosixSymlinkCreator()


def normalize_link_target_for_archive(
    link_path: PathInput,
    base_directory: PathInput,
    raw_target: Optional[str] = None,
) -> str:
    """Link target to store in a tar entry for the symlink at ``link_path``.

    Absolute targets are rewritten relative to the link's parent when they
    stay below it, else relative to ``base_directory`` when they stay below
    that, else kept absolute. The result uses forward slashes and is never
    empty (falls back to the link's own name).
    """
    link_s = os.fspath(link_path)
    base_s = os.fspath(base_directory)
    target = os.readlink(link_s) if raw_target is None else raw_target

    if target.startswith(NT_DEVICE_PREFIX):
        target = target[len(NT_DEVICE_PREFIX):]

    link_parent = os.path.dirname(link_s) or base_s

    if is_rooted(target):
        full_target = os.path.abspath(target)
        try:
            rel_parent = os.path.relpath(full_target, link_parent)
            if not rel_parent.startswith(".."):
                target = rel_parent
            else:
                rel_base = os.path.relpath(full_target, base_s)
                target = rel_base if not rel_base.startswith("..") else full_target
        except ValueError:
            # different drives
            target = full_target

    target = target.replace("\\", "/")
    if not target:
        target = os.path.basename(link_s)
    return target


def resolve_link_targets(raw_link_name: str, link_parent: str, root: str) -> LinkResolution:
    """Work out where a stored tar link should point once extracted under ``root``.

    - "" -> the link's own parent (".")
    - "/x" -> x under the extraction root, not the OS root
    - drive-absolute -> kept as is
    - otherwise relative to ``link_parent``
    """
    name = raw_link_name.replace("\\", "/")
    indicates_directory = name.endswith("/")
    name = name.rstrip("/")

    if not name:
        platform_target = os.curdir
        absolute_target = link_parent
    elif name.startswith("/"):
        absolute_target = os.path.abspath(os.path.join(root, to_platform(name.lstrip("/"))))
        platform_target = os.path.relpath(absolute_target, link_parent)
    elif is_rooted(name):
        absolute_target = os.path.abspath(name)
        platform_target = absolute_target
    else:
        platform_target = to_platform(name)
        absolute_target = os.path.abspath(os.path.join(link_parent, platform_target))

    is_directory = indicates_directory or os.path.isdir(absolute_target)
    return LinkResolution(platform_target, absolute_target, is_directory)


def create_symlink_or_fallback(
    link_path: str,
    resolution: LinkResolution,
    creator: Optional[SymlinkCreator] = None,
    root: Optional[str] = None,
) -> LinkOutcome:
    """Create the link, or materialize its target when the platform refuses links.

    Degraded mode: copy the target file, create a plain directory for a
    directory target, or leave an empty placeholder file when the target is
    missing. When ``root`` is given, a target resolving outside it is never
    copied; it gets the placeholder (or an empty directory) instead.
    Returns the outcome so callers can report the degradation.
    """
    creator = creator or default_symlink_creator()
    os.makedirs(os.path.dirname(link_path) or ".", exist_ok=True)

    outcome = creator.create(link_path, resolution.platform_target, resolution.is_directory)
    if outcome is LinkOutcome.CREATED:
        return outcome

    target = resolution.absolute_target
    if root is not None and not is_within(os.path.realpath(target), os.path.realpath(root)):
        if resolution.is_directory:
            os.makedirs(link_path, exist_ok=True)
        else:
            with open(link_path, "wb"):
                pass
    elif not resolution.is_directory and os.path.isfile(target):
        shutil.copyfile(target, link_path)
    elif os.path.isdir(target):
        os.makedirs(link_path, exist_ok=True)
    elif not resolution.is_directory:
        with open(link_path, "wb"):
            pass
    return outcome
