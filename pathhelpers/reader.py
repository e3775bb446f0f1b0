from __future__ import annotations

import contextlib
import os
import shutil
import sys
import tarfile
import zipfile
from dataclasses import dataclass
from typing import BinaryIO, Callable, Iterator, List, Optional, Tuple

import py7zr

from .abspath import PathInput
from .cancellation import CancelToken, raise_if_cancelled
from .constants import COPY_CHUNK_SIZE
from .errors import EntryConflictError, PathTraversalError
from .formats import ArchiveFormat
from .links import (
    LinkOutcome,
    SymlinkCreator,
    create_symlink_or_fallback,
    default_symlink_creator,
    resolve_link_targets,
)
from .pathutil import normalize_entry_name, to_platform


ProgressFn = Callable[[str, str], None]

KIND_FILE = "file"
KIND_DIR = "dir"
KIND_SYMLINK = "symlink"
KIND_HARDLINK = "hardlink"


@dataclass
class ArchiveEntry:
    name: str  # normalized, forward slashes
    kind: str  # file/dir/symlink/hardlink
    size: int = 0
    link_target: Optional[str] = None
    raw_name: str = ""


def _is_within(path: str, root: str) -> bool:
    p = os.path.normcase(path)
    r = os.path.normcase(root)
    if p == r:
        return True
    return p.startswith(r.rstrip(os.sep) + os.sep)


def canonical_root(destination: PathInput) -> str:
    """Create ``destination`` if needed and return its fully resolved form."""
    dest = os.fspath(destination)
    os.makedirs(dest, exist_ok=True)
    return os.path.realpath(dest)


def resolve_within_root(root: str, relative: str, raw_name: str, *, follow_leaf: bool = False) -> str:
    """Absolute destination for ``relative`` under ``root``, or PathTraversalError.

    Parent components are resolved through existing symlinks so an entry
    cannot escape via a link extracted earlier; the last component is only
    followed when ``follow_leaf`` is set.
    """
    candidate = os.path.abspath(os.path.join(root, to_platform(relative)))
    if follow_leaf:
        full = os.path.realpath(candidate)
    else:
        parent, leaf = os.path.split(candidate)
        full = os.path.join(os.path.realpath(parent), leaf) if leaf else os.path.realpath(candidate)
    if not _is_within(full, root):
        raise PathTraversalError(f"Entry '{raw_name}' is outside of the extraction directory.")
    return full


class _ArchiveReader:
    """Shared extraction state: counters, progress and the regular-file writer."""

    def __init__(
        self,
        archive_file: PathInput,
        *,
        progress: Optional[ProgressFn] = None,
        symlink_creator: Optional[SymlinkCreator] = None,
    ):
        self.archive_file = os.fspath(archive_file)
        self.progress = progress
        self.symlink_creator = symlink_creator or default_symlink_creator()
        self.files_extracted = 0
        self.dirs_created = 0
        self.links_created = 0
        self.links_materialized = 0
        self.bytes_extracted = 0
        self._symlink_warning_emitted = False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        raise NotImplementedError

    def close(self):
        raise NotImplementedError

    def list(self) -> List[ArchiveEntry]:
        raise NotImplementedError

    def extract_all(self, destination: PathInput, cancel: Optional[CancelToken] = None) -> None:
        raise NotImplementedError

    def _report(self, action: str, name: str) -> None:
        if self.progress is not None:
            self.progress(action, name)

    def _make_dir(self, dest: str, name: str) -> None:
        os.makedirs(dest, exist_ok=True)
        self.dirs_created += 1
        self._report("creating", name + "/" if name else "./")

    def _write_stream(self, dest: str, src: Optional[BinaryIO], name: str) -> None:
        os.makedirs(os.path.dirname(dest) or ".", exist_ok=True)
        if os.path.islink(dest):
            # never write through a link left by an earlier entry
            os.unlink(dest)
        with open(dest, "wb") as out:
            if src is not None:
                shutil.copyfileobj(src, out, COPY_CHUNK_SIZE)
            self.bytes_extracted += out.tell()
        self.files_extracted += 1
        self._report("extracting", name)


class ZipArchiveReader(_ArchiveReader):
    """ZIP reader. Entries are regular files or directory markers; there are no links."""

    def __init__(self, archive_file: PathInput, **kwargs):
        super().__init__(archive_file, **kwargs)
        self.zf: Optional[zipfile.ZipFile] = None

    def open(self):
        if self.zf is None:
            self.zf = zipfile.ZipFile(self.archive_file, "r")

    def close(self):
        if self.zf is not None:
            self.zf.close()
            self.zf = None

    @staticmethod
    def _is_dir_marker(filename: str) -> bool:
        return filename.endswith(("/", "\\"))

    def list(self) -> List[ArchiveEntry]:
        if self.zf is None:
            raise RuntimeError("Archive not open")
        out: List[ArchiveEntry] = []
        for info in self.zf.infolist():
            name = normalize_entry_name(info.filename)
            if self._is_dir_marker(info.filename):
                kind, name = KIND_DIR, name.rstrip("/")
            else:
                kind = KIND_FILE
            out.append(ArchiveEntry(name, kind, info.file_size, None, info.filename))
        return out

    def extract_all(self, destination: PathInput, cancel: Optional[CancelToken] = None) -> None:
        if self.zf is None:
            raise RuntimeError("Archive not open")
        root = canonical_root(destination)
        for info in self.zf.infolist():
            raise_if_cancelled(cancel)
            is_dir = self._is_dir_marker(info.filename)
            name = normalize_entry_name(info.filename)
            if not name and not is_dir:
                continue
            dest = resolve_within_root(root, name, info.filename)
            if is_dir:
                self._make_dir(dest, name.rstrip("/"))
                continue
            with self.zf.open(info) as src:
                self._write_stream(dest, src, name)


class TarArchiveReader(_ArchiveReader):
    """Sequential tar reader behind a gzip or bzip2 filter; recreates links."""

    def __init__(self, archive_file: PathInput, *, compression: str = "gz", **kwargs):
        super().__init__(archive_file, **kwargs)
        if compression not in ("gz", "bz2"):
            raise ValueError(f"Unsupported tar compression: {compression}")
        self.compression = compression
        self.f: Optional[BinaryIO] = None

    def open(self):
        if self.f is None:
            self.f = open(self.archive_file, "rb")

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None

    @contextlib.contextmanager
    def _stream(self) -> Iterator[tarfile.TarFile]:
        if self.f is None:
            raise RuntimeError("Archive not open")
        self.f.seek(0)
        tf = tarfile.open(fileobj=self.f, mode=f"r|{self.compression}")
        try:
            yield tf
        finally:
            tf.close()

    def list(self) -> List[ArchiveEntry]:
        out: List[ArchiveEntry] = []
        with self._stream() as tf:
            for member in tf:
                if member.isdir():
                    kind = KIND_DIR
                elif member.issym():
                    kind = KIND_SYMLINK
                elif member.islnk():
                    kind = KIND_HARDLINK
                else:
                    kind = KIND_FILE
                out.append(
                    ArchiveEntry(
                        normalize_entry_name(member.name),
                        kind,
                        member.size,
                        member.linkname or None,
                        member.name,
                    )
                )
        return out

    def extract_all(self, destination: PathInput, cancel: Optional[CancelToken] = None) -> None:
        root = canonical_root(destination)
        with self._stream() as tf:
            for member in tf:
                raise_if_cancelled(cancel)
                name = normalize_entry_name(member.name)
                if not name and not member.isdir():
                    continue
                dest = resolve_within_root(root, name, member.name)
                if member.isdir():
                    self._make_dir(dest, name)
                elif member.issym():
                    self._extract_symlink(dest, root, member.linkname or "", name)
                elif member.islnk():
                    self._extract_hardlink(dest, root, member.linkname or "", name)
                else:
                    self._write_stream(dest, tf.extractfile(member), name)

    def _extract_symlink(self, dest: str, root: str, link_name: str, name: str) -> None:
        if not link_name:
            self._report("skipping", name)
            return
        link_parent = os.path.dirname(dest) or root
        resolution = resolve_link_targets(link_name, link_parent, root)
        if os.path.isdir(dest) and not os.path.islink(dest):
            raise EntryConflictError(f"Cannot replace directory '{name}' with a symbolic link.")
        if os.path.islink(dest) or os.path.isfile(dest):
            os.unlink(dest)
        outcome = create_symlink_or_fallback(dest, resolution, self.symlink_creator, root)
        if outcome is LinkOutcome.CREATED:
            self.links_created += 1
            self._report("linking", f"{name} -> {link_name}")
            return
        self.links_materialized += 1
        if not self._symlink_warning_emitted:
            print(f"Warning: symbolic links not supported; materialized {name} as a copy", file=sys.stderr)
            self._symlink_warning_emitted = True
        self._report("copying", name)

    def _extract_hardlink(self, dest: str, root: str, link_name: str, name: str) -> None:
        normalized = normalize_entry_name(link_name)
        if not normalized:
            self._report("skipping", name)
            return
        target = resolve_within_root(root, normalized, link_name, follow_leaf=True)
        os.makedirs(os.path.dirname(dest) or ".", exist_ok=True)
        if os.path.isfile(target):
            if os.path.normcase(target) == os.path.normcase(dest):
                self._report("skipping", name)
                return
            if os.path.islink(dest):
                os.unlink(dest)
            shutil.copyfile(target, dest)
            self.files_extracted += 1
            self.bytes_extracted += os.path.getsize(dest)
            self._report("copying", name)
        elif os.path.isdir(target):
            self._make_dir(dest, name)
        else:
            self._report("skipping", name)


class SevenZipArchiveReader(_ArchiveReader):
    """Read-only 7z support through py7zr. Directories come back implicitly via file paths."""

    def __init__(self, archive_file: PathInput, *, password: Optional[str] = None, **kwargs):
        super().__init__(archive_file, **kwargs)
        self.password = password
        self.archive: Optional[py7zr.SevenZipFile] = None

    def open(self):
        if self.archive is None:
            self.archive = py7zr.SevenZipFile(self.archive_file, mode="r", password=self.password)

    def close(self):
        if self.archive is not None:
            self.archive.close()
            self.archive = None

    def list(self) -> List[ArchiveEntry]:
        if self.archive is None:
            raise RuntimeError("Archive not open")
        out: List[ArchiveEntry] = []
        for info in self.archive.list():
            if info.is_directory:
                kind = KIND_DIR
            elif info.is_symlink:
                kind = KIND_SYMLINK
            else:
                kind = KIND_FILE
            out.append(ArchiveEntry(normalize_entry_name(info.filename), kind, info.uncompressed or 0, None, info.filename))
        return out

    def extract_all(self, destination: PathInput, cancel: Optional[CancelToken] = None) -> None:
        """Check every entry, then decode all targets in a single extract() pass.

        ``cancel`` is polled per entry while targets are checked; decoding
        itself is not interrupted.
        """
        if self.archive is None:
            raise RuntimeError("Archive not open")
        root = canonical_root(destination)
        targets: List[str] = []
        planned: List[Tuple[str, int]] = []
        for info in self.archive.list():
            raise_if_cancelled(cancel)
            if info.is_directory:
                continue
            name = normalize_entry_name(info.filename)
            if not name:
                continue
            dest = resolve_within_root(root, name, info.filename)
            os.makedirs(os.path.dirname(dest) or root, exist_ok=True)
            if os.path.islink(dest):
                os.unlink(dest)
            targets.append(info.filename)
            planned.append((name, info.uncompressed or 0))
        if not targets:
            return
        raise_if_cancelled(cancel)
        self.archive.reset()
        self.archive.extract(path=root, targets=targets)
        for name, size in planned:
            self.files_extracted += 1
            self.bytes_extracted += size
            self._report("extracting", name)


def open_reader(
    fmt: ArchiveFormat,
    archive_file: PathInput,
    *,
    password: Optional[str] = None,
    progress: Optional[ProgressFn] = None,
    symlink_creator: Optional[SymlinkCreator] = None,
) -> _ArchiveReader:
    if fmt is ArchiveFormat.ZIP:
        return ZipArchiveReader(archive_file, progress=progress, symlink_creator=symlink_creator)
    if fmt is ArchiveFormat.SEVEN_ZIP:
        return SevenZipArchiveReader(
            archive_file, password=password, progress=progress, symlink_creator=symlink_creator
        )
    return TarArchiveReader(
        archive_file,
        compression=fmt.tar_compression,
        progress=progress,
        symlink_creator=symlink_creator,
    )
