from __future__ import annotations

import enum
import os
import tarfile
import zipfile
from typing import BinaryIO, Callable, Iterable, Optional

from .abspath import AbsolutePath, PathInput
from .cancellation import CancelToken, raise_if_cancelled
from .constants import (
    SEVEN_ZIP_WRITE_MESSAGE,
    ZIP_LEVEL_FASTEST,
    ZIP_LEVEL_OPTIMAL,
    ZIP_LEVEL_SMALLEST,
)
from .errors import DestinationExistsError, SevenZipWriteNotSupported
from .formats import ArchiveFormat
from .links import normalize_link_target_for_archive
from .pathutil import relative_name


ProgressFn = Callable[[str, str], None]


class CompressionLevel(enum.Enum):
    OPTIMAL = "optimal"
    FASTEST = "fastest"
    NO_COMPRESSION = "none"
    SMALLEST_SIZE = "smallest"


def _zip_settings(level: CompressionLevel) -> tuple[int, Optional[int]]:
    if level is CompressionLevel.NO_COMPRESSION:
        return zipfile.ZIP_STORED, None
    if level is CompressionLevel.FASTEST:
        return zipfile.ZIP_DEFLATED, ZIP_LEVEL_FASTEST
    if level is CompressionLevel.SMALLEST_SIZE:
        return zipfile.ZIP_DEFLATED, ZIP_LEVEL_SMALLEST
    return zipfile.ZIP_DEFLATED, ZIP_LEVEL_OPTIMAL


def _open_destination(archive_file: str, overwrite: bool) -> BinaryIO:
    os.makedirs(os.path.dirname(archive_file) or ".", exist_ok=True)
    try:
        return open(archive_file, "wb" if overwrite else "xb")
    except FileExistsError as exc:
        raise DestinationExistsError(f"Archive already exists: {archive_file}") from exc


class _ArchiveWriter:
    """Shared open/close and per-file loop; subclasses write the entries."""

    def __init__(
        self,
        archive_file: PathInput,
        base_directory: PathInput,
        *,
        overwrite: bool = False,
        progress: Optional[ProgressFn] = None,
    ):
        self.archive_file = os.fspath(archive_file)
        # Entry names are computed against absolute paths on both sides
        self.base_directory = AbsolutePath.create(base_directory).path
        self.overwrite = overwrite
        self.progress = progress
        self.f: Optional[BinaryIO] = None
        self.files_written = 0
        self.links_written = 0
        self.bytes_written = 0

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        self.f = _open_destination(self.archive_file, self.overwrite)
        try:
            self._open_container()
        except BaseException:
            self.f.close()
            self.f = None
            raise

    def close(self):
        if self.f is None:
            return
        try:
            self._close_container()
        finally:
            self.f.close()
            self.f = None

    def write_all(self, files: Iterable[PathInput], cancel: Optional[CancelToken] = None) -> None:
        """Write ``files`` in the given order, polling ``cancel`` before each one."""
        for file in files:
            raise_if_cancelled(cancel)
            self.add(file)

    def add(self, file: PathInput) -> bool:
        """Add one file; returns False when it maps to an empty entry name."""
        if self.f is None:
            raise RuntimeError("Archive not open")
        fs_path = AbsolutePath.create(file).path
        name = relative_name(fs_path, self.base_directory)
        if not name:
            return False
        self._add(fs_path, name)
        return True

    def _report(self, action: str, name: str) -> None:
        if self.progress is not None:
            self.progress(action, name)

    def _open_container(self):
        raise NotImplementedError

    def _close_container(self):
        raise NotImplementedError

    def _add(self, fs_path: str, name: str):
        raise NotImplementedError


class ZipArchiveWriter(_ArchiveWriter):
    """ZIP writer. Symlinks are stored as the content they resolve to."""

    def __init__(
        self,
        archive_file: PathInput,
        base_directory: PathInput,
        *,
        compression_level: CompressionLevel = CompressionLevel.OPTIMAL,
        overwrite: bool = False,
        progress: Optional[ProgressFn] = None,
    ):
        super().__init__(archive_file, base_directory, overwrite=overwrite, progress=progress)
        self.compression_level = compression_level
        self.zf: Optional[zipfile.ZipFile] = None

    def _open_container(self):
        compression, level = _zip_settings(self.compression_level)
        self.zf = zipfile.ZipFile(
            self.f, mode="w", compression=compression, compresslevel=level, allowZip64=True
        )

    def _close_container(self):
        if self.zf is not None:
            self.zf.close()
            self.zf = None

    def _add(self, fs_path: str, name: str):
        if not os.path.exists(fs_path):
            # dangling link: there is no content to store
            self._report("skipping", name)
            return
        # zipfile stats through links, so a link to a directory becomes "name/"
        self.zf.write(fs_path, arcname=name)
        if os.path.isfile(fs_path):
            self.bytes_written += os.path.getsize(fs_path)
            self.files_written += 1
        self._report("adding", name)


class TarArchiveWriter(_ArchiveWriter):
    """Streamed tar writer wrapped in a gzip or bzip2 filter."""

    def __init__(
        self,
        archive_file: PathInput,
        base_directory: PathInput,
        *,
        compression: str = "gz",
        overwrite: bool = False,
        progress: Optional[ProgressFn] = None,
    ):
        super().__init__(archive_file, base_directory, overwrite=overwrite, progress=progress)
        if compression not in ("gz", "bz2"):
            raise ValueError(f"Unsupported tar compression: {compression}")
        self.compression = compression
        self.tf: Optional[tarfile.TarFile] = None

    def _open_container(self):
        self.tf = tarfile.open(fileobj=self.f, mode=f"w:{self.compression}")

    def _close_container(self):
        if self.tf is not None:
            self.tf.close()
            self.tf = None

    def _add(self, fs_path: str, name: str):
        if os.path.islink(fs_path):
            self.add_symlink(fs_path, name)
            return
        info = self.tf.gettarinfo(fs_path, arcname=name)
        if info is None:
            # sockets and other unarchivable types
            self._report("skipping", name)
            return
        if info.isreg():
            with open(fs_path, "rb") as fh:
                self.tf.addfile(info, fh)
            self.bytes_written += info.size
            self.files_written += 1
        else:
            self.tf.addfile(info)
        self._report("adding", name)

    def add_symlink(self, fs_path: str, name: str):
        """Record the link at ``fs_path`` as a zero-length SYMTYPE entry."""
        st = os.lstat(fs_path)
        info = tarfile.TarInfo(name)
        info.type = tarfile.SYMTYPE
        info.linkname = normalize_link_target_for_archive(fs_path, self.base_directory)
        info.size = 0
        info.mtime = int(st.st_mtime)
        info.mode = st.st_mode & 0o7777
        self.tf.addfile(info)
        self.links_written += 1
        self._report("linking", f"{name} -> {info.linkname}")


def open_writer(
    fmt: ArchiveFormat,
    archive_file: PathInput,
    base_directory: PathInput,
    *,
    compression_level: CompressionLevel = CompressionLevel.OPTIMAL,
    overwrite: bool = False,
    progress: Optional[ProgressFn] = None,
) -> _ArchiveWriter:
    """Build the writer for ``fmt``; 7z has no writer."""
    if fmt is ArchiveFormat.ZIP:
        return ZipArchiveWriter(
            archive_file,
            base_directory,
            compression_level=compression_level,
            overwrite=overwrite,
            progress=progress,
        )
    if fmt in (ArchiveFormat.TAR_GZIP, ArchiveFormat.TAR_BZIP2):
        return TarArchiveWriter(
            archive_file,
            base_directory,
            compression=fmt.tar_compression,
            overwrite=overwrite,
            progress=progress,
        )
    raise SevenZipWriteNotSupported(SEVEN_ZIP_WRITE_MESSAGE)
