from __future__ import annotations

import os
import sys
from typing import Callable, Iterable, List, Optional

from .abspath import AbsolutePath, PathInput
from .cancellation import CancelToken
from .constants import SEVEN_ZIP_WRITE_MESSAGE
from .errors import SevenZipWriteNotSupported
from .filewalk import get_files
from .formats import ArchiveFormat, detect_format
from .links import SymlinkCreator
from .reader import ArchiveEntry, ProgressFn, _ArchiveReader, open_reader
from .writer import CompressionLevel, _ArchiveWriter, open_writer


Predicate = Callable[[AbsolutePath], bool]


def _collect(directory: PathInput, predicate: Optional[Predicate], files: Optional[Iterable[PathInput]]) -> List[PathInput]:
    if files is not None:
        return list(files)
    return list(get_files(directory, depth=sys.maxsize, predicate=predicate))


def _write(
    fmt: ArchiveFormat,
    directory: PathInput,
    archive_file: PathInput,
    predicate: Optional[Predicate],
    cancel: Optional[CancelToken],
    *,
    files: Optional[Iterable[PathInput]],
    compression_level: CompressionLevel,
    overwrite: bool,
    progress: Optional[ProgressFn],
) -> _ArchiveWriter:
    # Enumerate before the archive exists so it can never list itself
    entries = _collect(directory, predicate, files)
    writer = open_writer(
        fmt,
        archive_file,
        directory,
        compression_level=compression_level,
        overwrite=overwrite,
        progress=progress,
    )
    with writer:
        writer.write_all(entries, cancel)
    return writer


def _read(
    fmt: ArchiveFormat,
    archive_file: PathInput,
    directory: PathInput,
    cancel: Optional[CancelToken],
    *,
    password: Optional[str],
    progress: Optional[ProgressFn],
    symlink_creator: Optional[SymlinkCreator],
) -> _ArchiveReader:
    reader = open_reader(
        fmt, archive_file, password=password, progress=progress, symlink_creator=symlink_creator
    )
    with reader:
        reader.extract_all(directory, cancel)
    return reader


def compress(
    directory: PathInput,
    archive_file: PathInput,
    predicate: Optional[Predicate] = None,
    cancel: Optional[CancelToken] = None,
    *,
    files: Optional[Iterable[PathInput]] = None,
    compression_level: CompressionLevel = CompressionLevel.OPTIMAL,
    overwrite: bool = False,
    progress: Optional[ProgressFn] = None,
) -> _ArchiveWriter:
    """Archive ``directory`` into ``archive_file``, choosing the format by suffix.

    Entry names are relative to ``directory``. The whole tree is walked unless
    ``files`` is given, in which case exactly those paths are written in the
    given order and ``predicate`` is ignored.

    Returns:
        The closed writer; its counters describe what was written.

    Raises:
        UnsupportedArchiveFormat: unknown suffix (nothing is touched).
        SevenZipWriteNotSupported: ``.7z`` destination (nothing is touched).
        DestinationExistsError: archive exists and ``overwrite`` is False.
        OperationCancelled: ``cancel`` was set between entries.
    """
    fmt = detect_format(archive_file)
    if not fmt.writable:
        raise SevenZipWriteNotSupported(SEVEN_ZIP_WRITE_MESSAGE)
    return _write(
        fmt,
        directory,
        archive_file,
        predicate,
        cancel,
        files=files,
        compression_level=compression_level,
        overwrite=overwrite,
        progress=progress,
    )


def decompress(
    archive_file: PathInput,
    directory: PathInput,
    cancel: Optional[CancelToken] = None,
    *,
    password: Optional[str] = None,
    progress: Optional[ProgressFn] = None,
    symlink_creator: Optional[SymlinkCreator] = None,
) -> _ArchiveReader:
    """Extract ``archive_file`` under ``directory``, choosing the format by suffix.

    Every entry is checked against the destination root before it is written;
    an escaping entry raises PathTraversalError and leaves earlier entries on
    disk. Returns the closed reader with its counters.
    """
    fmt = detect_format(archive_file)
    return _read(
        fmt,
        archive_file,
        directory,
        cancel,
        password=password,
        progress=progress,
        symlink_creator=symlink_creator,
    )


def zip_to(
    directory: PathInput,
    archive_file: PathInput,
    predicate: Optional[Predicate] = None,
    cancel: Optional[CancelToken] = None,
    *,
    files: Optional[Iterable[PathInput]] = None,
    compression_level: CompressionLevel = CompressionLevel.OPTIMAL,
    overwrite: bool = False,
    progress: Optional[ProgressFn] = None,
) -> _ArchiveWriter:
    return _write(
        ArchiveFormat.ZIP,
        directory,
        archive_file,
        predicate,
        cancel,
        files=files,
        compression_level=compression_level,
        overwrite=overwrite,
        progress=progress,
    )


def tar_gzip_to(
    directory: PathInput,
    archive_file: PathInput,
    predicate: Optional[Predicate] = None,
    cancel: Optional[CancelToken] = None,
    *,
    files: Optional[Iterable[PathInput]] = None,
    overwrite: bool = False,
    progress: Optional[ProgressFn] = None,
) -> _ArchiveWriter:
    return _write(
        ArchiveFormat.TAR_GZIP,
        directory,
        archive_file,
        predicate,
        cancel,
        files=files,
        compression_level=CompressionLevel.OPTIMAL,
        overwrite=overwrite,
        progress=progress,
    )


def tar_bzip2_to(
    directory: PathInput,
    archive_file: PathInput,
    predicate: Optional[Predicate] = None,
    cancel: Optional[CancelToken] = None,
    *,
    files: Optional[Iterable[PathInput]] = None,
    overwrite: bool = False,
    progress: Optional[ProgressFn] = None,
) -> _ArchiveWriter:
    return _write(
        ArchiveFormat.TAR_BZIP2,
        directory,
        archive_file,
        predicate,
        cancel,
        files=files,
        compression_level=CompressionLevel.OPTIMAL,
        overwrite=overwrite,
        progress=progress,
    )


def seven_zip_to(
    directory: PathInput,
    archive_file: PathInput,
    predicate: Optional[Predicate] = None,
    cancel: Optional[CancelToken] = None,
    *,
    files: Optional[Iterable[PathInput]] = None,
    compression_level: CompressionLevel = CompressionLevel.OPTIMAL,
    overwrite: bool = False,
    progress: Optional[ProgressFn] = None,
) -> _ArchiveWriter:
    """Always raises SevenZipWriteNotSupported; 7z is read-only here."""
    raise SevenZipWriteNotSupported(SEVEN_ZIP_WRITE_MESSAGE)


def unzip_to(
    archive_file: PathInput,
    directory: PathInput,
    cancel: Optional[CancelToken] = None,
    *,
    progress: Optional[ProgressFn] = None,
) -> _ArchiveReader:
    return _read(
        ArchiveFormat.ZIP,
        archive_file,
        directory,
        cancel,
        password=None,
        progress=progress,
        symlink_creator=None,
    )


def untar_gzip_to(
    archive_file: PathInput,
    directory: PathInput,
    cancel: Optional[CancelToken] = None,
    *,
    progress: Optional[ProgressFn] = None,
    symlink_creator: Optional[SymlinkCreator] = None,
) -> _ArchiveReader:
    return _read(
        ArchiveFormat.TAR_GZIP,
        archive_file,
        directory,
        cancel,
        password=None,
        progress=progress,
        symlink_creator=symlink_creator,
    )


def untar_bzip2_to(
    archive_file: PathInput,
    directory: PathInput,
    cancel: Optional[CancelToken] = None,
    *,
    progress: Optional[ProgressFn] = None,
    symlink_creator: Optional[SymlinkCreator] = None,
) -> _ArchiveReader:
    return _read(
        ArchiveFormat.TAR_BZIP2,
        archive_file,
        directory,
        cancel,
        password=None,
        progress=progress,
        symlink_creator=symlink_creator,
    )


def unseven_zip_to(
    archive_file: PathInput,
    directory: PathInput,
    cancel: Optional[CancelToken] = None,
    *,
    password: Optional[str] = None,
    progress: Optional[ProgressFn] = None,
) -> _ArchiveReader:
    return _read(
        ArchiveFormat.SEVEN_ZIP,
        archive_file,
        directory,
        cancel,
        password=password,
        progress=progress,
        symlink_creator=None,
    )


def list_entries(archive_file: PathInput, password: Optional[str] = None) -> List[ArchiveEntry]:
    """Return the archive's entries in stored order without writing anything."""
    fmt = detect_format(archive_file)
    if not os.path.isfile(os.fspath(archive_file)):
        raise FileNotFoundError(f"Archive not found: {os.fspath(archive_file)}")
    with open_reader(fmt, archive_file, password=password) as reader:
        return reader.list()
