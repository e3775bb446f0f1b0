"""
pathhelpers: absolute paths and link-aware archive packing/unpacking.

Features:

- ``AbsolutePath`` value object and deterministic, breadth-first file enumeration.
- ZIP, TAR+GZip and TAR+BZip2 creation and extraction; 7z extraction through py7zr.
- Portable forward-slash entry names computed the same way on every platform.
- TAR symbolic links stored relative to the archived tree where possible and
  recreated on extraction, with a copy fallback where the OS refuses links.
- Every extracted entry (and hard-link target) is checked against the
  destination root; escaping entries abort with PathTraversalError.
"""

__version__ = "0.1"

from pathhelpers.abspath import AbsolutePath
from pathhelpers.compression import (
    compress,
    decompress,
    list_entries,
    seven_zip_to,
    tar_bzip2_to,
    tar_gzip_to,
    unseven_zip_to,
    untar_bzip2_to,
    untar_gzip_to,
    unzip_to,
    zip_to,
)
from pathhelpers.errors import (
    DestinationExistsError,
    EntryConflictError,
    OperationCancelled,
    PathHelpersError,
    PathTraversalError,
    SevenZipWriteNotSupported,
    UnsupportedArchiveFormat,
)
from pathhelpers.filewalk import get_directories, get_files
from pathhelpers.formats import ArchiveFormat, detect_format
from pathhelpers.writer import CompressionLevel

__all__ = [
    "AbsolutePath",
    "ArchiveFormat",
    "CompressionLevel",
    "DestinationExistsError",
    "EntryConflictError",
    "OperationCancelled",
    "PathHelpersError",
    "PathTraversalError",
    "SevenZipWriteNotSupported",
    "UnsupportedArchiveFormat",
    "compress",
    "decompress",
    "detect_format",
    "get_directories",
    "get_files",
    "list_entries",
    "seven_zip_to",
    "tar_bzip2_to",
    "tar_gzip_to",
    "unseven_zip_to",
    "untar_bzip2_to",
    "untar_gzip_to",
    "unzip_to",
    "zip_to",
]
