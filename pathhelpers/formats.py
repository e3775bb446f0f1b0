from __future__ import annotations

import enum
import os

from .abspath import PathInput
from .constants import SUFFIX_SEVEN_ZIP, SUFFIX_TAR_BZIP2, SUFFIX_TAR_GZIP, SUFFIX_ZIP
from .errors import UnsupportedArchiveFormat


class ArchiveFormat(enum.Enum):
    ZIP = "zip"
    TAR_GZIP = "tar.gz"
    TAR_BZIP2 = "tar.bz2"
    SEVEN_ZIP = "7z"

    @property
    def tar_compression(self) -> str:
        """tarfile mode suffix for the compression filter ("gz"/"bz2")."""
        if self is ArchiveFormat.TAR_GZIP:
            return "gz"
        if self is ArchiveFormat.TAR_BZIP2:
            return "bz2"
        raise ValueError(f"{self.value} is not a tar format")

    @property
    def writable(self) -> bool:
        return self is not ArchiveFormat.SEVEN_ZIP


_SUFFIX_TABLE = (
    (SUFFIX_ZIP, ArchiveFormat.ZIP),
    (SUFFIX_TAR_GZIP, ArchiveFormat.TAR_GZIP),
    (SUFFIX_TAR_BZIP2, ArchiveFormat.TAR_BZIP2),
    (SUFFIX_SEVEN_ZIP, ArchiveFormat.SEVEN_ZIP),
)


def detect_format(archive_file: PathInput) -> ArchiveFormat:
    """Pick the archive format from the file name suffix (case-insensitive)."""
    name = os.path.basename(os.fspath(archive_file))
    lowered = name.lower()
    for suffixes, fmt in _SUFFIX_TABLE:
        if lowered.endswith(suffixes):
            return fmt
    raise UnsupportedArchiveFormat(f"Unknown archive extension for archive '{name}'")
