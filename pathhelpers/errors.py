from __future__ import annotations

import concurrent.futures as _fut


class PathHelpersError(Exception):
    """Base class for pathhelpers-specific errors."""


# Format selection
class UnsupportedArchiveFormat(PathHelpersError, ValueError):
    pass


class SevenZipWriteNotSupported(UnsupportedArchiveFormat, NotImplementedError):
    pass


# Extraction safety
class PathTraversalError(PathHelpersError, ValueError):
    """Raised when an archive entry would land outside the extraction root."""


class EntryConflictError(PathHelpersError, FileExistsError):
    """Raised when an entry cannot replace what an earlier entry left at its destination."""


# Archive creation
class DestinationExistsError(PathHelpersError, FileExistsError):
    pass


class OperationCancelled(_fut.CancelledError):
    """Raised at an entry boundary once the caller's cancel token is set.

    Not a PathHelpersError: callers tell cancellation apart from failures.
    """
