import errno


# Archive suffixes, matched case-insensitively against the file name
SUFFIX_ZIP = (".zip",)
SUFFIX_TAR_GZIP = (".tar.gz", ".tgz")
SUFFIX_TAR_BZIP2 = (".tar.bz2", ".tbz2", ".tbz")
SUFFIX_SEVEN_ZIP = (".7z",)

# Streaming copy buffer
COPY_CHUNK_SIZE = 1_048_576  # 1 MiB

# NT object-manager prefix some Windows link targets carry
NT_DEVICE_PREFIX = "\\??\\"

# os.symlink failures that mean "not allowed here" rather than a real error
UNSUPPORTED_SYMLINK_ERRNOS = {errno.EPERM, errno.EOPNOTSUPP}
if hasattr(errno, "ENOTSUP"):
    UNSUPPORTED_SYMLINK_ERRNOS.add(errno.ENOTSUP)

# ERROR_ACCESS_DENIED, ERROR_INVALID_PARAMETER, ERROR_PRIVILEGE_NOT_HELD
UNSUPPORTED_SYMLINK_WINERRORS = {5, 87, 1314}

# zip deflate levels per CompressionLevel name
ZIP_LEVEL_OPTIMAL = 6
ZIP_LEVEL_FASTEST = 1
ZIP_LEVEL_SMALLEST = 9

SEVEN_ZIP_WRITE_MESSAGE = (
    "Creating standard 7z archives is not currently supported. "
    "The 7z library used here is only relied upon for reading 7z archives. "
    "Consider using ZIP (.zip) or TAR.GZ (.tar.gz) formats instead, "
    "which provide good compression and are widely supported."
)
