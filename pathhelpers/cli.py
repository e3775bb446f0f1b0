from __future__ import annotations

import argparse
import fnmatch
import signal
import sys
import tarfile
import threading
import time
import zipfile
from typing import List, Optional

from py7zr.exceptions import (
    AbsolutePathError,
    Bad7zFile,
    CrcError,
    DecompressionError,
    UnsupportedCompressionMethodError,
)

from pathhelpers.abspath import AbsolutePath
from pathhelpers.compression import compress, decompress, list_entries
from pathhelpers.errors import OperationCancelled, PathHelpersError
from pathhelpers.filewalk import get_files
from pathhelpers.writer import CompressionLevel


_LEVELS = {
    "optimal": CompressionLevel.OPTIMAL,
    "fastest": CompressionLevel.FASTEST,
    "none": CompressionLevel.NO_COMPRESSION,
    "smallest": CompressionLevel.SMALLEST_SIZE,
}

# Failures reported as "Error: ..." with exit status 2
_FAILURES = (
    PathHelpersError,
    OSError,
    ValueError,
    RuntimeError,
    EOFError,
    zipfile.BadZipFile,
    tarfile.TarError,
    Bad7zFile,
    CrcError,
    DecompressionError,
    UnsupportedCompressionMethodError,
    AbsolutePathError,
)


def _progress_printer(quiet: bool):
    if quiet:
        return None

    def _print(action: str, name: str) -> None:
        print(f"{action:>11}: {name}")

    return _print


def _install_cancel_handler() -> threading.Event:
    """Turn the first Ctrl-C into a cooperative cancel; a second one interrupts."""
    cancel = threading.Event()

    def _handler(signum, frame):
        if cancel.is_set():
            raise KeyboardInterrupt
        cancel.set()
        print("Cancelling after the current entry...", file=sys.stderr)

    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGINT, _handler)
    return cancel


def _include_predicate(patterns: Optional[List[str]]):
    if not patterns:
        return None

    def _accept(p: AbsolutePath) -> bool:
        return any(fnmatch.fnmatch(p.name, pat) for pat in patterns)

    return _accept


def cmd_compress(
    directory: str,
    archive: str,
    *,
    include: Optional[List[str]] = None,
    depth: Optional[int] = None,
    overwrite: bool = False,
    level: str = "optimal",
    quiet: bool = False,
    cancel: Optional[threading.Event] = None,
) -> bool:
    """Create an archive from a directory tree.

    Args:
        directory: Source directory; entry names are relative to it.
        archive: Output path; the suffix picks the format.
        include: Optional globs; only files whose name matches one are stored.
        depth: Directory levels to walk (1 = top level only). Default: unlimited.
        overwrite: Replace an existing archive instead of failing.
        level: ZIP compression level name (optimal, fastest, none, smallest).
    """
    t0 = time.time()
    predicate = _include_predicate(include)
    files = None
    if depth is not None:
        files = get_files(directory, depth=depth, predicate=predicate)
    w = compress(
        directory,
        archive,
        predicate,
        cancel,
        files=files,
        compression_level=_LEVELS[level],
        overwrite=overwrite,
        progress=_progress_printer(quiet),
    )
    dt = max(0.000001, time.time() - t0)
    mib = w.bytes_written / (1024.0 * 1024.0)
    print(
        f"Done: {w.files_written} files, {w.links_written} links; "
        f"{mib:.2f} MiB in {dt:.1f}s; {mib / dt:.2f} MiB/s"
    )
    return True


def cmd_decompress(
    archive: str,
    *,
    outdir: str = ".",
    password: Optional[str] = None,
    quiet: bool = False,
    cancel: Optional[threading.Event] = None,
) -> bool:
    """Extract an archive into ``outdir``."""
    t0 = time.time()
    r = decompress(archive, outdir, cancel, password=password, progress=_progress_printer(quiet))
    dt = max(0.000001, time.time() - t0)
    mib = r.bytes_extracted / (1024.0 * 1024.0)
    print(
        f"Done: extracted {r.files_extracted} files ({mib:.2f} MiB) in {dt:.1f}s; "
        f"{mib / dt:.2f} MiB/s; dirs={r.dirs_created} symlinks={r.links_created} "
        f"materialized={r.links_materialized}"
    )
    return True


def cmd_list(archive: str, *, password: Optional[str] = None) -> bool:
    """List archive entries, one per line, tab separated."""
    for e in list_entries(archive, password=password):
        if e.kind == "dir":
            print(f"dir\t{e.name}")
        elif e.kind in ("symlink", "hardlink"):
            print(f"{e.kind}\t-> {e.link_target or ''}\t{e.name}")
        else:
            print(f"file\t{e.size}\t{e.name}")
    return True


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="pathhelpers",
        description="Create and extract ZIP, TAR.GZ and TAR.BZ2 archives (7z: extract only)",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_compress = sub.add_parser("compress", help="Archive a directory")
    ap_compress.add_argument("directory", help="Source directory")
    ap_compress.add_argument("archive", help="Output archive (.zip, .tar.gz/.tgz, .tar.bz2/.tbz2)")
    ap_compress.add_argument(
        "--include", action="append", metavar="GLOB", help="Only store files whose name matches (repeatable)"
    )
    ap_compress.add_argument("--depth", type=int, help="Directory levels to include (default: all)")
    ap_compress.add_argument("--overwrite", action="store_true", help="Replace an existing archive")
    ap_compress.add_argument(
        "--level", choices=sorted(_LEVELS), default="optimal", help="ZIP compression level (default: optimal)"
    )
    ap_compress.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_decompress = sub.add_parser("decompress", help="Extract an archive")
    ap_decompress.add_argument("archive", help="Archive path")
    ap_decompress.add_argument("--outdir", default=".", help="Output directory")
    ap_decompress.add_argument("--password", help="Password for encrypted 7z archives")
    ap_decompress.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_list = sub.add_parser("list", help="List archive contents")
    ap_list.add_argument("archive", help="Archive path")
    ap_list.add_argument("--password", help="Password for encrypted 7z archives")

    args = ap.parse_args(argv)
    previous_sigint = signal.getsignal(signal.SIGINT)
    try:
        if args.cmd == "compress":
            cmd_compress(
                args.directory,
                args.archive,
                include=args.include,
                depth=args.depth,
                overwrite=args.overwrite,
                level=args.level,
                quiet=args.quiet,
                cancel=_install_cancel_handler(),
            )
        elif args.cmd == "decompress":
            cmd_decompress(
                args.archive,
                outdir=args.outdir,
                password=args.password,
                quiet=args.quiet,
                cancel=_install_cancel_handler(),
            )
        elif args.cmd == "list":
            cmd_list(args.archive, password=args.password)
        else:
            raise RuntimeError("Unknown command")
    except (OperationCancelled, KeyboardInterrupt):
        print("Cancelled.", file=sys.stderr)
        sys.exit(130)
    except _FAILURES as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    finally:
        if previous_sigint is not None and threading.current_thread() is threading.main_thread():
            signal.signal(signal.SIGINT, previous_sigint)


if __name__ == "__main__":
    main()
