from __future__ import annotations

import errno
import os
import tempfile
import unittest
from pathlib import Path

from pathhelpers.links import (
    LinkOutcome,
    LinkResolution,
    PosixSymlinkCreator,
    SymlinkCreator,
    WindowsSymlinkCreator,
    create_symlink_or_fallback,
    normalize_link_target_for_archive,
    resolve_link_targets,
)


class _RefusingCreator(SymlinkCreator):
    def __init__(self):
        self.calls = []

    def create(self, link_path, target, is_directory):
        self.calls.append((link_path, target, is_directory))
        return LinkOutcome.UNSUPPORTED


def _symlinks_supported(tmp: Path) -> bool:
    if not hasattr(os, "symlink"):
        return False
    check_link = tmp / ".symlink_check"
    try:
        os.symlink("missing", check_link)
    except (OSError, NotImplementedError):
        return False
    os.unlink(check_link)
    return True


class NormalizeLinkTargetTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.tmp = os.path.realpath(tmp.name)
        self.base = os.path.join(self.tmp, "base")
        self.link = os.path.join(self.base, "sub", "link")

    def test_absolute_target_below_link_parent(self):
        raw = os.path.join(self.base, "sub", "t.txt")
        self.assertEqual(normalize_link_target_for_archive(self.link, self.base, raw), "t.txt")

    def test_absolute_target_below_base_only(self):
        raw = os.path.join(self.base, "other", "t.txt")
        self.assertEqual(normalize_link_target_for_archive(self.link, self.base, raw), "other/t.txt")

    def test_absolute_target_outside_base_stays_absolute(self):
        raw = os.path.join(self.tmp, "outside", "t.txt")
        got = normalize_link_target_for_archive(self.link, self.base, raw)
        self.assertEqual(got, os.path.abspath(raw).replace("\\", "/"))

    def test_relative_target_is_kept(self):
        self.assertEqual(normalize_link_target_for_archive(self.link, self.base, "../t.txt"), "../t.txt")

    def test_empty_target_falls_back_to_link_name(self):
        self.assertEqual(normalize_link_target_for_archive(self.link, self.base, ""), "link")

    def test_nt_device_prefix_is_stripped(self):
        raw = "\\??\\" + os.path.join(self.base, "sub", "t.txt")
        self.assertEqual(normalize_link_target_for_archive(self.link, self.base, raw), "t.txt")

    def test_reads_the_link_when_no_target_given(self):
        os.makedirs(os.path.dirname(self.link))
        if not _symlinks_supported(Path(self.tmp)):
            self.skipTest("symlinks not supported")
        os.symlink("t.txt", self.link)
        self.assertEqual(normalize_link_target_for_archive(self.link, self.base), "t.txt")


class ResolveLinkTargetsTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = os.path.realpath(tmp.name)
        self.parent = os.path.join(self.root, "sub")
        os.makedirs(self.parent)

    def test_empty_points_at_parent(self):
        r = resolve_link_targets("", self.parent, self.root)
        self.assertEqual(r.platform_target, os.curdir)
        self.assertEqual(r.absolute_target, self.parent)
        self.assertTrue(r.is_directory)

    def test_leading_slash_is_rerooted_under_extraction_root(self):
        r = resolve_link_targets("/etc/passwd", self.parent, self.root)
        self.assertEqual(r.absolute_target, os.path.join(self.root, "etc", "passwd"))
        self.assertEqual(r.platform_target, os.path.join(os.pardir, "etc", "passwd"))
        self.assertFalse(r.is_directory)

    def test_relative_to_link_parent(self):
        r = resolve_link_targets("t.txt", self.parent, self.root)
        self.assertEqual(r.platform_target, "t.txt")
        self.assertEqual(r.absolute_target, os.path.join(self.parent, "t.txt"))

    def test_parent_segments(self):
        r = resolve_link_targets("../x", self.parent, self.root)
        self.assertEqual(r.absolute_target, os.path.join(self.root, "x"))

    def test_trailing_slash_means_directory(self):
        r = resolve_link_targets("later/", self.parent, self.root)
        self.assertTrue(r.is_directory)
        self.assertEqual(r.platform_target, "later")

    def test_existing_directory_detected(self):
        os.makedirs(os.path.join(self.parent, "d"))
        self.assertTrue(resolve_link_targets("d", self.parent, self.root).is_directory)

    def test_backslashes_accepted(self):
        r = resolve_link_targets("a\\b.txt", self.parent, self.root)
        self.assertEqual(r.absolute_target, os.path.join(self.parent, "a", "b.txt"))


class FallbackTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(os.path.realpath(tmp.name))

    def test_file_target_is_copied(self):
        target = self.root / "t.txt"
        target.write_bytes(b"payload")
        creator = _RefusingCreator()
        link = self.root / "nested" / "link.txt"
        res = LinkResolution("../t.txt", str(target), False)
        outcome = create_symlink_or_fallback(str(link), res, creator)
        self.assertIs(outcome, LinkOutcome.UNSUPPORTED)
        self.assertFalse(link.is_symlink())
        self.assertEqual(link.read_bytes(), b"payload")
        self.assertEqual(creator.calls, [(str(link), "../t.txt", False)])

    def test_directory_target_becomes_directory(self):
        (self.root / "d").mkdir()
        link = self.root / "dl"
        res = LinkResolution("d", str(self.root / "d"), True)
        create_symlink_or_fallback(str(link), res, _RefusingCreator())
        self.assertTrue(link.is_dir())
        self.assertFalse(link.is_symlink())

    def test_missing_target_leaves_empty_placeholder(self):
        link = self.root / "dangling"
        res = LinkResolution("nope", str(self.root / "nope"), False)
        create_symlink_or_fallback(str(link), res, _RefusingCreator())
        self.assertTrue(link.is_file())
        self.assertEqual(link.stat().st_size, 0)

    def test_target_outside_root_is_not_copied(self):
        (self.root / "secret.txt").write_bytes(b"private")
        (self.root / "shared").mkdir()
        inner = self.root / "inner"
        inner.mkdir()
        link = inner / "leak"
        res = LinkResolution("../secret.txt", str(self.root / "secret.txt"), False)
        create_symlink_or_fallback(str(link), res, _RefusingCreator(), str(inner))
        self.assertTrue(link.is_file())
        self.assertEqual(link.read_bytes(), b"")

        dir_link = inner / "dir_leak"
        res = LinkResolution("../shared", str(self.root / "shared"), True)
        create_symlink_or_fallback(str(dir_link), res, _RefusingCreator(), str(inner))
        self.assertTrue(dir_link.is_dir())
        self.assertEqual(list(dir_link.iterdir()), [])

    def test_real_link_when_supported(self):
        if not _symlinks_supported(self.root):
            self.skipTest("symlinks not supported")
        (self.root / "t.txt").write_text("x")
        link = self.root / "link"
        res = LinkResolution("t.txt", str(self.root / "t.txt"), False)
        self.assertIs(create_symlink_or_fallback(str(link), res), LinkOutcome.CREATED)
        self.assertEqual(os.readlink(link), "t.txt")


class SymlinkCreatorTests(unittest.TestCase):
    def test_posix_unsupported_errnos(self):
        c = PosixSymlinkCreator()
        self.assertTrue(c.is_unsupported(OSError(errno.EPERM, "denied")))
        self.assertTrue(c.is_unsupported(OSError(errno.EOPNOTSUPP, "nope")))
        self.assertFalse(c.is_unsupported(OSError(errno.ENOENT, "missing")))

    def test_windows_treats_permission_error_as_unsupported(self):
        c = WindowsSymlinkCreator()
        self.assertTrue(c.is_unsupported(PermissionError(errno.EACCES, "denied")))
        self.assertFalse(c.is_unsupported(FileNotFoundError(errno.ENOENT, "missing")))

    @unittest.skipIf(os.name == "nt", "POSIX error semantics")
    def test_other_errors_propagate(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            if not _symlinks_supported(root):
                self.skipTest("symlinks not supported")
            (root / "existing").write_text("x")
            with self.assertRaises(FileExistsError):
                PosixSymlinkCreator().create(str(root / "existing"), "t", False)


if __name__ == "__main__":
    unittest.main()
