from __future__ import annotations

import os
import unittest

from pathhelpers.pathutil import is_rooted, normalize_entry_name, relative_name


class RelativeNameTests(unittest.TestCase):
    def test_nested_file_uses_forward_slashes(self):
        base = os.path.abspath(os.path.join(os.sep, "data", "src"))
        f = os.path.join(base, "docs", "notes", "a.txt")
        self.assertEqual(relative_name(f, base), "docs/notes/a.txt")

    def test_base_with_trailing_separator(self):
        base = os.path.abspath(os.path.join(os.sep, "data", "src"))
        f = os.path.join(base, "a.txt")
        self.assertEqual(relative_name(f, base + os.sep), "a.txt")

    def test_base_itself_is_empty(self):
        base = os.path.abspath(os.path.join(os.sep, "data", "src"))
        self.assertEqual(relative_name(base, base), "")

    def test_windows_style_strings(self):
        self.assertEqual(relative_name("C:\\data\\src\\a\\b.txt", "C:\\data\\src"), "a/b.txt")

    def test_prefix_match_ignores_case(self):
        self.assertEqual(relative_name("c:\\DATA\\Src\\x.txt", "C:\\data\\src"), "x.txt")

    def test_never_starts_with_separator(self):
        for name in (
            relative_name("C:\\data\\src\\x.txt", "C:\\data\\src\\"),
            relative_name("C:\\data\\src\\x.txt", "C:\\data\\src"),
        ):
            self.assertFalse(name.startswith(("/", "\\")), name)
            self.assertNotIn("\\", name)


class NormalizeEntryNameTests(unittest.TestCase):
    def test_cases(self):
        cases = {
            "./a/b.txt": "a/b.txt",
            "././a": "a",
            "/abs/x.txt": "abs/x.txt",
            "a\\b\\c.txt": "a/b/c.txt",
            ".": "",
            "": "",
            "dir/": "dir/",
        }
        for raw, expected in cases.items():
            with self.subTest(raw=raw):
                self.assertEqual(normalize_entry_name(raw), expected)

    def test_none_is_empty(self):
        self.assertEqual(normalize_entry_name(None), "")

    def test_parent_segments_are_kept_for_the_bounds_check(self):
        self.assertEqual(normalize_entry_name("../../evil.txt"), "../../evil.txt")


class IsRootedTests(unittest.TestCase):
    def test_rooted(self):
        self.assertTrue(is_rooted("/etc/passwd"))
        self.assertFalse(is_rooted("etc/passwd"))
        self.assertFalse(is_rooted(""))

    @unittest.skipUnless(os.name == "nt", "drive letters only on Windows")
    def test_drive_absolute(self):
        self.assertTrue(is_rooted("C:\\x"))
        self.assertTrue(is_rooted("\\x"))


if __name__ == "__main__":
    unittest.main()
