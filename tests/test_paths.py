import os
import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from loguru import logger

from samplepack.errors import CategoryLayoutError
from samplepack.paths import CategorySet, PathSet, parse_category_name


def _touch_files(root: Path, n: int) -> None:
    root.mkdir(parents=True, exist_ok=True)
    for i in range(n):
        (root / f"{i:03d}.png").write_bytes(b"x")


class _CaptureLogs:
    def __init__(self, level: str = "DEBUG"):
        self.level = level
        self.messages: list[str] = []

    def __enter__(self):
        self._id = logger.add(lambda m: self.messages.append(m.record["level"].name + " " + m.record["message"]), level=self.level)
        return self

    def __exit__(self, *exc):
        logger.remove(self._id)

    def at(self, level: str) -> list[str]:
        return [m for m in self.messages if m.startswith(level + " ")]


class TestPathSet(unittest.TestCase):
    def test_recursive_scan(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            _touch_files(root / "a", 6)
            _touch_files(root / "b" / "c", 6)
            with _CaptureLogs() as logs:
                paths = PathSet.scan(root)
            self.assertEqual(len(paths), 12)
            self.assertTrue(all(p.is_file() for p in paths))
            self.assertEqual(logs.at("WARNING"), [])

    def test_warns_on_small_sets(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            _touch_files(root, 3)
            with _CaptureLogs() as logs:
                paths = PathSet.scan(root)
            self.assertEqual(len(paths), 3)
            self.assertEqual(len(logs.at("WARNING")), 1)
            self.assertIn("at least 10", logs.at("WARNING")[0])

    @unittest.skipIf(not hasattr(os, "symlink"), "symlinks unavailable")
    def test_follows_symlinks_without_looping(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td) / "root"
            other = Path(td) / "other"
            _touch_files(root, 10)
            _touch_files(other, 2)
            os.symlink(other, root / "linked")
            os.symlink(root, root / "loop")
            paths = PathSet.scan(root)
            self.assertEqual(len(paths), 12)


class TestCategorySet(unittest.TestCase):
    def test_parse_category_name(self):
        self.assertEqual(parse_category_name("0"), 0)
        self.assertEqual(parse_category_name("12"), 12)
        self.assertIsNone(parse_category_name("-1"))
        self.assertIsNone(parse_category_name("cat"))
        self.assertIsNone(parse_category_name("1.5"))

    def test_dense_layout(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            _touch_files(root / "0", 12)
            _touch_files(root / "1", 8)
            with _CaptureLogs() as logs:
                cats = CategorySet.scan(root)
            self.assertEqual(len(cats), 2)
            self.assertEqual(len(cats[0]), 12)
            self.assertEqual(len(cats[1]), 8)
            self.assertEqual(cats.total(), 20)
            self.assertIn("INFO Loaded 12 paths for category 0.", logs.messages)
            self.assertEqual(len(logs.at("WARNING")), 1)

    def test_ids_must_start_at_zero(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            _touch_files(root / "1", 10)
            _touch_files(root / "2", 10)
            with self.assertRaises(CategoryLayoutError):
                CategorySet.scan(root)

    def test_ids_must_be_contiguous(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            for name in ("0", "1", "3"):
                _touch_files(root / name, 10)
            with self.assertRaises(CategoryLayoutError):
                CategorySet.scan(root)

    def test_needs_two_categories(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            _touch_files(root / "0", 10)
            with self.assertRaises(CategoryLayoutError):
                CategorySet.scan(root)

    def test_bad_entries_are_logged_and_skipped(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            _touch_files(root / "0", 10)
            _touch_files(root / "1", 10)
            _touch_files(root / "cats", 10)
            (root / "README.txt").write_text("hi")
            with _CaptureLogs() as logs:
                cats = CategorySet.scan(root)
            self.assertEqual(len(cats), 2)
            errors = logs.at("ERROR")
            self.assertEqual(len(errors), 2)
            self.assertTrue(any("not properly named" in m for m in errors))
            self.assertTrue(any("Not a directory" in m for m in errors))

    def test_duplicate_ids_collapse(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            _touch_files(root / "0", 10)
            _touch_files(root / "1", 10)
            _touch_files(root / "01", 3)
            cats = CategorySet.scan(root)
            self.assertEqual(len(cats), 2)
            self.assertEqual(cats[1].root.name, "1")

    def test_zero_padded_names_are_used_when_alone(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            _touch_files(root / "00", 10)
            _touch_files(root / "01", 11)
            cats = CategorySet.scan(root)
            self.assertEqual([c.root.name for c in cats.categories], ["00", "01"])
            self.assertEqual([len(c) for c in cats.categories], [10, 11])

    def test_single(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            _touch_files(root / "x", 4)
            _touch_files(root / "y", 7)
            cats = CategorySet.single(root)
            self.assertEqual(len(cats), 1)
            self.assertEqual(len(cats[0]), 11)
            with self.assertRaises(FileNotFoundError):
                CategorySet.single(root / "missing")


if __name__ == "__main__":
    unittest.main()
