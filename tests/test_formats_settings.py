import json
import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from samplepack.cli_args import require_log_level, require_non_negative_int, require_quality, require_size_limit
from samplepack.formats import DEFAULT_FORMAT, ImportFormat, format_help, parse_format
from samplepack.settings import ImportSettings, load_config, merge_options, normalize_options


class TestFormats(unittest.TestCase):
    def test_names_and_legacy_codes(self):
        self.assertEqual(parse_format("subdirs"), ImportFormat.SUBDIRS)
        self.assertEqual(parse_format("2"), ImportFormat.SUBDIRS)
        self.assertEqual(parse_format(6), ImportFormat.TARS)
        self.assertEqual(parse_format("ANNO_JSON"), ImportFormat.ANNO_JSON)
        self.assertEqual([f.code for f in ImportFormat], list(range(7)))
        self.assertEqual(DEFAULT_FORMAT, ImportFormat.LIST)

    def test_unknown_formats_are_rejected(self):
        for value in ("7", "-1", "zip", ""):
            with self.assertRaises(ValueError):
                parse_format(value)

    def test_help_lists_every_format(self):
        text = format_help()
        self.assertTrue(text.startswith("Formats:"))
        for fmt in ImportFormat:
            self.assertIn(fmt.value, text)


class TestCliArgs(unittest.TestCase):
    def test_validators(self):
        self.assertIsNone(require_non_negative_int(None, flag_name="--limit"))
        self.assertEqual(require_non_negative_int(3, flag_name="--limit"), 3)
        with self.assertRaises(ValueError):
            require_non_negative_int(-1, flag_name="--limit")

        self.assertEqual(require_size_limit(0, flag_name="--max"), -1)
        self.assertEqual(require_size_limit(-1, flag_name="--max"), -1)
        self.assertEqual(require_size_limit(256, flag_name="--max"), 256)
        with self.assertRaises(ValueError):
            require_size_limit(-2, flag_name="--max")

        self.assertEqual(require_quality(90), 90)
        with self.assertRaises(ValueError):
            require_quality(0)

        self.assertEqual(require_log_level("debug"), "DEBUG")
        with self.assertRaises(ValueError):
            require_log_level("loud")


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        settings = ImportSettings.from_options("in", "out.spk", {})
        self.assertEqual(settings.format, ImportFormat.LIST)
        self.assertEqual(settings.cache, Path(".samplepack_cache"))
        self.assertFalse(settings.compact)
        self.assertEqual(settings.limit, 0)
        self.assertEqual(settings.transcode.max_size, -1)
        self.assertEqual(settings.transcode.resize, -1)
        self.assertEqual(settings.transcode.mode, "unchanged")
        self.assertIsNone(settings.transcode.encode)
        self.assertEqual(settings.log_level, "INFO")

    def test_options(self):
        settings = ImportSettings.from_options(
            "in",
            "out.spk",
            {"max": 512, "format": "5", "limit": 10, "encode": "png", "jpeg-quality": 80, "mode": "gray"},
        )
        self.assertEqual(settings.format, ImportFormat.STORE)
        self.assertEqual(settings.transcode.max_size, 512)
        self.assertEqual(settings.transcode.encode, ".png")
        self.assertEqual(settings.transcode.quality, 80)
        self.assertEqual(settings.transcode.mode, "gray")
        self.assertEqual(settings.limit, 10)

    def test_invalid_options(self):
        with self.assertRaises(ValueError):
            ImportSettings.from_options("in", "out", {"format": "9"})
        with self.assertRaises(ValueError):
            ImportSettings.from_options("in", "out", {"limit": -3})
        with self.assertRaises(ValueError):
            ImportSettings.from_options("in", "out", {"mode": "sepia"})
        with self.assertRaises(ValueError):
            normalize_options({"colour": True})

    def test_load_config_yaml_and_json(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            yml = root / "import.yaml"
            yml.write_text("format: subdirs\nmax: 256\ncache_dir: /tmp/c\ncompact: true\n", encoding="utf-8")
            js = root / "import.json"
            js.write_text(json.dumps({"resize": 64, "log_level": "debug"}), encoding="utf-8")
            empty = root / "empty.yaml"
            empty.write_text("", encoding="utf-8")

            self.assertEqual(
                load_config(yml),
                {"format": "subdirs", "max_size": 256, "cache": "/tmp/c", "compact": True},
            )
            self.assertEqual(load_config(js), {"resize": 64, "log_level": "debug"})
            self.assertEqual(load_config(empty), {})

    def test_load_config_rejects_bad_files(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            listy = root / "list.yaml"
            listy.write_text("- 1\n- 2\n", encoding="utf-8")
            unknown = root / "unknown.yaml"
            unknown.write_text("threads: 4\n", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_config(listy)
            with self.assertRaises(ValueError):
                load_config(unknown)

    def test_command_line_wins_over_config(self):
        merged = merge_options(
            {"format": "subdirs", "max_size": 256, "compact": True},
            {"format": None, "max_size": 128, "compact": None},
        )
        self.assertEqual(merged, {"format": "subdirs", "max_size": 128, "compact": True})


if __name__ == "__main__":
    unittest.main()
