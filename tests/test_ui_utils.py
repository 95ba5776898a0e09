import os
import tempfile
import unittest
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

from aws_browser.ui_utils import (
    PALETTE,
    collapse_home,
    default_download_path,
    expand_home,
    format_amount,
    format_percent,
    format_size,
    format_status_checks,
    format_timestamp,
    instance_state_style,
    relative_name,
    status_check_style,
    suggest_paths,
)


class FormattingTests(unittest.TestCase):
    def test_format_size_prefers_largest_unit(self):
        self.assertEqual("512 B", format_size(512))
        self.assertEqual("2.0 KB", format_size(2 * 1024))
        self.assertEqual("1.5 MB", format_size(int(1.5 * 1024 * 1024)))
        self.assertEqual("n/a", format_size(None))

    def test_format_amount_and_percent(self):
        self.assertEqual("1.75 USD", format_amount(Decimal("1.746"), "USD"))
        self.assertEqual("71.4%", format_percent(71.428))
        self.assertEqual("", format_percent(None))

    def test_format_timestamp(self):
        value = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)

        self.assertEqual("2024-05-01 12:30:00 UTC", format_timestamp(value))
        self.assertEqual("n/a", format_timestamp(None))

    def test_status_checks(self):
        self.assertEqual("ok/unknown", format_status_checks("ok", None))
        self.assertEqual(PALETTE["success"], status_check_style("ok/ok"))
        self.assertEqual(PALETTE["danger"], status_check_style("failed/ok"))
        self.assertIsNone(status_check_style(None))

    def test_instance_state_style(self):
        self.assertEqual(PALETTE["success"], instance_state_style("Running"))
        self.assertEqual(PALETTE["warning"], instance_state_style("pending"))
        self.assertIsNone(instance_state_style("unknown"))

    def test_relative_name(self):
        self.assertEqual("a.txt", relative_name("docs/a.txt", "docs/"))
        self.assertEqual("sub/", relative_name("docs/sub/", "docs/"))
        self.assertEqual("top.txt", relative_name("top.txt", ""))


class PathHelperTests(unittest.TestCase):
    def test_home_round_trip(self):
        home = str(Path.home())

        self.assertEqual(home + "/x", expand_home("~/x"))
        self.assertEqual("~/x", collapse_home(home + "/x"))
        self.assertEqual("/tmp/x", collapse_home("/tmp/x"))

    def test_default_download_path(self):
        path = default_download_path("bucket", "docs/a.txt")

        self.assertEqual(os.path.join("~", "Downloads", "bucket", "docs", "a.txt"), path)

    def test_suggest_paths(self):
        with tempfile.TemporaryDirectory() as tmp:
            os.mkdir(os.path.join(tmp, "reports"))
            Path(tmp, "readme.txt").write_text("x", encoding="utf-8")
            Path(tmp, "other.txt").write_text("x", encoding="utf-8")

            suggestions = suggest_paths(os.path.join(tmp, "re"))
            everything = suggest_paths(tmp + os.sep)

            self.assertEqual(
                [os.path.join(tmp, "readme.txt"), os.path.join(tmp, "reports") + os.sep],
                suggestions,
            )
            self.assertEqual(3, len(everything))
            self.assertEqual([], suggest_paths(os.path.join(tmp, "missing", "x")))
            self.assertEqual([], suggest_paths(""))
            self.assertEqual(1, len(suggest_paths(tmp + os.sep, limit=1)))


if __name__ == "__main__":
    unittest.main()
