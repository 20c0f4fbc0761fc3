#!/usr/bin/env python3
"""
Tests for the month-archive command line entry point.
"""
import json
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import yaml

from month_archive.cli.main import main, setup_argument_parser
from month_archive.models import RunReport, Stage, TaskOutcome


class TestArgumentParser(unittest.TestCase):

    def test_positional_arguments_are_optional(self):
        args = setup_argument_parser().parse_args([])
        self.assertIsNone(args.source_dir)
        self.assertIsNone(args.output_dir)

    def test_positional_arguments(self):
        args = setup_argument_parser().parse_args(["src", "out"])
        self.assertEqual(args.source_dir, "src")
        self.assertEqual(args.output_dir, "out")


class TestMain(unittest.TestCase):
    """Test exit codes and wiring; the coordinator runs against real files"""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.source = self.temp_dir / "source"
        self.output = self.temp_dir / "output"
        (self.source / "2020-05").mkdir(parents=True)
        (self.source / "2020-05" / "a.csv").write_text("id\n1\n")
        self.base_args = [str(self.source), str(self.output),
                          "--log-dir", str(self.temp_dir / "logs")]

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_skip_upload_success(self):
        report_path = self.temp_dir / "report.json"
        exit_code = main(self.base_args + ["--skip-upload", "--output", str(report_path)])

        self.assertEqual(exit_code, 0)
        self.assertTrue((self.output / "2020" / "05.zip").is_file())
        data = json.loads(report_path.read_text())
        self.assertEqual(data["succeeded"], 1)
        self.assertEqual(data["outcomes"][0]["stage"], "archive")

    def test_dry_run_writes_nothing(self):
        exit_code = main(self.base_args + ["--dry-run"])

        self.assertEqual(exit_code, 0)
        self.assertFalse(self.output.exists())

    def test_dry_run_reports_malformed_directory(self):
        (self.source / "misc").mkdir()
        self.assertEqual(main(self.base_args + ["--dry-run"]), 1)

    def test_any_failure_exits_non_zero(self):
        report = RunReport(source_dir=self.source, output_dir=self.output)
        report.record(TaskOutcome("2020-05", Stage.UPLOAD, success=False, error="denied"))

        with patch("month_archive.cli.main.ArchiveCoordinator") as mock_coordinator:
            mock_coordinator.return_value.run.return_value = report
            self.assertEqual(main(self.base_args), 1)

    def test_overrides_reach_coordinator(self):
        report = RunReport(source_dir=self.source, output_dir=self.output)

        with patch("month_archive.cli.main.ArchiveCoordinator") as mock_coordinator:
            mock_coordinator.return_value.run.return_value = report
            exit_code = main(self.base_args + ["--bucket", "cli-bucket", "--max-workers", "2"])

        self.assertEqual(exit_code, 0)
        archive_config = mock_coordinator.call_args[0][0]
        self.assertEqual(archive_config.s3.bucket, "cli-bucket")
        self.assertEqual(archive_config.max_workers, 2)
        self.assertEqual(archive_config.source_dir, self.source)
        self.assertTrue(archive_config.upload_enabled)

    def test_missing_source_exits_non_zero(self):
        args = [str(self.temp_dir / "missing"), str(self.output),
                "--log-dir", str(self.temp_dir / "logs"), "--skip-upload"]
        self.assertEqual(main(args), 1)

    def test_invalid_max_workers(self):
        self.assertEqual(main(self.base_args + ["--max-workers", "0"]), 1)

    def test_missing_config_file(self):
        self.assertEqual(main(self.base_args + ["--config", str(self.temp_dir / "nope.yaml")]), 1)


    def write_config(self, data):
        path = self.temp_dir / "config.yaml"
        with open(path, "w") as f:
            yaml.safe_dump(data, f)
        return str(path)

    def test_invalid_log_level_in_config_exits_non_zero(self):
        config_path = self.write_config({"logging": {"level": "verbose"}})
        exit_code = main(self.base_args + ["--skip-upload", "--config", config_path])

        self.assertEqual(exit_code, 1)
        self.assertFalse(self.output.exists())

    def test_null_config_section_exits_non_zero(self):
        config_path = self.write_config({"s3": None})
        self.assertEqual(main(self.base_args + ["--config", config_path]), 1)

    def test_non_numeric_memory_fraction_exits_non_zero(self):
        config_path = self.write_config({"s3": {"memory_warning_fraction": "half"}})
        self.assertEqual(main(self.base_args + ["--config", config_path]), 1)

if __name__ == '__main__':
    unittest.main()
