#!/usr/bin/env python3
"""
Month Archive Command Line Interface

Zips every <group>-<unit> directory (e.g. 2019-09) found directly under a
source directory into <output_dir>/<group>/<unit>.zip and uploads each
archive to S3 under <base_path>/<group>/<unit>.zip.

Usage:
    month-archive [options] [source_dir] [output_dir]

Examples:
    month-archive ./crime-data
    month-archive ./crime-data /tmp/archives --max-workers 4
    month-archive --dry-run ./crime-data
    month-archive --skip-upload --output report.json ./crime-data

Exits non-zero if any directory failed to archive or upload.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from month_archive import __version__
from month_archive.config import ArchiveConfig, Config, load_config
from month_archive.coordinator import ArchiveCoordinator
from month_archive.errors import MonthArchiveError
from month_archive.logging_setup import setup_archive_logging


def setup_argument_parser() -> argparse.ArgumentParser:
    """Set up command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="month-archive",
        description="Zip dated month directories and upload them to S3",
        epilog="""
Examples:
  %(prog)s ./crime-data                       # Archive and upload every month directory
  %(prog)s ./crime-data /tmp/archives         # Write archives under /tmp/archives
  %(prog)s --dry-run ./crime-data             # Show what would be archived
  %(prog)s --skip-upload ./crime-data         # Archive only
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    # Positional arguments
    parser.add_argument(
        'source_dir',
        nargs='?',
        help='Directory holding <group>-<unit> subdirectories (default: paths.source_dir, ".")'
    )
    parser.add_argument(
        'output_dir',
        nargs='?',
        help='Local archive root (default: paths.output_dir, '
             '~/Projects/go-scripts-output/send-files-to-s3)'
    )

    # Optional arguments
    parser.add_argument('--config', type=str,
                        help='Path to a YAML configuration file')
    parser.add_argument('--bucket', type=str,
                        help='Destination S3 bucket (overrides config)')
    parser.add_argument('--region', type=str,
                        help='AWS region of the bucket (overrides config)')
    parser.add_argument('--base-path', type=str,
                        help='Key prefix inside the bucket (overrides config)')
    parser.add_argument('--max-workers', type=int,
                        help='Cap on concurrent archive threads (default: one per directory)')
    parser.add_argument('--skip-upload', action='store_true',
                        help='Write archives locally without uploading them')
    parser.add_argument('--dry-run', action='store_true',
                        help='Discover directories and print the plan without archiving')
    parser.add_argument('--output', type=str,
                        help='Write the run report to this file (JSON format)')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default=None, help='Set logging level (default: logging.level, INFO)')
    parser.add_argument('--log-dir', type=str,
                        help='Directory for log files (default: logging.log_dir)')
    parser.add_argument('--version', action='version',
                        version=f'%(prog)s {__version__}')

    return parser


def validate_arguments(args: argparse.Namespace) -> None:
    """Validate command line arguments."""
    if args.max_workers is not None and args.max_workers < 1:
        raise ValueError("--max-workers must be a positive integer")
    if args.config and not Path(args.config).exists():
        raise FileNotFoundError(f"Configuration file not found: {args.config}")


def apply_overrides(config: Config, args: argparse.Namespace) -> None:
    """Apply command line values on top of the loaded configuration."""
    overrides = {
        'paths.source_dir': args.source_dir,
        'paths.output_dir': args.output_dir,
        's3.bucket': args.bucket,
        's3.region': args.region,
        's3.base_path': args.base_path,
        'archive.max_workers': args.max_workers,
        'logging.level': args.log_level,
        'logging.log_dir': args.log_dir,
    }
    for key_path, value in overrides.items():
        if value is not None:
            config.set(key_path, value)


def build_archive_config(args: argparse.Namespace) -> Tuple[Config, ArchiveConfig]:
    config = load_config(args.config)
    apply_overrides(config, args)

    archive_config = ArchiveConfig.from_config(
        config, upload_enabled=not (args.skip_upload or args.dry_run))
    return config, archive_config


def print_plan(coordinator: ArchiveCoordinator) -> int:
    tasks, report = coordinator.plan()
    s3 = coordinator.config.s3
    print(f"Planned {len(tasks)} archive(s):")
    for task in tasks:
        print(f"  {task.directory_name}: {len(task.input_files)} file(s) -> "
              f"{task.output_path} -> s3://{s3.bucket}/{s3.object_key(task.remote_key)}")
    for outcome in report.failures:
        print(f"  {outcome.directory_name}: cannot be archived ({outcome.error})")
    return 1 if report.failed else 0


def write_report(path: str, report_data: dict) -> None:
    with open(path, 'w') as f:
        json.dump(report_data, f, indent=2)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    logger = logging.getLogger("month_archive.cli")
    try:
        parser = setup_argument_parser()
        args = parser.parse_args(argv)
        validate_arguments(args)

        config, archive_config = build_archive_config(args)
        log_dir = config.get('logging.log_dir')
        setup_archive_logging(
            log_dir=Path(log_dir).expanduser() if log_dir else None,
            log_level=archive_config.log_level,
            console_level=archive_config.log_level,
        )
        logger.info(f"Starting month archive - version {__version__}")

        coordinator = ArchiveCoordinator(archive_config)

        if args.dry_run:
            logger.info("DRY RUN MODE - nothing will be archived or uploaded")
            return print_plan(coordinator)

        report = coordinator.run()

        if args.output:
            write_report(args.output, report.to_dict())
            logger.info(f"Run report saved to: {args.output}")

        return 1 if report.failed else 0

    except KeyboardInterrupt:
        print("\nOperation interrupted by user")
        return 1
    except (MonthArchiveError, OSError, ValueError) as e:
        logger.error(f"Month archive failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
