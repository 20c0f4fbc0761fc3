#!/usr/bin/env python3
"""
Month Archive

Zips dated <group>-<unit> directories (e.g. 2019-09) into one archive each
and uploads them to S3 under <base_path>/<group>/<unit>.zip.
"""

__version__ = "1.0.0"
__author__ = "Month Archive Team"

from .archiver import pack
from .config import ArchiveConfig, Config, S3Config, load_config
from .coordinator import ArchiveCoordinator, discover_month_groups
from .errors import (
    ArchiveError,
    ConfigError,
    DiscoveryError,
    MalformedNameError,
    MonthArchiveError,
    TransportError,
)
from .models import ArchiveResult, ArchiveTask, MonthGroup, RunReport, TaskOutcome
from .naming import local_archive_path, remote_key, resolve_name
from .uploader import S3Uploader, sniff_content_type

__all__ = [
    "ArchiveConfig",
    "ArchiveCoordinator",
    "ArchiveError",
    "ArchiveResult",
    "ArchiveTask",
    "Config",
    "ConfigError",
    "DiscoveryError",
    "MalformedNameError",
    "MonthArchiveError",
    "MonthGroup",
    "RunReport",
    "S3Config",
    "S3Uploader",
    "TaskOutcome",
    "TransportError",
    "discover_month_groups",
    "load_config",
    "local_archive_path",
    "pack",
    "remote_key",
    "resolve_name",
    "sniff_content_type",
]
