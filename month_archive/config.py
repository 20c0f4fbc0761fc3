#!/usr/bin/env python3
"""Configuration management: YAML file layered over built-in defaults."""
import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .errors import ConfigError, ErrorMessages

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_CONFIG: Dict[str, Any] = {
    "s3": {
        "bucket": "dfp-datalake-london",
        "region": "eu-west-2",
        "base_path": "dfp/raw/crime/data.police.uk",
        "profile": None,
        "acl": "private",
        "content_disposition": "attachment",
        "server_side_encryption": "AES256",
        "memory_warning_fraction": 0.5,
    },
    "archive": {
        "extension": "zip",
        "separator": "-",
        "max_workers": None,
    },
    "paths": {
        "source_dir": ".",
        "output_dir": "~/Projects/go-scripts-output/send-files-to-s3",
    },
    "logging": {
        "level": "INFO",
        "log_dir": "logs/month_archive",
    },
}


class Config:
    """Configuration manager that loads settings from a YAML file."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to a YAML file. None uses the built-in defaults only.
        """
        self.config_path = Path(config_path) if config_path else None
        self._data: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self):
        self._data = copy.deepcopy(DEFAULT_CONFIG)
        if self.config_path is None:
            return

        if not self.config_path.exists():
            raise ConfigError(ErrorMessages.format_error(
                'config', 'FILE_NOT_FOUND', path=self.config_path))

        with open(self.config_path, 'r') as f:
            loaded = yaml.safe_load(f) or {}

        if not isinstance(loaded, dict):
            raise ConfigError(ErrorMessages.format_error(
                'config', 'INVALID_VALUE', key=str(self.config_path), value=loaded))

        _merge(self._data, loaded)

        for section in DEFAULT_CONFIG:
            if not isinstance(self._data.get(section), dict):
                raise ConfigError(ErrorMessages.format_error(
                    'config', 'INVALID_VALUE', key=section, value=self._data.get(section)))

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., "s3.bucket")
            default: Default value if key not found
        """
        value = self._data
        for key in key_path.split('.'):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        return self._data.get(section, {})

    def set(self, key_path: str, value: Any) -> None:
        """Override a value, e.g. from a command line flag."""
        keys = key_path.split('.')
        target = self._data
        for key in keys[:-1]:
            target = target.setdefault(key, {})
        target[keys[-1]] = value


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value


@dataclass
class S3Config:
    """Destination bucket and object settings for uploads"""
    bucket: str = DEFAULT_CONFIG["s3"]["bucket"]
    region: str = DEFAULT_CONFIG["s3"]["region"]
    base_path: str = DEFAULT_CONFIG["s3"]["base_path"]
    profile: Optional[str] = None
    acl: str = "private"
    content_disposition: str = "attachment"
    server_side_encryption: Optional[str] = "AES256"
    memory_warning_fraction: float = 0.5

    def object_key(self, remote_key: str) -> str:
        """Full object key: base path joined with the resolver's key."""
        base = self.base_path.strip("/")
        return f"{base}/{remote_key}" if base else remote_key


@dataclass
class ArchiveConfig:
    """Everything a run needs, resolved from Config plus CLI overrides."""
    source_dir: Path = Path(".")
    output_dir: Path = field(
        default_factory=lambda: Path(DEFAULT_CONFIG["paths"]["output_dir"]).expanduser())
    extension: str = "zip"
    separator: str = "-"
    max_workers: Optional[int] = None
    upload_enabled: bool = True
    log_level: str = "INFO"
    s3: S3Config = field(default_factory=S3Config)

    @classmethod
    def from_config(cls, config: Config, upload_enabled: bool = True) -> "ArchiveConfig":
        s3_section = config.get_section("s3")
        archive_config = cls(
            source_dir=Path(config.get("paths.source_dir", ".")).expanduser(),
            output_dir=Path(config.get("paths.output_dir")).expanduser(),
            extension=config.get("archive.extension", "zip"),
            separator=config.get("archive.separator", "-"),
            max_workers=config.get("archive.max_workers"),
            upload_enabled=upload_enabled,
            log_level=config.get("logging.level", "INFO"),
            s3=S3Config(
                bucket=s3_section.get("bucket"),
                region=s3_section.get("region"),
                base_path=s3_section.get("base_path") or "",
                profile=s3_section.get("profile"),
                acl=s3_section.get("acl", "private"),
                content_disposition=s3_section.get("content_disposition", "attachment"),
                server_side_encryption=s3_section.get("server_side_encryption"),
                memory_warning_fraction=s3_section.get("memory_warning_fraction", 0.5),
            ),
        )
        archive_config.validate()
        return archive_config

    def validate(self) -> None:
        """
        Raises:
            ConfigError: on the first invalid value found
        """
        if self.max_workers is not None and (
                not isinstance(self.max_workers, int) or self.max_workers < 1):
            raise ConfigError(ErrorMessages.format_error(
                'config', 'INVALID_VALUE', key="archive.max_workers", value=self.max_workers))
        if not self.extension:
            raise ConfigError(ErrorMessages.format_error(
                'config', 'INVALID_VALUE', key="archive.extension", value=self.extension))
        if not self.separator:
            raise ConfigError(ErrorMessages.format_error(
                'config', 'INVALID_VALUE', key="archive.separator", value=self.separator))
        if self.upload_enabled and not self.s3.bucket:
            raise ConfigError(ErrorMessages.format_error(
                'config', 'INVALID_VALUE', key="s3.bucket", value=self.s3.bucket))
        if not self.s3.region:
            raise ConfigError(ErrorMessages.format_error(
                'config', 'INVALID_VALUE', key="s3.region", value=self.s3.region))
        fraction = self.s3.memory_warning_fraction
        if isinstance(fraction, bool) or not isinstance(fraction, (int, float)) or fraction <= 0:
            raise ConfigError(ErrorMessages.format_error(
                'config', 'INVALID_VALUE', key="s3.memory_warning_fraction", value=fraction))
        if not isinstance(self.log_level, str) or self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(ErrorMessages.format_error(
                'config', 'INVALID_VALUE', key="logging.level", value=self.log_level))


def load_config(config_path: Optional[Union[str, Path]] = None) -> Config:
    """
    Load configuration, layering config_path (if given) over the defaults.

    Raises:
        ConfigError: config_path given but missing, or not a mapping
    """
    return Config(config_path)
