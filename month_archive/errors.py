#!/usr/bin/env python3
"""
Error taxonomy for the month archive pipeline.

Three kinds of failure matter to a run:
- naming: a directory does not follow the <group>-<unit> convention
- file_io: local read/write/create failures (plain OSError or ArchiveError)
- network: the object store rejected the request or could not be reached

Only a failure to list the source directory is fatal. Everything else is
recorded against the directory it happened in and the run continues.
"""

from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    """Error categories used to tag task outcomes"""
    NAMING = "naming"
    FILE_IO = "file_io"
    NETWORK = "network"
    UNKNOWN = "unknown"


class ErrorMessages:
    """Message templates shared by the pipeline modules"""

    NAMING = {
        'NO_SEPARATOR': "Directory name '{name}' has no '{separator}' separator",
        'EMPTY_SEGMENT': "Directory name '{name}' has an empty group or unit",
    }

    FILE_OPERATIONS = {
        'DUPLICATE_ENTRY': "Duplicate entry name '{entry}' in archive {path}",
        'SOURCE_UNREADABLE': "Cannot list source directory {path}: {details}",
        'NOT_A_DIRECTORY': "Source path is not a directory: {path}",
    }

    NETWORK = {
        'UPLOAD_FAILED': "Upload of {path} to s3://{bucket}/{key} failed: {details}",
    }

    CONFIG = {
        'FILE_NOT_FOUND': "Configuration file not found: {path}",
        'INVALID_VALUE': "Invalid configuration value for {key}: {value!r}",
    }

    @staticmethod
    def format_error(category: str, error_type: str, **kwargs) -> str:
        templates = getattr(ErrorMessages, category.upper(), {})
        template = templates.get(error_type)
        if template is None:
            return f"{category}.{error_type}: {kwargs}"
        return template.format(**kwargs)


class MonthArchiveError(Exception):
    """Base class for all pipeline errors"""


class MalformedNameError(MonthArchiveError, ValueError):
    """Directory name does not follow the <group><separator><unit> convention."""

    def __init__(self, name: str, separator: str = "-", empty_segment: bool = False):
        self.name = name
        self.separator = separator
        error_type = 'EMPTY_SEGMENT' if empty_segment else 'NO_SEPARATOR'
        super().__init__(ErrorMessages.format_error(
            'naming', error_type, name=name, separator=separator))


class ArchiveError(MonthArchiveError, OSError):
    """Local archive failure that is not a plain OS error."""


class TransportError(MonthArchiveError):
    """
    The object store rejected the upload or could not be reached.

    Covers authentication, network and remote-side errors. ``code`` carries the
    S3 error code when the service returned one.
    """

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class DiscoveryError(MonthArchiveError):
    """The top-level source listing failed; the run cannot proceed."""


class ConfigError(MonthArchiveError):
    """Configuration file missing or holding an invalid value."""


def classify_error(error: BaseException) -> ErrorCategory:
    """Map an exception onto the category recorded in the run report."""
    if isinstance(error, MalformedNameError):
        return ErrorCategory.NAMING
    if isinstance(error, TransportError):
        return ErrorCategory.NETWORK
    if isinstance(error, OSError):
        return ErrorCategory.FILE_IO
    return ErrorCategory.UNKNOWN
