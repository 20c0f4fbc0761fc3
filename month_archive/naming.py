#!/usr/bin/env python3
"""
Naming rules for dated directories.

A directory named ``2019-09`` becomes group ``2019`` and unit ``09``. The
archive lands locally at ``<output_root>/2019/09.zip`` and remotely at
``2019/09.zip`` below the bucket base path. Nothing here touches the
filesystem.
"""

from pathlib import Path
from typing import Tuple, Union

from .errors import MalformedNameError
from .models import ArchiveTask, MonthGroup

DEFAULT_SEPARATOR = "-"
DEFAULT_EXTENSION = "zip"


def resolve_name(directory_name: str, separator: str = DEFAULT_SEPARATOR) -> Tuple[str, str]:
    """
    Split a dated directory name into (group, unit).

    Splits on the first separator only, so ``2019-09-b`` resolves to
    ``("2019", "09-b")`` rather than colliding with ``2019-09``.

    Raises:
        MalformedNameError: separator missing or either side empty
    """
    if separator not in directory_name:
        raise MalformedNameError(directory_name, separator)

    group, unit = directory_name.split(separator, 1)
    if not group or not unit:
        raise MalformedNameError(directory_name, separator, empty_segment=True)

    return group, unit


def remote_key(group: str, unit: str, extension: str = DEFAULT_EXTENSION) -> str:
    """Object key relative to the bucket base path."""
    return f"{group}/{unit}.{extension}"


def local_archive_path(output_root: Union[str, Path], group: str, unit: str,
                       extension: str = DEFAULT_EXTENSION) -> Path:
    return Path(output_root) / group / f"{unit}.{extension}"


def build_task(month_group: MonthGroup, output_root: Union[str, Path],
               extension: str = DEFAULT_EXTENSION,
               separator: str = DEFAULT_SEPARATOR) -> ArchiveTask:
    """Turn a discovered directory into an ArchiveTask."""
    group, unit = resolve_name(month_group.directory_name, separator)
    return ArchiveTask(
        directory_name=month_group.directory_name,
        output_path=local_archive_path(output_root, group, unit, extension),
        remote_key=remote_key(group, unit, extension),
        input_files=list(month_group.files),
    )
