#!/usr/bin/env python3
"""
Zip packing for one month-directory.

Each input file becomes a single ZIP_DEFLATED entry named after its base
filename. A failure on any input aborts the whole archive; whatever is left at
the output path afterwards must not be uploaded.
"""

import time
import zipfile
from pathlib import Path
from typing import Iterable, Union

from .errors import ArchiveError, ErrorMessages
from .logging_setup import get_archive_logger

logger = get_archive_logger(__name__)

COMPRESSION = zipfile.ZIP_DEFLATED


def ensure_parent_directory(output_path: Path) -> Path:
    """Create the parent directory of output_path; safe if it already exists."""
    parent = output_path.parent
    parent.mkdir(mode=0o755, parents=True, exist_ok=True)
    return parent


def pack(output_path: Union[str, Path], input_paths: Iterable[Union[str, Path]]) -> None:
    """
    Write input_paths into a deflated zip at output_path.

    Args:
        output_path: Archive to create or truncate
        input_paths: Files to add, in the order they should appear

    Raises:
        OSError: unreadable input, unwritable output or directory creation failure
        ArchiveError: two inputs share the same base filename
    """
    output_path = Path(output_path)
    input_paths = [Path(p) for p in input_paths]

    ensure_parent_directory(output_path)
    logger.info(f"Packing {len(input_paths)} file(s) into {output_path}")
    start_time = time.time()

    seen = set()
    # Out-of-range mtimes are clamped to the zip date range instead of rejected
    with zipfile.ZipFile(output_path, mode="w", compression=COMPRESSION,
                         strict_timestamps=False) as archive:
        for input_path in input_paths:
            entry_name = input_path.name
            if entry_name in seen:
                raise ArchiveError(ErrorMessages.format_error(
                    'file_operations', 'DUPLICATE_ENTRY',
                    entry=entry_name, path=output_path))
            seen.add(entry_name)

            # ZipFile.write opens the source itself; an unreadable file raises here
            archive.write(input_path, arcname=entry_name, compress_type=COMPRESSION)
            logger.debug(f"  added {entry_name} ({input_path.stat().st_size} bytes)")

    logger.info(f"Packed {output_path} in {time.time() - start_time:.2f}s")
