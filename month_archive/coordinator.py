#!/usr/bin/env python3
"""
Month Archive Coordinator

Drives a single run through four stages:
1. Discover: list the source directory one level deep and collect the files
   of every dated subdirectory
2. Fan-out-Archive: pack each directory into its own zip on a worker thread
3. Await-Completion: block until every archive task has finished
4. Sequential-Upload: upload the successful archives one at a time

Only a failure to list the source directory stops the run. Any other failure
is recorded against its directory, and the RunReport returned at the end
shows what happened to every directory.
"""

import time
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .archiver import pack
from .concurrent_processor import ConcurrentProcessor
from .config import ArchiveConfig
from .errors import DiscoveryError, ErrorMessages, MalformedNameError, classify_error
from .logging_setup import get_archive_logger, log_operation_complete, log_operation_start
from .models import (
    ArchiveResult,
    ArchiveTask,
    EntryKind,
    MonthGroup,
    RunReport,
    SourceEntry,
    Stage,
    TaskOutcome,
)
from .naming import build_task
from .uploader import S3Uploader

logger = get_archive_logger(__name__)


def list_source_entries(source_dir: Path) -> List[SourceEntry]:
    """
    List the immediate children of source_dir, sorted by name.

    Raises:
        DiscoveryError: source_dir is missing, not a directory or unreadable
    """
    source_dir = Path(source_dir)
    if not source_dir.is_dir():
        raise DiscoveryError(ErrorMessages.format_error(
            'file_operations', 'NOT_A_DIRECTORY', path=source_dir))
    try:
        children = sorted(source_dir.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise DiscoveryError(ErrorMessages.format_error(
            'file_operations', 'SOURCE_UNREADABLE', path=source_dir, details=e)) from e

    return [
        SourceEntry(
            name=child.name,
            path=child,
            kind=EntryKind.DIRECTORY if child.is_dir() else EntryKind.FILE,
        )
        for child in children
    ]


def collect_month_group(entry: SourceEntry) -> MonthGroup:
    """Regular files directly inside entry; nested directories are ignored."""
    files = [child for child in entry.path.iterdir() if child.is_file()]
    return MonthGroup(directory_name=entry.name, files=files)


def discover_month_groups(source_dir: Path) -> Tuple[List[MonthGroup], List[str], List[TaskOutcome]]:
    """
    Walk source_dir one level deep.

    Returns:
        (month groups, names of skipped non-directory entries, failed outcomes
        for directories that could not be listed)

    Raises:
        DiscoveryError: the top-level listing failed
    """
    groups: List[MonthGroup] = []
    skipped: List[str] = []
    failures: List[TaskOutcome] = []

    for entry in list_source_entries(source_dir):
        if not entry.is_directory:
            logger.debug(f"Skipping non-directory entry: {entry.name}")
            skipped.append(entry.name)
            continue

        logger.info(f"Scanning: {entry.path}")
        try:
            group = collect_month_group(entry)
        except OSError as e:
            logger.error(f"Cannot list {entry.path}: {e}")
            failures.append(_failure(entry.name, Stage.DISCOVER, e))
            continue

        logger.debug(f"Compiled list of {len(group.files)} file(s) for {entry.name}")
        groups.append(group)

    return groups, skipped, failures


def _failure(directory_name: str, stage: Stage, error: BaseException,
             task: Optional[ArchiveTask] = None, duration: Optional[float] = None) -> TaskOutcome:
    return TaskOutcome(
        directory_name=directory_name,
        stage=stage,
        success=False,
        remote_key=task.remote_key if task else None,
        output_path=task.output_path if task else None,
        error=str(error),
        error_category=classify_error(error).value,
        duration=duration,
    )


class ArchiveCoordinator:
    """
    Runs the discover, archive, barrier and upload stages for one source tree.

    Attributes:
        config: Resolved run configuration
        uploader: Anything with upload(local_path, remote_key); defaults to S3Uploader
        pack_func: Archive writer, pack(output_path, input_paths)
    """

    def __init__(self,
                 config: ArchiveConfig,
                 uploader: Optional[S3Uploader] = None,
                 pack_func: Callable = pack):
        self.config = config
        self.uploader = uploader if uploader is not None else S3Uploader(config.s3)
        self.pack_func = pack_func

    def plan(self) -> Tuple[List[ArchiveTask], RunReport]:
        """
        Discover directories and resolve their archive tasks without doing any work.

        Raises:
            DiscoveryError: the source directory cannot be listed
        """
        report = RunReport(source_dir=self.config.source_dir, output_dir=self.config.output_dir)
        groups, skipped, failures = discover_month_groups(self.config.source_dir)
        report.skipped_entries = skipped
        for outcome in failures:
            report.record(outcome)

        tasks: List[ArchiveTask] = []
        for group in groups:
            try:
                task = build_task(group, self.config.output_dir,
                                  extension=self.config.extension,
                                  separator=self.config.separator)
            except MalformedNameError as e:
                logger.error(f"Skipping {group.directory_name}: {e}")
                report.record(_failure(group.directory_name, Stage.DISCOVER, e))
                continue
            logger.info(f"{group.directory_name} -> {task.output_path} "
                        f"(s3 key {self.config.s3.object_key(task.remote_key)})")
            tasks.append(task)

        return tasks, report

    def archive_all(self, tasks: List[ArchiveTask], report: RunReport) -> List[ArchiveResult]:
        """
        Pack every task concurrently and wait for all of them.

        Returns:
            ArchiveResults of the tasks that succeeded, in task order
        """
        if not tasks:
            return []

        log_operation_start(logger, "archiving", tasks=len(tasks),
                            max_workers=self.config.max_workers)
        start_time = time.time()

        with ConcurrentProcessor(max_workers=self.config.max_workers) as processor:
            for task in tasks:
                processor.submit(task.directory_name, self.pack_func,
                                 task.output_path, task.input_files)
            records = processor.wait_for_completion()

        results: List[ArchiveResult] = []
        for task, record in zip(tasks, records):
            if record.success:
                report.record(TaskOutcome(
                    directory_name=task.directory_name,
                    stage=Stage.ARCHIVE,
                    success=True,
                    remote_key=task.remote_key,
                    output_path=task.output_path,
                    duration=record.duration,
                ))
                results.append(ArchiveResult(task.directory_name, task.output_path, task.remote_key))
            else:
                report.record(_failure(task.directory_name, Stage.ARCHIVE, record.error,
                                       task=task, duration=record.duration))

        log_operation_complete(logger, "archiving", success=len(results) == len(tasks),
                               duration=time.time() - start_time,
                               succeeded=len(results), failed=len(tasks) - len(results))
        return results

    def upload_all(self, results: List[ArchiveResult], report: RunReport) -> None:
        """Upload archives one at a time; a failure is recorded and the loop continues."""
        if not results:
            return

        log_operation_start(logger, "uploading", archives=len(results),
                            bucket=self.config.s3.bucket)
        failed = 0
        for result in results:
            start_time = time.time()
            try:
                self.uploader.upload(result.output_path, result.remote_key)
            except Exception as e:
                failed += 1
                logger.error(f"Upload failed for {result.directory_name}: {e}")
                report.record(TaskOutcome(
                    directory_name=result.directory_name,
                    stage=Stage.UPLOAD,
                    success=False,
                    remote_key=result.remote_key,
                    output_path=result.output_path,
                    error=str(e),
                    error_category=classify_error(e).value,
                    duration=time.time() - start_time,
                ))
                continue

            report.record(TaskOutcome(
                directory_name=result.directory_name,
                stage=Stage.UPLOAD,
                success=True,
                remote_key=result.remote_key,
                output_path=result.output_path,
                duration=time.time() - start_time,
            ))

        log_operation_complete(logger, "uploading", success=failed == 0,
                               succeeded=len(results) - failed, failed=failed)

    def run(self) -> RunReport:
        """
        Execute a full run.

        Raises:
            DiscoveryError: the source directory cannot be listed
        """
        logger.info(f"Source directory: {self.config.source_dir}")
        logger.info(f"Output directory: {self.config.output_dir}")

        tasks, report = self.plan()
        results = self.archive_all(tasks, report)

        if self.config.upload_enabled:
            self.upload_all(results, report)
        else:
            logger.info(f"Upload disabled; {len(results)} archive(s) left in {self.config.output_dir}")

        report.finished_at = datetime.now()
        for outcome in report.failures:
            logger.error(f"FAILED {outcome.directory_name} at {outcome.stage.value}: {outcome.error}")
        logger.info(f"Run finished: {len(report.succeeded)} succeeded, {len(report.failures)} failed")
        return report
