#!/usr/bin/env python3
"""
Concurrent fan-out for archive tasks.

Runs one thread per submitted task unless a worker cap is configured, records
every success and failure, and offers a barrier that returns only once all
submitted tasks have finished. A failing task never cancels its siblings.
"""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .logging_setup import get_archive_logger

logger = get_archive_logger(__name__)


@dataclass
class TaskRecord:
    """Completion record for one submitted task."""
    task_id: str
    success: bool
    result: Any = None
    error: Optional[BaseException] = None
    duration: float = 0.0


class ConcurrentProcessor:
    """
    Thread pool wrapper with per-task bookkeeping.

    Usage:
        with ConcurrentProcessor(max_workers=4) as processor:
            processor.submit("2019-01", pack, path, files)
            records = processor.wait_for_completion()
    """

    def __init__(self,
                 max_workers: Optional[int] = None,
                 progress_callback: Optional[Callable[[str, Dict[str, Any]], None]] = None):
        """
        Args:
            max_workers: Upper bound on threads; None sizes the pool to the task count
            progress_callback: Called with (event_type, event_data) as tasks finish
        """
        self.max_workers = max_workers
        self.progress_callback = progress_callback

        self._pending: List[Tuple[str, Callable, tuple, dict]] = []
        self._futures: Dict[str, Future] = {}
        self._order: List[str] = []
        self._records: Dict[str, TaskRecord] = {}
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.RLock()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False

    def submit(self, task_id: str, task_func: Callable, *args, **kwargs) -> None:
        """
        Queue a task. Tasks start on the first call to start() or
        wait_for_completion(), once the pool can be sized to the full batch.
        """
        with self._lock:
            if task_id in self._futures or any(t[0] == task_id for t in self._pending):
                raise ValueError(f"Duplicate task id: {task_id}")
            self._pending.append((task_id, task_func, args, kwargs))
            self._order.append(task_id)

    def start(self) -> None:
        with self._lock:
            if not self._pending:
                return
            if self._executor is None:
                workers = len(self._pending)
                if self.max_workers is not None:
                    workers = min(workers, self.max_workers)
                self._executor = ThreadPoolExecutor(
                    max_workers=workers, thread_name_prefix="archive")
                logger.info(f"Thread pool started with {workers} worker(s)")

            for task_id, task_func, args, kwargs in self._pending:
                self._futures[task_id] = self._executor.submit(
                    self._run_task, task_id, task_func, args, kwargs)
                logger.debug(f"Submitted task: {task_id}")
            self._pending = []

    def _run_task(self, task_id: str, task_func: Callable, args: tuple, kwargs: dict) -> Any:
        logger.info(f"Starting task: {task_id}")
        start_time = time.time()
        try:
            result = task_func(*args, **kwargs)
        except Exception as e:
            logger.error(f"Task failed: {task_id} - {e}")
            record = TaskRecord(task_id, success=False, error=e,
                                duration=time.time() - start_time)
            with self._lock:
                self._records[task_id] = record
            self._notify("task_failed", {"task_id": task_id, "error": str(e)})
            raise

        record = TaskRecord(task_id, success=True, result=result,
                            duration=time.time() - start_time)
        with self._lock:
            self._records[task_id] = record
        self._notify("task_completed", {"task_id": task_id, "status": "success"})
        return result

    def _notify(self, event_type: str, event_data: Dict[str, Any]) -> None:
        if self.progress_callback:
            self.progress_callback(event_type, event_data)

    def wait_for_completion(self) -> List[TaskRecord]:
        """
        Block until every submitted task has finished.

        Returns:
            One TaskRecord per task, in submission order
        """
        self.start()
        with self._lock:
            futures = list(self._futures.values())
        wait(futures)

        with self._lock:
            records = [self._records[task_id] for task_id in self._order]

        failed = sum(1 for r in records if not r.success)
        logger.info(f"All {len(records)} task(s) finished: "
                    f"{len(records) - failed} succeeded, {failed} failed")
        return records

    def get_status(self) -> Dict[str, Any]:
        with self._lock:
            done = len(self._records)
            return {
                "submitted": len(self._order),
                "completed": sum(1 for r in self._records.values() if r.success),
                "failed": sum(1 for r in self._records.values() if not r.success),
                "running": len(self._order) - done,
            }

    def stop(self) -> None:
        if self._executor:
            self._executor.shutdown(wait=True)
            self._executor = None
