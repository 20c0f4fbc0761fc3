#!/usr/bin/env python3
"""
Unit tests for the archive thread pool.
"""
import threading
import time
import unittest

from month_archive.concurrent_processor import ConcurrentProcessor


class TestConcurrentProcessor(unittest.TestCase):
    """Test fan-out, failure isolation and the completion barrier"""

    def test_tasks_run_concurrently(self):
        """Test one worker per task: three tasks meet at a three-party barrier"""
        barrier = threading.Barrier(3, timeout=5)

        def task(name):
            barrier.wait()
            return name

        with ConcurrentProcessor() as processor:
            for name in ["2019-01", "2019-02", "2019-03"]:
                processor.submit(name, task, name)
            records = processor.wait_for_completion()

        self.assertTrue(all(r.success for r in records))
        self.assertEqual([r.result for r in records], ["2019-01", "2019-02", "2019-03"])

    def test_max_workers_caps_concurrency(self):
        active = []
        peak = []
        lock = threading.Lock()

        def task():
            with lock:
                active.append(1)
                peak.append(len(active))
            time.sleep(0.05)
            with lock:
                active.pop()

        with ConcurrentProcessor(max_workers=2) as processor:
            for i in range(6):
                processor.submit(f"task_{i}", task)
            processor.wait_for_completion()

        self.assertLessEqual(max(peak), 2)

    def test_failure_does_not_cancel_siblings(self):
        def task(name):
            if name == "bad":
                raise PermissionError("unreadable")
            time.sleep(0.05)
            return name

        with ConcurrentProcessor() as processor:
            for name in ["good-1", "bad", "good-2"]:
                processor.submit(name, task, name)
            records = processor.wait_for_completion()

        by_id = {r.task_id: r for r in records}
        self.assertTrue(by_id["good-1"].success)
        self.assertTrue(by_id["good-2"].success)
        self.assertFalse(by_id["bad"].success)
        self.assertIsInstance(by_id["bad"].error, PermissionError)

    def test_wait_returns_after_all_finished(self):
        finished = []

        def task(delay):
            time.sleep(delay)
            finished.append(delay)

        with ConcurrentProcessor() as processor:
            for i, delay in enumerate([0.1, 0.01, 0.05]):
                processor.submit(f"task_{i}", task, delay)
            processor.wait_for_completion()
            self.assertEqual(len(finished), 3)
            self.assertEqual(processor.get_status()["running"], 0)

    def test_progress_callback(self):
        events = []

        def callback(event_type, event_data):
            events.append((event_type, event_data["task_id"]))

        def task(fail):
            if fail:
                raise RuntimeError("boom")

        with ConcurrentProcessor(progress_callback=callback) as processor:
            processor.submit("ok", task, False)
            processor.submit("bad", task, True)
            processor.wait_for_completion()

        self.assertIn(("task_completed", "ok"), events)
        self.assertIn(("task_failed", "bad"), events)

    def test_duplicate_task_id_rejected(self):
        processor = ConcurrentProcessor()
        processor.submit("2019-01", lambda: None)
        with self.assertRaises(ValueError):
            processor.submit("2019-01", lambda: None)

    def test_no_tasks(self):
        with ConcurrentProcessor() as processor:
            self.assertEqual(processor.wait_for_completion(), [])


if __name__ == '__main__':
    unittest.main()
