import sys
import threading
import time
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.progress import ProgressReporter  # noqa: E402


class ProgressReporterTests(unittest.TestCase):
    def test_regressions_are_dropped_and_values_clamped(self):
        events = []
        reporter = ProgressReporter(events.append)
        reporter.report("validating", 5)
        reporter.report("primary_pdf", 30)
        reporter.report("reading", 15)
        reporter.report("complete", 140)
        reporter.close(flush_timeout=2.0)
        self.assertEqual([event["progress"] for event in events], [5, 30, 100])
        self.assertEqual(reporter.last_percent, 100)

    def test_failing_observer_does_not_break_the_run(self):
        def observer(event):
            raise RuntimeError("socket closed")

        reporter = ProgressReporter(observer)
        reporter.report("validating", 5)
        reporter.report("reading", 15)
        reporter.close(flush_timeout=2.0)
        self.assertEqual(reporter.last_percent, 15)

    def test_closed_reporter_is_silent(self):
        events = []
        reporter = ProgressReporter(events.append)
        reporter.report("validating", 5)
        reporter.close(flush_timeout=2.0)
        reporter.report("complete", 100)
        time.sleep(0.1)
        self.assertEqual(len(events), 1)

    def test_extra_fields_are_forwarded(self):
        events = []
        reporter = ProgressReporter(events.append)
        reporter.report("drawing", 60, total_pages=3)
        reporter.close(flush_timeout=2.0)
        self.assertEqual(events[0], {"stage": "drawing", "progress": 60, "total_pages": 3})

    def test_slow_observer_does_not_block_reporting(self):
        events = []

        def observer(event):
            time.sleep(0.3)
            events.append(event)

        reporter = ProgressReporter(observer)
        started = time.perf_counter()
        for percent in (5, 15, 30, 60, 90):
            reporter.report("stage", percent)
        self.assertLess(time.perf_counter() - started, 0.2)
        reporter.close(flush_timeout=5.0)
        self.assertEqual([event["progress"] for event in events], [5, 15, 30, 60, 90])

    def test_full_queue_drops_updates(self):
        release = threading.Event()
        events = []

        def observer(event):
            release.wait(2.0)
            events.append(event)

        reporter = ProgressReporter(observer, max_pending=2)
        for percent in range(1, 11):
            reporter.report("stage", percent)
        release.set()
        reporter.close(flush_timeout=2.0)
        self.assertGreater(reporter.dropped, 0)
        self.assertLessEqual(len(events), 3)
        self.assertEqual(events[0]["progress"], 1)

    def test_discard_skips_queued_events(self):
        release = threading.Event()
        events = []

        def observer(event):
            release.wait(2.0)
            events.append(event)

        reporter = ProgressReporter(observer)
        reporter.report("validating", 5)
        reporter.report("reading", 15)
        reporter.report("primary_pdf", 30)
        reporter.close(discard=True)
        release.set()
        reporter.close(flush_timeout=2.0)
        self.assertLessEqual(len(events), 1)


if __name__ == "__main__":
    unittest.main()
