"""Tests for FrontierScheduler: self-termination, counters, cancellation, escalation."""

from __future__ import annotations

import io
import logging
import threading
import time

import pytest

from harvester.extractor import Extractor
from harvester.links import AbsoluteLink
from harvester.scheduler import FrontierScheduler
from harvester.task import CrawlTask


class SpawnTask:
    """Submits `fanout` children until depth runs out, then completes."""

    def __init__(self, scheduler, depth, fanout, ran):
        self.scheduler = scheduler
        self.depth = depth
        self.fanout = fanout
        self.ran = ran

    def run(self):
        try:
            self.ran.append(self.depth)
            if self.depth > 0:
                for _ in range(self.fanout):
                    self.scheduler.submit(SpawnTask(self.scheduler, self.depth - 1, self.fanout, self.ran))
        finally:
            self.scheduler.on_task_complete()


class WaitTask:
    """Blocks on an event, then completes."""

    def __init__(self, scheduler, event, timeout=5.0):
        self.scheduler = scheduler
        self.event = event
        self.timeout = timeout
        self.started = threading.Event()

    def run(self):
        self.started.set()
        try:
            self.event.wait(self.timeout)
        finally:
            self.scheduler.on_task_complete()


class SlowPage(io.StringIO):
    """Hands out a few characters per read, pausing before each one."""

    def __init__(self, text, step=4, pause=0.02):
        super().__init__(text)
        self.step = step
        self.pause = pause
        self.reading = threading.Event()

    def read(self, size=-1):
        self.reading.set()
        time.sleep(self.pause)
        return super().read(self.step)


class OnePageTransport:
    def __init__(self, page):
        self.page = page

    def fetch(self, url):
        return self.page


def _exhaustion_records(caplog) -> int:
    return sum(1 for r in caplog.records if r.getMessage().startswith("frontier exhausted"))


# ---------------------------------------------------------------------------
# Frontier exhaustion
# ---------------------------------------------------------------------------

class TestExhaustion:
    def test_single_task_without_children(self, caplog) -> None:
        caplog.set_level(logging.INFO, logger="harvester.scheduler")
        s = FrontierScheduler(threads=2)
        ran = []
        s.submit(SpawnTask(s, 0, 0, ran))
        s.start()

        assert s.wait(timeout=5) is True
        assert ran == [0]
        assert s.active == 0
        assert s.registered == 1
        assert _exhaustion_records(caplog) == 1

    def test_growing_frontier_runs_every_task(self, caplog) -> None:
        caplog.set_level(logging.INFO, logger="harvester.scheduler")
        s = FrontierScheduler(threads=4)
        ran = []
        s.submit(SpawnTask(s, 4, 3, ran))
        s.start()

        assert s.wait(timeout=10) is True
        expected = sum(3 ** k for k in range(5))
        assert len(ran) == expected
        assert s.registered == expected
        assert s.active == 0
        assert _exhaustion_records(caplog) == 1

    def test_concurrent_completions_trigger_once(self, caplog) -> None:
        caplog.set_level(logging.INFO, logger="harvester.scheduler")
        s = FrontierScheduler(threads=8)
        ran = []
        for _ in range(300):
            s.submit(SpawnTask(s, 0, 0, ran))
        s.start()

        assert s.wait(timeout=10) is True
        assert len(ran) == 300
        assert _exhaustion_records(caplog) == 1

    def test_completion_without_active_task_is_an_error(self) -> None:
        s = FrontierScheduler(threads=1)
        with pytest.raises(RuntimeError):
            s.on_task_complete()

    def test_shutdown_is_idempotent(self) -> None:
        s = FrontierScheduler(threads=1)
        s.start()
        assert s.shutdown() is True
        assert s.shutdown() is True

    def test_rejects_non_positive_thread_count(self) -> None:
        with pytest.raises(ValueError):
            FrontierScheduler(threads=0)


# ---------------------------------------------------------------------------
# Cancellation and escalation
# ---------------------------------------------------------------------------

class TestCancellation:
    def test_cancellation_stops_accepting_work(self) -> None:
        s = FrontierScheduler(threads=1, grace_period_sec=0.5)
        blocker = WaitTask(s, s.cancelled)
        s.submit(blocker)
        s.start()
        assert blocker.started.wait(5)

        s.request_cancellation()
        assert not s.cancelled.is_set()
        assert s.submit(SpawnTask(s, 0, 0, [])) is False
        assert s.registered == 1

        s.wait(timeout=5)
        assert s.cancelled.is_set()

    def test_in_flight_page_is_finished_within_grace_window(self, store) -> None:
        page = SlowPage("<p>x</p> a@b.com 555-123-4567")
        s = FrontierScheduler(threads=1, grace_period_sec=5.0)
        task = CrawlTask(AbsoluteLink("", "https://example.com/"), 1, Extractor(store), s,
                         OnePageTransport(page))
        s.submit(task)
        s.start()
        assert page.reading.wait(5)

        s.request_cancellation()
        assert s.wait(timeout=5) is True
        assert not s.cancelled.is_set()
        assert store.emails() == ["a@b.com"]
        assert store.phone_numbers() == ["555-123-4567"]

    def test_second_window_after_cancelling_in_flight_tasks(self) -> None:
        # The running task ignores the stop flag and only reacts to `cancelled`,
        # so the first grace window runs out.
        s = FrontierScheduler(threads=1, grace_period_sec=0.1)
        blocker = WaitTask(s, s.cancelled)
        ran = []
        s.submit(blocker)
        s.submit(SpawnTask(s, 0, 0, ran))
        s.start()
        assert blocker.started.wait(5)

        assert s.shutdown() is False
        assert s.cancelled.is_set()
        assert ran == []

    def test_process_exits_when_workers_never_stop(self) -> None:
        release = threading.Event()
        s = FrontierScheduler(threads=1, grace_period_sec=0.05)
        stuck = WaitTask(s, release)
        s.submit(stuck)
        s.start()
        assert stuck.started.wait(5)

        s.request_cancellation()
        try:
            with pytest.raises(SystemExit):
                s.wait(timeout=5)
        finally:
            release.set()
