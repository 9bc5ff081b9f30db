# harvester/scheduler.py
"""
Fixed pool of worker threads over a frontier that grows while it runs.

Nobody knows up front how many tasks there will be: every task may submit
children before it finishes. The scheduler therefore counts instead of
waiting on a known batch:

    submit()            active += 1   (before the task is queued)
    on_task_complete()  active -= 1   (once per task, after its children)

A parent submits its children before it reports completion, so `active` can
only reach zero when no task is queued or running. Both updates happen under
one lock, which makes "the call that brings active to zero" a single,
well-defined call: it sets the `exhausted` event, and that happens once.

Shutdown escalates in two bounded steps:
  1. stop accepting work, let workers finish, wait one grace window
  2. set `cancelled` (tasks stop streaming), drop queued tasks, wait again
If workers are still alive after that, SystemExit is raised rather than hang.
"""

from __future__ import annotations

import logging
import threading
import time
from queue import Empty, Queue
from typing import List, Optional

logger = logging.getLogger(__name__)

# How often an idle worker re-checks the stop flag.
_POLL_SEC = 0.05


class FrontierScheduler:
    """
    Typical usage:
        s = FrontierScheduler(threads=8)
        s.submit(first_task)
        s.start()
        exhausted = s.wait()
    """

    def __init__(self, threads: int, grace_period_sec: float = 0.6):
        if threads < 1:
            raise ValueError("Number of threads must be equal to 1 or greater")
        self.threads = threads
        self.grace_period_sec = grace_period_sec

        self._queue: Queue = Queue()
        self._lock = threading.RLock()   # re-entered if SIGINT lands while held
        self._active = 0
        self._registered = 0
        self._accepting = True
        self._shut_down = False

        self.exhausted = threading.Event()   # frontier reached zero
        self.cancelled = threading.Event()   # tasks should stop early
        self._wake = threading.Event()       # exhausted or cancellation requested
        self._stop = threading.Event()       # workers leave their loop

        self._workers: List[threading.Thread] = []

    # --------------------------------- counters ---------------------------------

    @property
    def active(self) -> int:
        with self._lock:
            return self._active

    @property
    def registered(self) -> int:
        with self._lock:
            return self._registered

    # -------------------------------- lifecycle ---------------------------------

    def start(self) -> None:
        for i in range(self.threads):
            t = threading.Thread(target=self._worker, name=f"worker-{i}", daemon=True)
            t.start()
            self._workers.append(t)

    def submit(self, task) -> bool:
        """Queue a task; False if the scheduler no longer accepts work."""
        with self._lock:
            if not self._accepting:
                return False
            self._registered += 1
            self._active += 1
        self._queue.put(task)
        return True

    def on_task_complete(self) -> None:
        """Called exactly once per submitted task, success or failure."""
        with self._lock:
            if self._active <= 0:
                raise RuntimeError("task completion reported with no active tasks")
            self._active -= 1
            if self._active != 0:
                return
            registered = self._registered

        logger.info("frontier exhausted after %d tasks", registered)
        self.exhausted.set()
        self._wake.set()

    def request_cancellation(self) -> None:
        """
        Stop taking new work and let wait() proceed to shutdown.

        Tasks already running keep going; `cancelled` is only set once the
        first grace window of shutdown() has run out.
        """
        with self._lock:
            self._accepting = False
        logger.info("cancellation requested")
        self._wake.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the frontier is exhausted or cancellation is requested,
        then shut down. True if the frontier was exhausted.
        """
        self._wake.wait(timeout)
        self.shutdown()
        return self.exhausted.is_set()

    def shutdown(self) -> bool:
        """
        Stop the workers within two grace windows. Idempotent.

        Returns True if every worker had finished within the first window.
        """
        with self._lock:
            self._accepting = False
            if self._shut_down:
                return True
            self._shut_down = True

        self._stop.set()
        if self._join_workers(self.grace_period_sec):
            return True

        logger.warning("workers still busy after grace period; cancelling in-flight tasks")
        self.cancelled.set()
        dropped = self._drain_queue()
        if dropped:
            logger.info("dropped %d queued tasks", dropped)

        if self._join_workers(self.grace_period_sec):
            return False

        logger.error("Shutting down takes longer than expected. Exiting now...")
        raise SystemExit(0)

    # -------------------------------- internals ---------------------------------

    def _join_workers(self, window: float) -> bool:
        deadline = time.monotonic() + window
        for t in self._workers:
            t.join(max(0.0, deadline - time.monotonic()))
        return not any(t.is_alive() for t in self._workers)

    def _drain_queue(self) -> int:
        dropped = 0
        while True:
            try:
                self._queue.get_nowait()
            except Empty:
                return dropped
            self._queue.task_done()
            dropped += 1

    def _worker(self) -> None:
        """Pull tasks until told to stop. Tasks report their own completion."""
        while not self._stop.is_set():
            try:
                task = self._queue.get(timeout=_POLL_SEC)
            except Empty:
                continue
            try:
                task.run()
            except Exception:
                logger.exception("task %r raised", task)
            finally:
                self._queue.task_done()
