# harvester/crawl_log.py
"""
TSV crawl log: one row per fetched URL, STAT rows at the end.

TSV output columns
------------------
timestamp    url    depth    status    new_links    elapsed_ms    worker

status is "ok" when the page was streamed to the end (or until cancellation)
and "error" when the transport failed. Depth-0 tasks never fetch and are not
logged.

Summary rows (after one blank row)
----------------------------------
STAT    tasks_registered    <n>
STAT    links               <n>
STAT    emails              <n>
STAT    phone_numbers       <n>
STAT    elapsed_sec         <seconds>

tools/analyze_log.py reads this format back.
"""

from __future__ import annotations

import csv
import os
import threading
import time

COLUMNS = ["timestamp", "url", "depth", "status", "new_links", "elapsed_ms", "worker"]


def ensure_parent_dir(filepath: str) -> None:
    """Create the parent directory for a file if it does not exist."""
    parent = os.path.dirname(os.path.abspath(filepath))
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)


class CrawlLog:
    """Thread-safe TSV writer shared by all workers."""

    def __init__(self, path: str):
        ensure_parent_dir(path)
        self.path = path
        self._lock = threading.Lock()
        self._file = open(path, "w", newline="", encoding="utf-8")
        self._csv = csv.writer(self._file, delimiter="\t")
        self._csv.writerow(COLUMNS)

    def record(self, url: str, depth: int, status: str, new_links: int, elapsed_ms: int) -> None:
        ts = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
        row = [ts, url, depth, status, new_links, elapsed_ms, threading.current_thread().name]
        with self._lock:
            if not self._file.closed:
                self._csv.writerow(row)

    def write_stats(self, stats: dict) -> None:
        with self._lock:
            self._csv.writerow([])
            for key, value in stats.items():
                self._csv.writerow(["STAT", key, value])

    def close(self) -> None:
        """Flush and close. Idempotent."""
        with self._lock:
            if not self._file.closed:
                self._file.flush()
                self._file.close()
