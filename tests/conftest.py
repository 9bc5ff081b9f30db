"""Shared fixtures: in-memory transports and a scheduler stand-in."""

from __future__ import annotations

import io
import threading

import pytest

from harvester.errors import TransportError
from harvester.extractor import Extractor
from harvester.store import ArtifactStore


class FakeTransport:
    """Serves pages from a dict; unknown URLs fail like an unreachable host."""

    def __init__(self, pages):
        self.pages = dict(pages)
        self.requested = []
        self._lock = threading.Lock()

    def fetch(self, url):
        with self._lock:
            self.requested.append(url)
        if url not in self.pages:
            raise TransportError(url, "connection refused")
        return io.StringIO(self.pages[url])


class RecordingScheduler:
    """Collects submitted tasks and counts completions; never runs anything."""

    def __init__(self):
        self.submitted = []
        self.completions = 0
        self.cancelled = threading.Event()

    def submit(self, task):
        self.submitted.append(task)
        return True

    def on_task_complete(self):
        self.completions += 1


@pytest.fixture
def store() -> ArtifactStore:
    return ArtifactStore()


@pytest.fixture
def extractor(store) -> Extractor:
    return Extractor(store)


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()
