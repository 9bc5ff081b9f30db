# harvester/store.py
"""
Deduplicated artifact sets shared by every crawl task.

One lock guards all three sets. Each add is a check-and-set under that lock,
so when two tasks find the same link at the same time exactly one of them is
told it is new (and only that one schedules a child task for it).
"""

from __future__ import annotations

import threading
from typing import List, Set

from .links import AbsoluteLink


class ArtifactStore:
    """Links, emails and phone numbers collected so far by all tasks."""

    def __init__(self):
        self._lock = threading.Lock()
        self._links: Set[AbsoluteLink] = set()
        self._emails: Set[str] = set()
        self._phone_numbers: Set[str] = set()

    def add_link(self, link: AbsoluteLink) -> bool:
        """Insert a link; True if it was not known before."""
        return self._add(self._links, link)

    def add_email(self, email: str) -> bool:
        return self._add(self._emails, email)

    def add_phone_number(self, number: str) -> bool:
        return self._add(self._phone_numbers, number)

    def _add(self, target: set, item) -> bool:
        with self._lock:
            if item in target:
                return False
            target.add(item)
            return True

    # --------------------------- read side (reporting) ---------------------------

    def links(self) -> List[str]:
        with self._lock:
            return sorted(link.url for link in self._links)

    def emails(self) -> List[str]:
        with self._lock:
            return sorted(self._emails)

    def phone_numbers(self) -> List[str]:
        with self._lock:
            return sorted(self._phone_numbers)

    def counts(self) -> dict:
        with self._lock:
            return {
                "links": len(self._links),
                "emails": len(self._emails),
                "phone_numbers": len(self._phone_numbers),
            }
