# harvester/task.py
"""
One unit of crawl work: fetch a URL, extract from it, schedule what is new.
"""

from __future__ import annotations

import logging
import time
from http.client import HTTPException
from typing import Set

from .config import UNLIMITED_DEPTH
from .errors import TransportError
from .extractor import TAG, TEXT, Extractor, is_base_tag, tokenize
from .links import AbsoluteLink, resolve

logger = logging.getLogger(__name__)


def child_depth(depth: int) -> int:
    """Depth budget handed to tasks spawned from a page at `depth`."""
    if depth == UNLIMITED_DEPTH:
        return UNLIMITED_DEPTH
    return depth - 1


class CrawlTask:
    """
    Crawl a single link.

    depth is the remaining budget: 0 means the task ends without fetching,
    UNLIMITED_DEPTH never runs out. run() reports completion to the
    scheduler exactly once, whatever happens in between.
    """

    def __init__(self, link: AbsoluteLink, depth: int, extractor: Extractor, scheduler, transport,
                 crawl_log=None):
        self.link = link
        self.depth = depth
        self.extractor = extractor
        self.scheduler = scheduler
        self.transport = transport
        self.crawl_log = crawl_log

    def __repr__(self) -> str:
        return f"CrawlTask({self.link.url!r}, depth={self.depth})"

    def child(self, link: AbsoluteLink) -> "CrawlTask":
        return CrawlTask(link, child_depth(self.depth), self.extractor, self.scheduler,
                         self.transport, self.crawl_log)

    def run(self) -> None:
        try:
            if self.depth == 0:
                return
            self._crawl()
        finally:
            self.scheduler.on_task_complete()

    # -------------------------------- internals ---------------------------------

    def _crawl(self) -> None:
        url = self.link.url
        t0 = time.time()
        try:
            with self.transport.fetch(url) as stream:
                found = self._scan(stream)
        except (TransportError, OSError, HTTPException) as e:
            logger.warning("fetch failed for %s: %s", url, e)
            self._record("error", 0, t0)
            return

        for link in found:
            self.scheduler.submit(self.child(link))
        self._record("ok", len(found), t0)

    def _scan(self, stream) -> Set[AbsoluteLink]:
        """
        Feed the page through the extractor.

        A <base href> switches the parent used for every later relative
        reference on this page.
        """
        parent = self.link
        found: Set[AbsoluteLink] = set()
        for kind, segment in tokenize(stream):
            if self.scheduler.cancelled.is_set():
                logger.debug("cancelled while reading %s", self.link.url)
                break
            if kind == TEXT:
                found |= self.extractor.parse_text(segment, parent)
            elif kind == TAG and is_base_tag(segment):
                parent = self._rebase(parent, segment)
            else:
                found |= self.extractor.parse_attributes(segment, parent)
        return found

    def _rebase(self, parent: AbsoluteLink, tag: str) -> AbsoluteLink:
        href = self.extractor.attribute_value(tag, "href")
        if href is None:
            return parent
        base = resolve(parent, href)
        logger.debug("%s: <base> sets parent to %s", self.link.url, base.url)
        return base

    def _record(self, status: str, new_links: int, t0: float) -> None:
        if self.crawl_log is None:
            return
        elapsed_ms = int((time.time() - t0) * 1000)
        self.crawl_log.record(self.link.url, self.depth, status, new_links, elapsed_ms)
