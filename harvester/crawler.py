# harvester/crawler.py
"""
Wires the pieces together for one crawl.

    Config ─► Transport, Extractor(ArtifactStore), FrontierScheduler, CrawlLog
    seed   ─► CrawlTask ─► scheduler ─► ... until the frontier is empty

Typical usage:
    cfg = Config().with_overrides(depth=2, threads=8)
    c = Crawler(cfg)
    try:
        result = c.run("https://example.com/")
    finally:
        c.close()
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from .config import Config
from .crawl_log import CrawlLog
from .extractor import Extractor
from .links import AbsoluteLink, starts_with_protocol
from .scheduler import FrontierScheduler
from .store import ArtifactStore
from .task import CrawlTask
from .transport import Transport

logger = logging.getLogger(__name__)


@dataclass
class CrawlResult:
    links: List[str] = field(default_factory=list)
    emails: List[str] = field(default_factory=list)
    phone_numbers: List[str] = field(default_factory=list)
    tasks_registered: int = 0
    elapsed_sec: float = 0.0
    exhausted: bool = False   # False when the crawl was cancelled


class Crawler:
    """One crawl from one seed. Not reusable: build a new Crawler per run."""

    def __init__(self, cfg: Config, transport=None, store: Optional[ArtifactStore] = None):
        self.cfg = cfg
        self.store = store if store is not None else ArtifactStore()
        self.extractor = Extractor.from_config(cfg, self.store)
        self.transport = transport if transport is not None else Transport(
            user_agent=cfg.user_agent,
            cookies=cfg.cookies,
            timeout=cfg.socket_timeout_sec,
            read_timeout=cfg.read_timeout_sec,
        )
        self.scheduler = FrontierScheduler(cfg.threads, grace_period_sec=cfg.grace_period_sec)
        self.log = CrawlLog(cfg.log_path) if cfg.log_path else None
        self.t0 = time.time()

    def seed_task(self, seed: str) -> CrawlTask:
        if not starts_with_protocol(seed):
            raise ValueError("Only http and https protocol are supported")
        return CrawlTask(AbsoluteLink("", seed), self.cfg.depth, self.extractor,
                         self.scheduler, self.transport, self.log)

    def run(self, seed: str) -> CrawlResult:
        """Crawl from `seed` until the frontier is exhausted or cancel() is called."""
        task = self.seed_task(seed)
        self.t0 = time.time()
        self.scheduler.submit(task)
        self.scheduler.start()
        try:
            exhausted = self.scheduler.wait()
        finally:
            result = self.result()
            self._write_stats(result)
        result.exhausted = exhausted
        return result

    def cancel(self) -> None:
        """Safe to call from a signal handler."""
        self.scheduler.request_cancellation()

    def result(self) -> CrawlResult:
        return CrawlResult(
            links=self.store.links(),
            emails=self.store.emails(),
            phone_numbers=self.store.phone_numbers(),
            tasks_registered=self.scheduler.registered,
            elapsed_sec=time.time() - self.t0,
            exhausted=self.scheduler.exhausted.is_set(),
        )

    def close(self) -> None:
        if self.log is not None:
            self.log.close()

    def _write_stats(self, result: CrawlResult) -> None:
        logger.info(
            f"crawl finished: {result.tasks_registered} tasks, {len(result.links)} links, "
            f"{len(result.emails)} emails, {len(result.phone_numbers)} phone numbers "
            f"in {result.elapsed_sec:.3f}s"
        )
        if self.log is None:
            return
        self.log.write_stats({
            "tasks_registered": result.tasks_registered,
            "links": len(result.links),
            "emails": len(result.emails),
            "phone_numbers": len(result.phone_numbers),
            "elapsed_sec": f"{result.elapsed_sec:.3f}",
        })
