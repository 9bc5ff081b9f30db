# harvester/config.py
"""
Central configuration for the harvester.
Keep policy and tunables here so the crawler class stays lean.
"""

import os
from dataclasses import dataclass, field, replace
from typing import Optional

# Depth sentinel: a task with this depth never runs out of recursion budget.
UNLIMITED_DEPTH = -1

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 6.1; WOW64) AppleWebKit/537.11 "
    "(KHTML, like Gecko) Chrome/23.0.1271.95 Safari/537.11"
)


def default_thread_count() -> int:
    """Two workers per CPU; the work is almost entirely network-bound."""
    return (os.cpu_count() or 1) * 2


@dataclass(frozen=True)
class Config:
    # Identity and transport
    user_agent: str = DEFAULT_USER_AGENT
    cookies: Optional[str] = None          # raw Cookie header, e.g. "a=1;b=2"
    socket_timeout_sec: float = 0.5        # connect only
    read_timeout_sec: Optional[float] = 30.0   # response wait and each body read; None = no limit

    # Crawl limits
    threads: int = field(default_factory=default_thread_count)
    depth: int = 1                         # 1 = seed page only

    # Extraction patterns (None = built-in default)
    link_regex: Optional[str] = None
    href_regex: Optional[str] = None
    email_regex: Optional[str] = None
    phone_regex: Optional[str] = None

    # Shutdown: each of the two grace windows lasts this long
    grace_period_sec: float = 0.6

    # Output
    output_path: Optional[str] = None      # None = print report to stdout
    log_path: Optional[str] = "logs/run.tsv"

    def with_overrides(self, **kwargs) -> "Config":
        """Return a copy with specific fields overridden."""
        return replace(self, **kwargs)
