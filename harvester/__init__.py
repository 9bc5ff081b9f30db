# harvester/__init__.py
"""
Harvester package marker.

Exposes the main public surface so callers can do:
    from harvester import Config, Crawler
"""
from .config import Config, UNLIMITED_DEPTH
from .crawler import Crawler, CrawlResult
from .errors import HarvesterError, TransportError
from .links import AbsoluteLink, resolve

__all__ = [
    "AbsoluteLink",
    "Config",
    "CrawlResult",
    "Crawler",
    "HarvesterError",
    "TransportError",
    "UNLIMITED_DEPTH",
    "resolve",
]
__version__ = "0.1.0"
