# harvester/errors.py
"""Exception types raised by the harvester."""


class HarvesterError(Exception):
    """Base class for errors raised by this package."""


class TransportError(HarvesterError):
    """A page could not be fetched: bad scheme, connect failure, HTTP error."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
