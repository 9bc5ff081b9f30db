# harvester/transport.py
"""
HTTP/HTTPS GET with the standard library, handed back as a text stream.

• Identifies with a fixed User-Agent and forwards the operator's Cookie string.
• urllib follows redirects on its own.
• A short timeout bounds the connect only; waiting for the response and
  reading the body get a separate, longer one.
• The body is never read in full here; the caller streams it.

Decoding: charset from Content-Type if present, else whatever <meta charset>
the first buffered bytes declare (bs4's EncodingDetector), else UTF-8.
Undecodable bytes are replaced rather than raised.
"""

from __future__ import annotations

import codecs
import io
import logging
from http.client import HTTPConnection, HTTPException, HTTPSConnection
from typing import Optional, TextIO
from urllib.error import HTTPError, URLError
from urllib.request import HTTPHandler, HTTPSHandler, Request, build_opener

from bs4.dammit import EncodingDetector

from .config import DEFAULT_USER_AGENT
from .errors import TransportError
from .links import starts_with_protocol

logger = logging.getLogger(__name__)

# How many leading bytes we look at for a <meta charset> declaration.
SNIFF_BYTES = 4096


def _usable_encoding(name: Optional[str]) -> Optional[str]:
    if not name:
        return None
    try:
        return codecs.lookup(name).name
    except LookupError:
        return None


def sniff_encoding(prefix: bytes) -> Optional[str]:
    """Encoding declared by the markup in `prefix`, or None."""
    declared = EncodingDetector.find_declared_encoding(prefix, is_html=True)
    return _usable_encoding(declared)


# --------------------------- Connect-only timeout ----------------------------
# urllib hands one timeout to the connection, which keeps it for every later
# socket operation. These connections switch to `read_timeout` once connected.

class _ReadTimeoutMixin:
    read_timeout: Optional[float] = None

    def connect(self):
        super().connect()
        self.sock.settimeout(self.read_timeout)


class _HTTPConnection(_ReadTimeoutMixin, HTTPConnection):
    pass


class _HTTPSConnection(_ReadTimeoutMixin, HTTPSConnection):
    pass


def _connection_factory(cls, read_timeout: Optional[float]):
    def connection(host, **kwargs):
        conn = cls(host, **kwargs)
        conn.read_timeout = read_timeout
        return conn
    return connection


class _HTTPHandler(HTTPHandler):
    def __init__(self, read_timeout: Optional[float]):
        super().__init__()
        self._connection = _connection_factory(_HTTPConnection, read_timeout)

    def http_open(self, req):
        return self.do_open(self._connection, req)


class _HTTPSHandler(HTTPSHandler):
    def __init__(self, read_timeout: Optional[float]):
        super().__init__()
        self._connection = _connection_factory(_HTTPSConnection, read_timeout)

    def https_open(self, req):
        return self.do_open(self._connection, req, context=self._context)


class Transport:
    """
    Opens pages for crawl tasks.

    `timeout` bounds the connect. `read_timeout` bounds waiting for the
    response and each read of the body (None waits indefinitely).

    Typical usage:
        t = Transport(cookies="session=abc")
        with t.fetch("https://example.com/") as stream:
            ...
    """

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT, cookies: Optional[str] = None,
                 timeout: float = 0.5, read_timeout: Optional[float] = 30.0):
        self.user_agent = user_agent
        self.cookies = cookies
        self.timeout = timeout
        self.read_timeout = read_timeout
        self.opener = build_opener(_HTTPHandler(read_timeout), _HTTPSHandler(read_timeout))

    def headers(self) -> dict:
        headers = {"User-Agent": self.user_agent}
        if self.cookies is not None:
            headers["Cookie"] = self.cookies
        return headers

    def fetch(self, url: str) -> TextIO:
        """
        GET `url` and return its body as a readable text stream.

        Raises TransportError for a non-http(s) URL or any failure while
        connecting. Errors while reading the stream surface as OSError /
        HTTPException from the stream itself.
        """
        if not starts_with_protocol(url):
            raise TransportError(url, "Invalid protocol")

        req = Request(url, headers=self.headers(), method="GET")
        try:
            resp = self.opener.open(req, timeout=self.timeout)
        except HTTPError as e:
            e.close()
            raise TransportError(url, f"HTTP {e.code}") from e
        except URLError as e:
            raise TransportError(url, str(e.reason)) from e
        except (ValueError, OSError, HTTPException) as e:
            raise TransportError(url, str(e) or e.__class__.__name__) from e

        raw = io.BufferedReader(resp, buffer_size=SNIFF_BYTES)
        encoding = _usable_encoding(resp.headers.get_content_charset())
        if encoding is None:
            try:
                prefix = raw.peek(SNIFF_BYTES)
            except (OSError, HTTPException) as e:
                raw.close()
                raise TransportError(url, str(e) or e.__class__.__name__) from e
            encoding = sniff_encoding(prefix) or "utf-8"
        logger.debug("fetch: opened %s (encoding=%s)", url, encoding)
        return io.TextIOWrapper(raw, encoding=encoding, errors="replace")
