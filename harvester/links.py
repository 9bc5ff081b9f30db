# harvester/links.py
"""
Absolute link model and the resolution rules that build it.

An AbsoluteLink is kept as two strings rather than one:
    base       scheme + authority + path up to the resolution point
               ("" when the found reference was already absolute)
    reference  the literal string found on the page

The concatenation base + reference is the URL we fetch. Equality compares both
fields as they are, so the dedup key is the raw split, not a normalized URL:
"https://a.com/x" found as an absolute link and "/x" found on a page of a.com
are two different links. Case, trailing slashes and percent-encoding are not
normalized either.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

ALLOWED_PROTOCOLS = ("http://", "https://")


def starts_with_protocol(url: str) -> bool:
    """True if the URL begins with one of ALLOWED_PROTOCOLS."""
    return url.startswith(ALLOWED_PROTOCOLS)


@dataclass(frozen=True)
class AbsoluteLink:
    base: str
    reference: str

    @property
    def url(self) -> str:
        return self.base + self.reference

    @property
    def scheme(self) -> str:
        """'http' or 'https', read from the literal prefix; '' if neither."""
        url = self.url
        for protocol in ALLOWED_PROTOCOLS:
            if url.startswith(protocol):
                return protocol[:-3]
        return ""

    def __str__(self) -> str:
        return self.url


def _split_protocol(url: str):
    for protocol in ALLOWED_PROTOCOLS:
        if url.startswith(protocol):
            return protocol, url[len(protocol):]
    raise ValueError(f"not an http(s) URL: {url!r}")


def resolve(parent: Optional[AbsoluteLink], found: str) -> AbsoluteLink:
    """
    Turn a reference found on the parent page into an AbsoluteLink.

    Rules:
      - "http://..." / "https://..."  already absolute, base is ""
      - "?query"                      parent URL minus one trailing "/"
      - "/path"                       scheme://authority of the parent
      - anything else                 parent URL up to and including its last "/"
                                      (a "/" is appended when there is none)

    Only the first "/" after the authority counts for root-relative references
    while path-relative ones cut at the last "/"; a query on the parent is not
    stripped first.
    """
    if starts_with_protocol(found):
        return AbsoluteLink("", found)

    if parent is None:
        raise ValueError(f"cannot resolve relative reference {found!r} without a parent")

    protocol, rest = _split_protocol(parent.url)

    if found.startswith("?"):
        if rest.endswith("/"):
            rest = rest[:-1]
        return AbsoluteLink(protocol + rest, found)

    if found.startswith("/"):
        slash = rest.find("/")
        if slash != -1:
            rest = rest[:slash]
        return AbsoluteLink(protocol + rest, found)

    slash = rest.rfind("/")
    if slash == -1:
        rest = rest + "/"
    else:
        rest = rest[:slash + 1]
    return AbsoluteLink(protocol + rest, found)
