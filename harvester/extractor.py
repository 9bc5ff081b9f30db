# harvester/extractor.py
"""
Streaming extraction of links, emails and phone numbers from raw markup.

What this file does (at a glance)
---------------------------------
• tokenize() walks a text stream character by character and cuts it into
  "text" segments (between tags, whitespace collapsed) and "tag" segments
  (everything between "<" and ">"). No DOM is built.
• Extractor.parse_text() matches each word of a text segment against the
  link, email and phone-number patterns.
• Extractor.parse_attributes() runs a small key=value scanner over a tag and
  looks at href values only.
• Every hit goes into the shared ArtifactStore; links that were new to the
  store are handed back so the caller can schedule them.

The scanner is not an HTML attribute grammar: key="v", key='v'
and key=v are understood, and a quoted value without its closing quote ends
the scan of that tag.
"""

from __future__ import annotations

import re
from typing import Iterator, Optional, Set, TextIO, Tuple

from .links import AbsoluteLink, resolve
from .store import ArtifactStore

# ------------------------------ Default patterns ------------------------------

_UMLAUTS = "äüöÄÜÖ"

DEFAULT_LINK_REGEX = (
    r"https?://(www\.)?[-a-zA-Z" + _UMLAUTS + r"0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
    r"([-a-zA-Z" + _UMLAUTS + r"0-9()@:%_+.~#?&/=]*)"
)

# Absolute http(s) URLs, or relative references that do not open with a
# scheme ("mailto:", "javascript:", ...) and are not a bare "#fragment".
DEFAULT_HREF_REGEX = (
    r"^(?:https?://(?:www\.)?[-a-zA-Z" + _UMLAUTS + r"0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
    r"|(?![a-zA-Z][-a-zA-Z0-9+.]*:)(?!#)(?=\S))"
    r"[-a-zA-Z" + _UMLAUTS + r"0-9()@:%_+.~#?&/=;,!$*']*$"
)

# The optional leading "mailto:" is part of the match and is kept in the stored value.
DEFAULT_EMAIL_REGEX = (
    r"^(?:mailto:)?[a-zA-Z" + _UMLAUTS + r"0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z" + _UMLAUTS + r"0-9](?:[a-zA-Z" + _UMLAUTS + r"0-9-]{0,61}[a-zA-Z" + _UMLAUTS + r"0-9])?"
    r"(?:\.[a-zA-Z" + _UMLAUTS + r"0-9](?:[a-zA-Z" + _UMLAUTS + r"0-9-]{0,61}[a-zA-Z" + _UMLAUTS + r"0-9])?)*$"
)

DEFAULT_PHONE_REGEX = r"^[+]?[(]?[0-9]{3}[)]?[-\s.]?[0-9]{3}[-\s.]?[0-9]{4,6}$"

# Attribute names whose values may hold a link.
RELEVANT_KEYWORDS = frozenset({"href"})

# Sentence punctuation trimmed from the end of a word before matching.
_TRAILING_PUNCTUATION = ".,;:!?"

_WHITESPACE = " \n\t\r"
_QUOTES = "\"'"
_FIRST_TOKEN = re.compile(r"[^\s=]*")

TEXT = "text"
TAG = "tag"


def compile_pattern(custom: Optional[str], default: str) -> "re.Pattern[str]":
    """Compile the operator-supplied regex, or the default when it is None."""
    if custom is None:
        return re.compile(default)
    return re.compile(custom)


# --------------------------------- Tokenizer ----------------------------------

def tokenize(stream: TextIO, chunk_size: int = 4096) -> Iterator[Tuple[str, str]]:
    """
    Yield (TEXT, segment) and (TAG, attribute_text) pairs from a markup stream.

    Outside a tag, runs of space/newline/tab/CR become a single space. A text
    segment is emitted when "<" opens a tag and once more at end of stream; a
    tag segment is emitted on ">". An unterminated tag at end of stream is
    dropped.
    """
    inside = False
    text = []
    attributes = []
    previous_blank = False

    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        for ch in chunk:
            if ch == "<":
                if text:
                    yield TEXT, "".join(text)
                    text = []
                inside = True
            elif ch == ">":
                if attributes:
                    yield TAG, "".join(attributes)
                    attributes = []
                inside = False
            elif inside:
                attributes.append(ch)
            elif ch in _WHITESPACE:
                if not previous_blank:
                    text.append(" ")
                    previous_blank = True
            else:
                previous_blank = False
                text.append(ch)

    if text:
        yield TEXT, "".join(text)


def iter_attributes(text: str) -> Iterator[Tuple[str, str]]:
    """
    Yield (key, value) pairs from the raw text of one tag.

    Whitespace outside a value resets the key. After "=", a quote opens a value
    that runs to the same quote; otherwise the value runs to whitespace or ">".
    A quoted value that never closes stops the scan.
    """
    key = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in _WHITESPACE:
            key = []
            i += 1
            continue
        if ch != "=":
            key.append(ch)
            i += 1
            continue

        name = "".join(key)
        key = []
        i += 1
        if i < n and text[i] in _QUOTES:
            end = text.find(text[i], i + 1)
            if end == -1:
                return
            value = text[i + 1:end]
            i = end + 1
        else:
            start = i
            while i < n and text[i] not in _WHITESPACE and text[i] != ">":
                i += 1
            value = text[start:i]
        yield name, value


def is_base_tag(attributes: str) -> bool:
    """True if the tag's first token (up to whitespace or "=") names a <base> element."""
    return "base" in _FIRST_TOKEN.match(attributes).group().lower()


# --------------------------------- Extractor ----------------------------------

class Extractor:
    """
    Pattern matching over tokenized markup, feeding one shared ArtifactStore.

    Safe to share between threads: compiled patterns are read-only and all
    writes go through the store's lock.
    """

    def __init__(
        self,
        store: ArtifactStore,
        link_regex: Optional[str] = None,
        href_regex: Optional[str] = None,
        email_regex: Optional[str] = None,
        phone_regex: Optional[str] = None,
    ):
        self.store = store
        self.link_pattern = compile_pattern(link_regex, DEFAULT_LINK_REGEX)
        self.href_pattern = compile_pattern(href_regex, DEFAULT_HREF_REGEX)
        self.email_pattern = compile_pattern(email_regex, DEFAULT_EMAIL_REGEX)
        self.phone_pattern = compile_pattern(phone_regex, DEFAULT_PHONE_REGEX)

    @classmethod
    def from_config(cls, cfg, store: ArtifactStore) -> "Extractor":
        return cls(
            store,
            link_regex=cfg.link_regex,
            href_regex=cfg.href_regex,
            email_regex=cfg.email_regex,
            phone_regex=cfg.phone_regex,
        )

    def parse_text(self, line: str, parent: Optional[AbsoluteLink]) -> Set[AbsoluteLink]:
        """
        Match every word of a text segment; return links new to the store.

        Per word the link pattern is tried first, then email, then phone
        number; the first category that matches is the only one recorded.
        """
        found: Set[AbsoluteLink] = set()
        for word in line.split(" "):
            word = word.rstrip(_TRAILING_PUNCTUATION)
            if not word:
                continue

            m = self.link_pattern.search(word)
            if m:
                self._collect_link(m.group(), parent, found)
                continue

            m = self.email_pattern.search(word)
            if m:
                self.store.add_email(m.group())
                continue

            m = self.phone_pattern.search(word)
            if m:
                self.store.add_phone_number(m.group())
        return found

    def parse_attributes(self, attributes: str, parent: Optional[AbsoluteLink]) -> Set[AbsoluteLink]:
        """Scan one tag's attribute text; return links new to the store."""
        found: Set[AbsoluteLink] = set()
        for key, value in iter_attributes(attributes):
            if key.lower() not in RELEVANT_KEYWORDS:
                continue
            m = self.href_pattern.search(value)
            if m:
                self._collect_link(m.group(), parent, found)
                continue
            m = self.email_pattern.search(value)
            if m:
                self.store.add_email(m.group())
        return found

    @staticmethod
    def attribute_value(attributes: str, key: str) -> Optional[str]:
        """First value of `key` in the tag text, or None."""
        for name, value in iter_attributes(attributes):
            if name.lower() == key:
                return value
        return None

    def _collect_link(self, reference: str, parent: Optional[AbsoluteLink], found: Set[AbsoluteLink]) -> None:
        link = resolve(parent, reference)
        if self.store.add_link(link):
            found.add(link)
