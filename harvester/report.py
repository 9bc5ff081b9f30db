# harvester/report.py
"""
End-of-run report: every collected item per category plus a count.

    Links:

    https://example.com/about
    ...

    Number of links found: 12

    ####...####
    ####...####
"""

from __future__ import annotations

import sys
from typing import Iterable, Optional, TextIO

BANNER = "#" * 84

CATEGORIES = (
    ("Links", "links"),
    ("Emails", "emails"),
    ("Phone numbers", "phone_numbers"),
)


def format_section(title: str, items: Iterable[str]) -> str:
    items = list(items)
    lines = [f"{title}:", ""]
    lines.extend(items)
    lines.append("")
    lines.append(f"Number of {title.lower()} found: {len(items)}")
    lines.append("")
    lines.append(BANNER)
    lines.append(BANNER)
    return "\n".join(lines) + "\n"


def format_report(result) -> str:
    return "\n".join(format_section(title, getattr(result, attr)) for title, attr in CATEGORIES)


def write_report(result, output_path: Optional[str] = None, stream: Optional[TextIO] = None) -> None:
    """Append the report to output_path, or print it to stream (stdout by default)."""
    text = format_report(result)
    if output_path:
        with open(output_path, "a", encoding="utf-8") as f:
            f.write(text)
        return
    (stream or sys.stdout).write(text)
