# tools/smoke.py
"""
Zero-network smoke checks to make sure the project is wired correctly.

What it does:
  1) Imports all modules (fails fast if paths/packaging are broken).
  2) Builds a Config with overrides and prints key fields.
  3) Sanity-checks link resolution.
  4) Crawls a two-page in-memory site through the full scheduler.

What it does NOT do:
  - No network calls. Keep it safe/offline.

Usage:
    python3 tools/smoke.py
"""

import io

from harvester.config import Config
from harvester.crawler import Crawler
from harvester.links import AbsoluteLink, resolve


PAGES = {
    "https://www.example.com/start": """
    <html><body>
      <a href="/about">About</a>
      <a href="mailto:hr@example.com">Email</a>
      Call 555-123-4567 or write to team@example.com.
    </body></html>
    """,
    "https://www.example.com/about": "<p>Nothing else here.</p>",
}


class DictTransport:
    def fetch(self, url):
        return io.StringIO(PAGES.get(url, ""))


def check_imports_and_config():
    print("[1] Imports OK")
    cfg = Config().with_overrides(threads=2, depth=2, log_path=None, grace_period_sec=0.2)
    print("[2] Config OK")
    print(f"    UA={cfg.user_agent}")
    print(f"    threads={cfg.threads}, depth={cfg.depth}, timeout={cfg.socket_timeout_sec}")
    return cfg


def check_resolution():
    print("[3] Link resolution sanity")
    parent = AbsoluteLink("", "https://a.com/x/y")
    for ref, expected in [
        ("/z", "https://a.com/z"),
        ("z", "https://a.com/x/z"),
        ("https://b.com/", "https://b.com/"),
    ]:
        got = resolve(parent, ref).url
        print(f"    {ref!r:20} -> {got}")
        assert got == expected, (ref, got)
    assert resolve(AbsoluteLink("", "https://a.com/x/"), "?q=1").url == "https://a.com/x?q=1"


def check_crawl(cfg):
    print("[4] In-memory crawl")
    c = Crawler(cfg, transport=DictTransport())
    try:
        result = c.run("https://www.example.com/start")
    finally:
        c.close()
    print(f"    links={result.links}")
    print(f"    emails={result.emails}")
    print(f"    phones={result.phone_numbers}")
    assert result.exhausted
    assert "https://www.example.com/about" in result.links
    assert "team@example.com" in result.emails
    assert "555-123-4567" in result.phone_numbers


def main():
    cfg = check_imports_and_config()
    check_resolution()
    check_crawl(cfg)
    print("\nSmoke tests passed. If this works, your project structure is sane.")


if __name__ == "__main__":
    main()
