"""End-to-end crawls over an in-memory site, through the real scheduler."""

from __future__ import annotations

import pytest

from conftest import FakeTransport
from harvester.config import UNLIMITED_DEPTH, Config
from harvester.crawler import Crawler

SITE = {
    "https://example.com/": """
        <html><body>
        <a href="/about">About</a>
        <a href="blog/">Blog</a>
        <p>Contact us at test@example.com or call 555-123-4567.</p>
        </body></html>
    """,
    "https://example.com/about": """
        <p>Team lead: lead@example.com</p>
        <a href="/">Home</a>
        <a href="https://partner.org/">Partner</a>
    """,
    "https://example.com/blog/": """
        <a href="post-1.html">First</a>
        <a href="/about">About again</a>
    """,
    "https://example.com/blog/post-1.html": "Call 555.987.6543 today",
    "https://partner.org/": '<a href="/deep">deeper</a>',
    "https://partner.org/deep": "end",
}


def _crawl(depth, pages=SITE, threads=4, **overrides):
    cfg = Config().with_overrides(threads=threads, depth=depth, log_path=None,
                                  grace_period_sec=0.5, **overrides)
    transport = FakeTransport(pages)
    crawler = Crawler(cfg, transport=transport)
    try:
        result = crawler.run("https://example.com/")
    finally:
        crawler.close()
    return result, transport


class TestCrawl:
    def test_depth_one_crawls_only_the_seed(self) -> None:
        result, transport = _crawl(depth=1)
        assert result.exhausted is True
        assert transport.requested == ["https://example.com/"]
        assert result.links == ["https://example.com/about", "https://example.com/blog/"]
        assert result.emails == ["test@example.com"]
        assert result.phone_numbers == ["555-123-4567"]
        # The seed plus one depth-0 child per new link.
        assert result.tasks_registered == 3

    def test_depth_two_follows_one_level(self) -> None:
        result, transport = _crawl(depth=2)
        assert sorted(transport.requested) == [
            "https://example.com/",
            "https://example.com/about",
            "https://example.com/blog/",
        ]
        assert "lead@example.com" in result.emails
        assert "https://example.com/blog/post-1.html" in result.links
        assert "555.987.6543" not in result.phone_numbers

    def test_unlimited_depth_exhausts_the_site(self) -> None:
        result, transport = _crawl(depth=UNLIMITED_DEPTH)
        assert result.exhausted is True
        assert sorted(set(transport.requested)) == sorted(SITE)
        assert result.phone_numbers == ["555-123-4567", "555.987.6543"]
        assert result.emails == ["lead@example.com", "test@example.com"]
        assert "https://partner.org/deep" in result.links

    def test_each_link_is_fetched_once(self) -> None:
        _, transport = _crawl(depth=UNLIMITED_DEPTH, threads=8)
        # The seed itself is never in the link set; see the next test.
        others = [url for url in transport.requested if url != "https://example.com/"]
        assert len(others) == len(set(others))

    def test_same_url_with_different_split_is_fetched_twice(self) -> None:
        # Inherited: "/" relative to the about page and the absolute seed are two links.
        result, transport = _crawl(depth=UNLIMITED_DEPTH)
        assert transport.requested.count("https://example.com/") == 2
        assert result.links.count("https://example.com/") == 1

    def test_unreachable_pages_do_not_stop_the_crawl(self) -> None:
        pages = dict(SITE)
        del pages["https://example.com/about"]
        result, transport = _crawl(depth=UNLIMITED_DEPTH, pages=pages)
        assert result.exhausted is True
        assert "https://example.com/about" in transport.requested
        assert "lead@example.com" not in result.emails
        assert "https://example.com/blog/post-1.html" in result.links

    def test_unreachable_seed(self) -> None:
        result, _ = _crawl(depth=3, pages={})
        assert result.exhausted is True
        assert result.links == []
        assert result.tasks_registered == 1

    def test_custom_phone_pattern(self) -> None:
        result, _ = _crawl(depth=1, phone_regex=r"^\d{3}-\d{3}-\d{4}$")
        assert result.phone_numbers == ["555-123-4567"]

    def test_rejects_non_http_seed(self) -> None:
        crawler = Crawler(Config().with_overrides(threads=1, log_path=None), transport=FakeTransport({}))
        with pytest.raises(ValueError):
            crawler.run("ftp://example.com/")


class TestCrawlLogIntegration:
    def test_stats_rows_written(self, tmp_path) -> None:
        log_path = tmp_path / "run.tsv"
        cfg = Config().with_overrides(threads=2, depth=2, log_path=str(log_path))
        crawler = Crawler(cfg, transport=FakeTransport(SITE))
        try:
            crawler.run("https://example.com/")
        finally:
            crawler.close()

        stats = {}
        for line in log_path.read_text().splitlines():
            cols = line.split("\t")
            if cols[0] == "STAT":
                stats[cols[1]] = cols[2]
        assert stats["links"] == str(len(crawler.store.links()))
        assert stats["emails"] == "2"
        assert int(stats["tasks_registered"]) >= 3
