# main.py
"""
Entry point for the harvester.
Wires up: parse args -> validate into Config -> run Crawler -> report results.
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

from harvester.config import UNLIMITED_DEPTH, Config, default_thread_count
from harvester.crawler import Crawler
from harvester.links import starts_with_protocol
from harvester.logger import setup_logger
from harvester.report import write_report

# Exit status for command line usage errors (sysexits.h EX_USAGE).
EX_USAGE = 64


class UsageParser(argparse.ArgumentParser):
    """ArgumentParser that reports errors with usage text and exit status 64."""

    def error(self, message):
        self.print_help(sys.stderr)
        self.exit(EX_USAGE, f"\nError: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    p = UsageParser(
        prog="harvester",
        description="Recursive crawler collecting links, email addresses and phone numbers.",
    )
    p.add_argument("-u", "--url", required=True, help="Seed URL (http:// or https://).")
    p.add_argument("-o", "--output", help="Append the report to this file instead of printing it.")
    p.add_argument("-t", "--threads", type=int, help="Number of worker threads (default: 2 x CPUs).")
    p.add_argument("-r", "--recursive", action="store_true",
                   help="Recursively follow newly found links.")
    p.add_argument("-d", "--depth", type=int,
                   help="Recursion depth limit (requires --recursive; unlimited if omitted).")
    p.add_argument("--cookies", help="Cookies separated by ';' e.g. cookie1;cookie2;cookie3")
    p.add_argument("--link", help="Custom regular expression to match links in text.")
    p.add_argument("--href", help="Custom regular expression to match href values.")
    p.add_argument("--email", help="Custom regular expression to match email addresses.")
    p.add_argument("--telephone", help="Custom regular expression to match telephone numbers.")
    p.add_argument("--log", default="logs/run.tsv", help="Path to the TSV crawl log.")
    p.add_argument("--timeout", type=float, default=0.5, help="Connect timeout per request, in seconds.")
    p.add_argument("--read-timeout", type=float, default=30.0,
                   help="Timeout for the response and each read of the body, in seconds (0 = no limit).")
    p.add_argument("-v", "--verbose", action="store_true", help="Log debug details.")
    return p


def build_config(args: argparse.Namespace) -> Config:
    """Validate parsed arguments. Raises ValueError with an operator-facing message."""
    if not starts_with_protocol(args.url):
        raise ValueError("Only http and https protocol are supported")

    if args.depth is not None and not args.recursive:
        raise ValueError("Specifying a depth has no effect without specifying --recursive")

    threads = default_thread_count() if args.threads is None else args.threads
    if threads < 1:
        raise ValueError("Number of threads must be equal to 1 or greater")

    if not args.recursive:
        depth = 1
    elif args.depth is None:
        depth = UNLIMITED_DEPTH
    else:
        depth = args.depth
        if depth < 1:
            raise ValueError("Depth must be at least 1 or greater")

    if args.timeout <= 0:
        raise ValueError("Timeout must be greater than 0")
    if args.read_timeout < 0:
        raise ValueError("Read timeout must not be negative")

    return Config().with_overrides(
        threads=threads,
        depth=depth,
        cookies=args.cookies,
        socket_timeout_sec=args.timeout,
        read_timeout_sec=args.read_timeout or None,
        link_regex=args.link,
        href_regex=args.href,
        email_regex=args.email,
        phone_regex=args.telephone,
        output_path=args.output,
        log_path=args.log or None,
    )


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    # 1) Validate
    try:
        cfg = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    setup_logger(level=logging.DEBUG if args.verbose else logging.INFO)

    # 2) Run; Ctrl-C asks the scheduler to wind down, results are still reported
    crawler = Crawler(cfg)
    signal.signal(signal.SIGINT, lambda signum, frame: crawler.cancel())
    result = None
    try:
        result = crawler.run(args.url)
    finally:
        crawler.close()
        if result is None:
            result = crawler.result()
        print(f"Duration: {int(result.elapsed_sec * 1000)} ms\n")
        write_report(result, cfg.output_path)


if __name__ == "__main__":
    main()
