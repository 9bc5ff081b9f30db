# tools/analyze_log.py
"""
Tiny helper to compute simple stats from a harvester TSV crawl log.

Usage:
    python3 tools/analyze_log.py logs/run.tsv

Outputs:
    - pages fetched, ok vs. error
    - new links discovered (sum over pages)
    - average elapsed_ms
    - pages per depth
    - busiest workers
    - STAT rows written at the end of the run
"""

import sys
import csv
from collections import Counter


def analyze(path: str):
    total_pages = 0
    total_elapsed = 0
    new_links = 0
    statuses = Counter()
    depths = Counter()
    workers = Counter()
    stats = {}

    with open(path, "r", encoding="utf-8") as f:
        r = csv.reader(f, delimiter="\t")
        for row in r:
            if not row or row[0] == "timestamp":
                continue
            if row[0] == "STAT":
                if len(row) >= 3:
                    stats[row[1]] = row[2]
                continue
            # Expected columns:
            # 0: timestamp, 1: url, 2: depth, 3: status, 4: new_links, 5: elapsed_ms, 6: worker
            try:
                depth = int(row[2])
                status = row[3]
                found = int(row[4])
                elapsed_ms = int(row[5])
            except (IndexError, ValueError):
                continue

            total_pages += 1
            total_elapsed += max(elapsed_ms, 0)
            new_links += found
            statuses[status] += 1
            depths[depth] += 1
            if len(row) > 6:
                workers[row[6]] += 1

    avg_elapsed_ms = (total_elapsed / total_pages) if total_pages else 0

    print(f"File: {path}")
    print(f"Pages fetched: {total_pages}")
    for status, cnt in statuses.most_common():
        print(f"  {status}: {cnt}")
    print(f"New links discovered: {new_links}")
    print(f"Avg elapsed (ms): {avg_elapsed_ms:.2f}")
    print("Pages per depth (-1 = unlimited):")
    for depth in sorted(depths):
        print(f"  {depth}: {depths[depth]}")
    print("Top workers:")
    for name, cnt in workers.most_common(5):
        print(f"  {name}: {cnt}")
    if stats:
        print("Run stats:")
        for key, value in stats.items():
            print(f"  {key}: {value}")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python3 tools/analyze_log.py <path_to_tsv>", file=sys.stderr)
        sys.exit(2)
    analyze(sys.argv[1])
