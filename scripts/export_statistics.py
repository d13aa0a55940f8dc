#!/usr/bin/env python3
"""
Export one season's player statistics to CSV.

Usage:
    python scripts/export_statistics.py --season 2025 [--out stats_2025.csv]
"""

import argparse
import logging
import sys
from pathlib import Path

from scorebook.stats.export import export_season_statistics

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description='Export season statistics to CSV')
    parser.add_argument('--season', required=True, help='Season year, e.g. 2025')
    parser.add_argument('--out', help='Output CSV path (default: statistics_<season>.csv)')
    parser.add_argument('--db', help='Database path (defaults to SCOREBOOK_DB_PATH)')

    args = parser.parse_args()

    out_path = Path(args.out or f"statistics_{args.season}.csv")
    written = export_season_statistics(args.season, out_path, Path(args.db) if args.db else None)

    return 0 if written else 1


if __name__ == "__main__":
    sys.exit(main())
