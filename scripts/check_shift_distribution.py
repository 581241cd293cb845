#!/usr/bin/env python3
"""
Count the `schedules` rows of a month per shift_type.

Usage:
    python scripts/check_shift_distribution.py [--year YEAR] [--month MONTH]

Examples:
    python scripts/check_shift_distribution.py
    python scripts/check_shift_distribution.py --year 2026 --month 2
"""
import argparse
import logging
import sys
from datetime import date

from settings.constants import LOG_LEVEL, TABLE_SCHEDULES
from utils.auth import service_headers
from utils.db import fetch_rows
from utils.errors import GestaoError
from utils.schedules import month_bounds, shift_distribution

logger = logging.getLogger("check_shift_distribution")


def main():
    today = date.today()
    parser = argparse.ArgumentParser(description="Shift type distribution for a month")
    parser.add_argument('--year', '-y', type=int, default=today.year)
    parser.add_argument('--month', '-m', type=int, default=today.month, choices=range(1, 13))
    args = parser.parse_args()

    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(message)s")

    start, end = month_bounds(args.year, args.month)
    print(f"Checking schedules from {start} to {end}")

    try:
        rows = fetch_rows(
            TABLE_SCHEDULES,
            {"schedule_date": [f"gte.{start}", f"lte.{end}"]},
            select="shift_type,employee_id",
            headers=service_headers(),
        )
    except GestaoError as e:
        logger.error("Failed: %s", e)
        return 1

    print(f"Total schedules found: {len(rows)}\n")
    print(f"{'Shift type':<14} {'Count':>6}")
    print(f"{'-'*21}")
    for shift, count in sorted(shift_distribution(rows).items(), key=lambda kv: -kv[1]):
        print(f"{shift:<14} {count:>6}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
