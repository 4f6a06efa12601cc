#!/usr/bin/env python3
"""
Utility to create dated mock log files.

Useful for trying out log_backup (e.g. with --dry-run) without waiting for
real logs to age. One file is written per day, walking back in time from
today, with the date rendered into the filename pattern.
"""
from __future__ import annotations

import argparse
import gzip
from datetime import date, timedelta
from pathlib import Path
from typing import Iterable

from log_backup import DATE_SHAPES


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create dated mock log files for exercising the log backup tool."
    )
    parser.add_argument(
        "--directory",
        type=Path,
        required=True,
        help="Directory where the mock log files should be placed.",
    )
    parser.add_argument(
        "--pattern",
        default="app-YYYYMMDD.log.gz",
        help="Filename pattern with a date token (default: app-YYYYMMDD.log.gz).",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=1,
        help="Number of log files to create (default: 1).",
    )
    parser.add_argument(
        "--step-days",
        type=int,
        default=1,
        help="Days between successive files (default: 1).",
    )
    parser.add_argument(
        "--start-days-ago",
        type=int,
        default=0,
        help="Age in days of the newest file (default: 0, i.e. today).",
    )
    parser.add_argument(
        "--lines",
        type=int,
        default=10,
        help="Number of log lines written to each file (default: 10).",
    )
    return parser.parse_args(argv)


def render_filename(pattern: str, day: date) -> str:
    for shape in DATE_SHAPES:
        if shape.token in pattern:
            return pattern.replace(shape.token, day.strftime(shape.date_format), 1)
    raise ValueError(f"Pattern {pattern} does not contain a date token.")


def make_mock_log(directory: Path, pattern: str, day: date, lines: int = 10) -> Path:
    log_path = directory / render_filename(pattern, day)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    content = "".join(
        f"{day.isoformat()} 00:00:{index % 60:02d} INFO mock log line {index}\n"
        for index in range(lines)
    ).encode("utf-8")

    if log_path.suffix == ".gz":
        with gzip.open(log_path, "wb") as handle:
            handle.write(content)
    else:
        log_path.write_bytes(content)
    return log_path


def main(argv: Iterable[str] | None = None, *, today: date | None = None) -> int:
    args = parse_args(argv)

    if args.count <= 0:
        print("Error: --count must be a positive integer.")
        return 2
    if args.step_days <= 0:
        print("Error: --step-days must be a positive integer.")
        return 2
    if args.start_days_ago < 0:
        print("Error: --start-days-ago must not be negative.")
        return 2

    directory = args.directory.resolve()
    day = (today or date.today()) - timedelta(days=args.start_days_ago)

    for _ in range(args.count):
        try:
            log_path = make_mock_log(directory, args.pattern, day, lines=args.lines)
        except ValueError as error:
            print(f"Error: {error}")
            return 2
        print(f"Created mock log: {log_path}")
        day -= timedelta(days=args.step_days)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
