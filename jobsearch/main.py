"""
Command-line entrypoint to run one search and print the ranked results.

This module wires up:
- Argument parsing (query, filters, deadline, which sources, logging destination).
- Structured logging configuration with a 'source' attribute on each record.
- One Aggregator call, printed as pipe-separated lines, best match first.

    python -m jobsearch.main "software engineer" --work-model remote --experience senior
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional, Sequence

from jobsearch.aggregator import Aggregator
from jobsearch.config import SOURCE_TABLE, Settings
from jobsearch.errors import InvalidInput
from jobsearch.models import ExperienceLevel, FilterSpec, Posting, WorkModel


class SourceField(logging.Filter):
    """
    Logging filter that guarantees a 'source' attribute on log records.

    This lets the formatter include '%(source)s' safely even for log
    messages emitted outside source adapters (e.g., third-party libs).
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "source"):
            record.source = ""
        return True


def configure_logging(logfile: Optional[str], suppress_console: bool) -> None:
    """
    Configure root logging with optional file/console handlers and a uniform format.

    Args:
        logfile: Path to a log file. If provided, logs are written here.
        suppress_console: If True, do not attach a console (stderr) handler.

    Raises:
        OSError: If the logfile cannot be opened/created by the FileHandler.
    """
    handlers: list[logging.Handler] = []
    if logfile:
        handlers.append(logging.FileHandler(logfile))
    if not suppress_console and not logfile:
        # With a log file we stay file-only so stdout carries just the results.
        handlers.append(logging.StreamHandler())
    if not handlers:
        handlers.append(logging.NullHandler())

    fmt = "%(asctime)s [%(levelname)s] %(source)s %(message)s"
    formatter = logging.Formatter(fmt)

    root = logging.getLogger()
    root.handlers = []
    root.setLevel(logging.INFO)

    filt = SourceField()
    for h in handlers:
        h.setFormatter(formatter)
        h.addFilter(filt)
        root.addHandler(h)

    # Quiet down verbose third-party libraries unless debugging.
    logging.getLogger("undetected_chromedriver").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("selenium").setLevel(logging.WARNING)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments.

    Args:
        argv: Optional sequence of raw CLI tokens. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(description="Search every job source and rank the results.")
    parser.add_argument("query", help='Search terms, e.g. "software engineer".')
    parser.add_argument(
        "--work-model",
        default="NoPreference",
        help="remote | hybrid | onsite | any (default: any).",
    )
    parser.add_argument("--city", default=None, help="City for the location filter.")
    parser.add_argument("--state", default=None, help="State for the location filter.")
    parser.add_argument(
        "--experience",
        default="NoPreference",
        help="junior | mid | senior | any (default: any).",
    )
    parser.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Global deadline in seconds (default: GLOBAL_DEADLINE_SECONDS or 75).",
    )
    parser.add_argument(
        "--sources",
        nargs="*",
        choices=[c.source_id for c in SOURCE_TABLE],
        help="Restrict the search to these sources. If omitted, all will run.",
    )
    parser.add_argument(
        "--logfile",
        type=str,
        default=None,
        help="Path to log file (default: log to the console).",
    )
    parser.add_argument(
        "--suppress",
        action="store_true",
        help="Suppress console logging.",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Print the per-source metrics snapshot as JSON after the results.",
    )
    return parser.parse_args(argv)


def format_row(p: Posting) -> str:
    return " | ".join(
        [
            str(p.composite),
            str(p.relevance),
            str(p.reputability),
            p.source,
            p.title,
            p.company,
            p.location,
            p.url,
        ]
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Program entrypoint: configure logging, parse args, and run one search.

    Returns:
        Process exit code (0 on success, 2 on invalid input).
    """
    args = parse_args(argv)
    configure_logging(args.logfile, args.suppress)

    try:
        filters = FilterSpec.create(
            args.query,
            work_model=args.work_model or WorkModel.NoPreference,
            city=args.city,
            state=args.state,
            experience_level=args.experience or ExperienceLevel.NoPreference,
        )
    except InvalidInput as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    settings = Settings.from_env()
    if args.deadline is not None:
        settings = replace(settings, global_deadline_seconds=args.deadline)

    sources = SOURCE_TABLE
    if args.sources:
        sources = tuple(c for c in SOURCE_TABLE if c.source_id in set(args.sources))

    aggregator = Aggregator(settings=settings, sources=sources)
    results: List[Posting] = aggregator.search(filters)

    for p in results:
        print(format_row(p))
    print(f"{len(results)} results", file=sys.stderr)
    if args.metrics:
        print(aggregator.metrics.to_json())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
