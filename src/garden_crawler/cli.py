"""
Command-line interface for the crawler.
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from garden_crawler.config import CrawlerConfig
from garden_crawler.core import crawl
from garden_crawler.errors import ConfigError, TransportFailure
from garden_crawler.models import CrawlStats

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def print_summary(stats: CrawlStats) -> None:
    """Print crawl summary to stderr."""
    sys.stderr.write("=" * 50 + "\n")
    sys.stderr.write("CRAWL SUMMARY\n")
    sys.stderr.write("=" * 50 + "\n\n")

    sys.stderr.write(f"Pages fetched:          {stats.pages_fetched}\n")
    sys.stderr.write(f"List pages expanded:    {stats.lists_expanded}\n")
    sys.stderr.write(f"Links discovered:       {stats.links_discovered}\n")
    sys.stderr.write(f"Links queued:           {stats.links_enqueued}\n")
    sys.stderr.write(f"Duplicates skipped:     {stats.duplicates_skipped}\n")
    sys.stderr.write(f"Records saved:          {stats.records_saved}\n\n")

    if stats.failure_counts:
        sys.stderr.write("Failures by reason:\n")
        for reason, count in sorted(stats.failure_counts.items()):
            sys.stderr.write(f"  {reason}: {count}\n")
    else:
        sys.stderr.write("No failures encountered.\n")
    if stats.log_failures:
        sys.stderr.write(f"Failure log write errors: {stats.log_failures}\n")

    sys.stderr.write("\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Crawl a flower list page, extract each detail page and save the records."
    )
    parser.add_argument("start_url", nargs="?", help="Root link (default: $FEED)")
    parser.add_argument("--not-list", action="store_true", help="Treat the root link as a detail page")
    parser.add_argument("--base-url", help="Base URL detail links are resolved against")
    parser.add_argument("--detail-prefix", help="Href prefix of detail page links (default: scene)")
    parser.add_argument("--api-url", help="Record store endpoint (default: http://localhost:8080/flower)")
    parser.add_argument("--cache-dir", help="Directory for raw page copies (default: html)")
    parser.add_argument("--failure-log", help="Failure log file (default: log/link_failures.txt)")
    parser.add_argument("--delay-min", type=float, help="Minimum pause between fetches in seconds (default: 1)")
    parser.add_argument("--delay-max", type=float, help="Maximum pause between fetches in seconds (default: 10)")
    parser.add_argument("--timeout", type=float, dest="timeout_s", help="Request timeout in seconds (default: 15)")
    parser.add_argument("--user-agent", help="User-Agent header")
    parser.add_argument("--max-pages", type=int, help="Stop after fetching this many pages")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=os.environ.get("LOG_LEVEL", "INFO"),
        help="Logging level (default: $LOG_LEVEL or INFO)",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--summary", action="store_true", help="Print a summary when the crawl ends")
    return parser


# Command-line option -> environment variable read by CrawlerConfig.from_env
OPTION_ENV_VARS = {
    "base_url": "CRAWLER_BASE_URL",
    "detail_prefix": "CRAWLER_DETAIL_PREFIX",
    "api_url": "CRAWLER_API_URL",
    "cache_dir": "CRAWLER_CACHE_DIR",
    "failure_log": "CRAWLER_FAILURE_LOG",
    "delay_min": "CRAWLER_DELAY_MIN",
    "delay_max": "CRAWLER_DELAY_MAX",
    "timeout_s": "CRAWLER_TIMEOUT",
    "user_agent": "CRAWLER_USER_AGENT",
    "max_pages": "CRAWLER_MAX_PAGES",
}


def load_config(args: argparse.Namespace, environ: Optional[dict] = None) -> CrawlerConfig:
    """
    Merge command-line options over the environment configuration.

    Options are written into a copy of the environment first, so the
    combined settings are validated once.
    """
    env = dict(os.environ if environ is None else environ)
    if args.start_url:
        env["FEED"] = args.start_url
    if args.not_list:
        env["IS_NOT_LIST"] = "1"
    for name, var in OPTION_ENV_VARS.items():
        value = getattr(args, name)
        if value is not None:
            env[var] = str(value)
    return CrawlerConfig.from_env(env)


def configure_logging(level: str, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else level,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    # argparse does not check the $LOG_LEVEL default against choices
    if args.log_level not in LOG_LEVELS:
        parser.error(f"invalid log level {args.log_level!r} (choose from {', '.join(LOG_LEVELS)})")
    configure_logging(args.log_level, args.verbose)

    try:
        config = load_config(args)
    except ConfigError as e:
        parser.error(str(e))

    try:
        stats = crawl(config)
    except TransportFailure as e:
        logger.error("Crawl aborted: %s", e)
        return 1
    except KeyboardInterrupt:
        logger.warning("Crawl interrupted")
        return 130

    if args.summary:
        print_summary(stats)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
