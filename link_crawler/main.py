"""
Command-line entry point for the link crawler.
"""

import sys
import argparse
from dataclasses import asdict
from typing import List, Optional, TextIO

from link_crawler.config import COMPLETION_MODES, FETCHERS, LOG_LEVELS, ConfigManager, SystemConfig
from link_crawler.concurrent import Crawler
from link_crawler.crawlers import default_registry
from link_crawler.utils.logging import setup_logging, get_logger, log_operation
from link_crawler.utils.errors import ConfigurationError, CrawlerError, ValidationError, handle_error


logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="link-crawler",
        description="Recursively crawl pages from a seed address, fetching each page once."
    )
    parser.add_argument("seed", nargs="?", help="Seed address (default from configuration)")
    parser.add_argument("-d", "--depth", type=int, help="Maximum crawl depth")
    parser.add_argument("-m", "--mode", choices=COMPLETION_MODES, help="Completion detection strategy")
    parser.add_argument("-w", "--workers", type=int, help="Number of worker threads")
    parser.add_argument("-f", "--fetcher", choices=FETCHERS, help="Fetch implementation")
    parser.add_argument("-c", "--config", default="link_crawler.json", help="Path to JSON configuration file")
    parser.add_argument("--log-level", choices=LOG_LEVELS, help="Logging level")
    parser.add_argument("--summary", action="store_true", help="Print result counts to stderr")
    parser.add_argument("--save-config", metavar="PATH",
                        help="Write the effective configuration to PATH and exit without crawling")
    return parser


def apply_arguments(config: SystemConfig, args: argparse.Namespace) -> SystemConfig:
    """Override configuration values with command-line arguments."""
    if args.seed:
        config.crawl.seed_address = args.seed
    if args.depth is not None:
        config.crawl.max_depth = args.depth
    if args.mode:
        config.crawl.completion_mode = args.mode
    if args.workers is not None:
        config.crawl.max_workers = args.workers
    if args.fetcher:
        config.crawl.fetcher = args.fetcher
    if args.log_level:
        config.log_level = args.log_level
    config.crawl.validate()
    return config


@log_operation("crawl")
def run_crawl(config: SystemConfig, out: TextIO, summary: bool = False) -> int:
    """
    Crawl with the given configuration, writing one line per result.

    Returns:
        Process exit status
    """
    fetcher_config = asdict(config.http) if config.crawl.fetcher == "http" else None
    fetcher = default_registry.get_fetcher(config.crawl.fetcher, fetcher_config)
    crawler = Crawler(fetcher, config.crawl)

    try:
        report = None
        if summary:
            report = crawler.run()
            for result in report.results:
                out.write(result.format() + "\n")
        else:
            for result in crawler.crawl(config.crawl.seed_address, config.crawl.max_depth):
                out.write(result.format() + "\n")
                out.flush()
    finally:
        fetcher.close()

    if report is not None:
        counts = report.counts
        sys.stderr.write(
            f"found: {counts['found']}  already fetched: {counts['already_visited']}  "
            f"errors: {counts['error']}  total: {counts['total']}  "
            f"({report.execution_time:.2f}s)\n"
        )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    args = build_parser().parse_args(argv)

    manager = ConfigManager(args.config)
    try:
        config = apply_arguments(manager.load_config(), args)
        if args.save_config:
            manager.save_config(args.save_config)
            return 0
    except (ConfigurationError, ValidationError) as e:
        sys.stderr.write(f"Configuration error: {e.message}\n")
        for detail in e.details.get("errors", []):
            sys.stderr.write(f"  - {detail}\n")
        return 2

    setup_logging(config.log_level, config.log_file, config.log_retention_days)

    try:
        return run_crawl(config, sys.stdout, summary=args.summary)
    except CrawlerError as e:
        handle_error(e, logger, {"seed": config.crawl.seed_address}, reraise=False)
        return 1


if __name__ == "__main__":
    sys.exit(main())
