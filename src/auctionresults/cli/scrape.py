#!/usr/bin/env python
"""
CLI for running the auction results scrapers.

Usage:
    python -m auctionresults.cli.scrape
    python -m auctionresults.cli.scrape domain --date 2024-06-15
    python -m auctionresults.cli.scrape rea --navigator http --max-suburbs 5
"""

import argparse
import asyncio
import json
import sys

from auctionresults.config import get_config
from auctionresults.exceptions import AuctionResultsError
from auctionresults.logging_config import setup_logging, get_logger
from auctionresults.utils.date_parser import parse_iso_date


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Scrape Australian auction results into the local database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m auctionresults.cli.scrape
    python -m auctionresults.cli.scrape domain --date 2024-06-15
    python -m auctionresults.cli.scrape domain --url https://www.domain.com.au/auction-results/sydney/castle-hill-nsw-2154
    python -m auctionresults.cli.scrape all --concurrency 2 --json
        """,
    )
    parser.add_argument(
        "source",
        nargs="?",
        choices=["domain", "rea", "all"],
        default="all",
        help="Source to scrape (default: all)",
    )
    parser.add_argument(
        "--date",
        type=str,
        default=None,
        help="Auction date recorded on results, YYYY-MM-DD (default: today)",
    )
    parser.add_argument(
        "--url",
        type=str,
        default=None,
        help="Scrape a single suburb results page instead of every region",
    )
    parser.add_argument(
        "--navigator",
        choices=["browser", "http"],
        default=None,
        help="Page loader: headless browser or plain HTTP (default: from config)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Regions scraped at once (default: from config or 3)",
    )
    parser.add_argument(
        "--max-suburbs",
        type=int,
        default=None,
        help="Suburbs scraped per region (default: from config or 10)",
    )
    parser.add_argument(
        "--db-path",
        type=str,
        default=None,
        help="Path to database (default: from config)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print run logs as JSON",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set log level",
    )
    return parser


def main(argv=None) -> int:
    """Main entry point for the scraper CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, force=True)
    logger = get_logger(__name__)

    if args.url and args.source == "all":
        parser.error("--url needs a single source (domain or rea)")

    try:
        auction_date = parse_iso_date(args.date, "date")
    except AuctionResultsError as e:
        parser.error(e.message)

    config = get_config()
    if args.db_path:
        config.database.path = args.db_path
    if args.navigator:
        config.scraper.navigator = args.navigator
    if args.concurrency:
        config.scraper.max_concurrency = max(1, args.concurrency)
    if args.max_suburbs:
        config.scraper.max_suburbs_per_city = max(1, args.max_suburbs)

    from auctionresults.scraper.service import ScraperService

    service = ScraperService(config=config)

    try:
        if args.url:
            logs = [asyncio.run(service.run_source(args.source, auction_date, url=args.url))]
        else:
            logs = asyncio.run(service.run(args.source, auction_date))
    except KeyboardInterrupt:
        logger.info("Scrape interrupted by user")
        return 130
    except AuctionResultsError as e:
        logger.error("Scrape failed: %s", e)
        return 1

    if args.json:
        print(json.dumps([log.to_dict() for log in logs], indent=2))
    else:
        for log in logs:
            duration = (log.end_time - log.start_time).total_seconds()
            logger.info("%s: %s, %d records in %.1fs",
                        log.source, log.status, log.record_count, duration)
            if log.error_log:
                logger.info("%s errors:\n%s", log.source, log.error_log)

    return 0 if all(log.succeeded for log in logs) else 1


if __name__ == "__main__":
    sys.exit(main())
