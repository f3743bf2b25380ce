"""
Logging Configuration Module

Provides consistent logging setup across all modules.

Usage:
    from auctionresults.logging_config import setup_logging, get_logger

    setup_logging()  # Call once at application startup
    logger = get_logger(__name__)
    logger.info("Scrape started")

    # Scraper code tags messages with the source being scraped
    run_logger = get_source_logger(__name__, "domain")
    run_logger.warning("Suburb page failed")  # "[domain] Suburb page failed"
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from auctionresults.config import get_config

PACKAGE_LOGGER = "auctionresults"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are far too chatty at INFO
NOISY_LIBRARIES = ("urllib3", "asyncio", "playwright", "httpx", "httpcore", "crawl4ai")

# Track if logging has been set up
_logging_configured = False


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    force: bool = False,
) -> None:
    """Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to config value or INFO.
        log_file: Path to log file. If None, logs to console only.
        force: Force reconfiguration even if already configured.
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    config = get_config()

    level = (level or config.logging.level).upper()
    numeric_level = getattr(logging, level, logging.INFO)

    if log_file is None:
        log_file = config.logging.log_file

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(numeric_level)
    package_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    package_logger.propagate = False

    for name in NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module name.

    Args:
        name: Module name (typically __name__)

    Returns:
        Configured logger instance.
    """
    if not _logging_configured:
        setup_logging()

    if not name.startswith(PACKAGE_LOGGER):
        name = f"{PACKAGE_LOGGER}.{name}"

    return logging.getLogger(name)


class SourceAdapter(logging.LoggerAdapter):
    """Prefixes every message with the scrape source, e.g. ``[rea]``."""

    def process(self, msg, kwargs):
        return f"[{self.extra['source']}] {msg}", kwargs


def get_source_logger(name: str, source: str) -> SourceAdapter:
    """Get a logger whose messages are tagged with a scrape source.

    Args:
        name: Module name (typically __name__)
        source: Source identifier ("domain" or "rea").
    """
    return SourceAdapter(get_logger(name), {"source": source})


def reset_logging() -> None:
    """Reset logging configuration (useful for testing)."""
    global _logging_configured
    _logging_configured = False

    logging.getLogger(PACKAGE_LOGGER).handlers.clear()
