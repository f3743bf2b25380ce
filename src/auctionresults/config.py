"""
Centralized Configuration Module

Provides configuration classes and environment variable loading for all components.

Usage:
    from auctionresults.config import get_config

    config = get_config()
    db_path = config.database.path
    concurrency = config.scraper.max_concurrency
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _get_project_root() -> Path:
    """Get the project root directory."""
    # config.py -> auctionresults -> src -> project_root
    current = Path(__file__).resolve()
    return current.parent.parent.parent


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class DatabaseConfig:
    """Database configuration."""

    path: str = field(default_factory=lambda: os.getenv(
        "AUCTIONRESULTS_DB_PATH",
        str(_get_project_root() / "auction_results.db")
    ))

    def __post_init__(self):
        # Resolve relative paths
        if not os.path.isabs(self.path):
            self.path = str(_get_project_root() / self.path)


@dataclass
class APIConfig:
    """API server configuration."""

    host: str = field(default_factory=lambda: os.getenv(
        "AUCTIONRESULTS_API_HOST", "127.0.0.1"
    ))
    port: int = field(default_factory=lambda: int(os.getenv(
        "AUCTIONRESULTS_API_PORT", "5000"
    )))
    debug: bool = field(default_factory=lambda: _env_bool(
        "AUCTIONRESULTS_DEBUG", "false"
    ))
    api_secret: Optional[str] = field(default_factory=lambda: os.getenv(
        "AUCTIONRESULTS_API_SECRET"
    ))
    environment: str = field(default_factory=lambda: os.getenv(
        "AUCTIONRESULTS_ENV", "development"
    ).lower())

    @property
    def require_auth(self) -> bool:
        """Bearer-token checks are only enforced in production."""
        return self.environment == "production"


@dataclass
class ScraperConfig:
    """Scraper configuration.

    Delays and timeouts are in seconds.
    """

    max_concurrency: int = field(default_factory=lambda: int(os.getenv(
        "AUCTIONRESULTS_MAX_CONCURRENCY", "3"
    )))
    retry_attempts: int = field(default_factory=lambda: int(os.getenv(
        "AUCTIONRESULTS_RETRY_ATTEMPTS", "3"
    )))
    retry_delay: float = field(default_factory=lambda: float(os.getenv(
        "AUCTIONRESULTS_RETRY_DELAY", "2"
    )))
    timeout: float = field(default_factory=lambda: float(os.getenv(
        "AUCTIONRESULTS_TIMEOUT", "30"
    )))
    max_suburbs_per_city: int = field(default_factory=lambda: int(os.getenv(
        "AUCTIONRESULTS_MAX_SUBURBS_PER_CITY", "10"
    )))
    max_pages: int = field(default_factory=lambda: int(os.getenv(
        "AUCTIONRESULTS_MAX_PAGES", "3"
    )))
    suburb_delay: float = field(default_factory=lambda: float(os.getenv(
        "AUCTIONRESULTS_SUBURB_DELAY", "1"
    )))
    settle_delay: float = field(default_factory=lambda: float(os.getenv(
        "AUCTIONRESULTS_SETTLE_DELAY", "2"
    )))
    challenge_backoff: float = field(default_factory=lambda: float(os.getenv(
        "AUCTIONRESULTS_CHALLENGE_BACKOFF", "30"
    )))
    batch_size: int = field(default_factory=lambda: int(os.getenv(
        "AUCTIONRESULTS_BATCH_SIZE", "100"
    )))
    headless: bool = field(default_factory=lambda: _env_bool(
        "AUCTIONRESULTS_HEADLESS", "true"
    ))
    user_agent: str = field(default_factory=lambda: os.getenv(
        "AUCTIONRESULTS_USER_AGENT", DEFAULT_USER_AGENT
    ))
    # "browser" (crawl4ai) or "http" (httpx)
    navigator: str = field(default_factory=lambda: os.getenv(
        "AUCTIONRESULTS_NAVIGATOR", "browser"
    ).lower())

    def __post_init__(self):
        # A zero or negative concurrency would deadlock the page queue
        self.max_concurrency = max(1, self.max_concurrency)
        self.retry_attempts = max(1, self.retry_attempts)
        self.batch_size = max(1, self.batch_size)
        self.max_pages = max(1, self.max_pages)

    @property
    def timeout_ms(self) -> int:
        """Navigation timeout in milliseconds, as the browser expects it."""
        return int(self.timeout * 1000)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: os.getenv(
        "AUCTIONRESULTS_LOG_LEVEL", "INFO"
    ).upper())
    log_file: Optional[str] = field(default_factory=lambda: os.getenv(
        "AUCTIONRESULTS_LOG_FILE"
    ))

    def __post_init__(self):
        # Validate log level
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.level not in valid_levels:
            self.level = "INFO"


@dataclass
class Config:
    """Main configuration container."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    api: APIConfig = field(default_factory=APIConfig)
    scraper: ScraperConfig = field(default_factory=ScraperConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Singleton instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config: The application configuration.
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the configuration (useful for testing)."""
    global _config
    _config = None
