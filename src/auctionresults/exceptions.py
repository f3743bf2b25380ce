"""
Custom Exceptions for the Auction Results Tracker

Provides a hierarchy of exceptions for standardized error handling across all modules.

Exception Hierarchy:
    AuctionResultsError (base)
    ├── ConfigurationError
    ├── DatabaseError
    │   └── DatabaseConnectionError
    ├── ScraperError
    │   ├── NetworkError
    │   ├── ElementNotFoundError
    │   └── RetryExhaustedError
    └── ValidationError

Whether a scraper error is retried depends on its message, not its class
(see ``auctionresults.scraper.retry``). ElementNotFoundError and transient
NetworkErrors carry messages inside the retryable set; client-side HTTP
errors do not.
"""


class AuctionResultsError(Exception):
    """Base exception for all auction results errors."""

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


# Configuration Errors
class ConfigurationError(AuctionResultsError):
    """Raised when there's a configuration problem."""

    pass


# Database Errors
class DatabaseError(AuctionResultsError):
    """Base exception for database-related errors."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when unable to connect to the database."""

    pass


# Scraper Errors
class ScraperError(AuctionResultsError):
    """Base exception for scraper-related errors."""

    pass


class NetworkError(ScraperError):
    """Raised when a page fetch or navigation fails."""

    def __init__(self, message: str, url: str = None, status_code: int = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class ElementNotFoundError(ScraperError):
    """Raised when an expected element never appears on a loaded page."""

    def __init__(self, selector: str, url: str = None):
        self.selector = selector
        self.url = url
        super().__init__(f"Element not found: {selector}")


class RetryExhaustedError(ScraperError):
    """Raised when a retryable operation keeps failing."""

    def __init__(self, operation: str, attempts: int):
        self.operation = operation
        self.attempts = attempts
        super().__init__(f"{operation} failed after {attempts} attempts")


# Validation Errors
class ValidationError(AuctionResultsError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str = None, value=None):
        self.field = field
        self.value = value
        super().__init__(message)
