"""
Custom exception classes and error handling utilities.
"""

from typing import Optional, Dict, Any
import traceback


class LinkCrawlerError(Exception):
    """Base exception for all link crawler errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class CrawlerError(LinkCrawlerError):
    """Exception raised during crawling operations."""
    pass


class FetchError(CrawlerError):
    """Exception raised when a page cannot be fetched."""

    def __init__(self, message: str, address: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.address = address
        if address is not None:
            self.details.setdefault("address", address)


class CompletionError(CrawlerError):
    """Exception raised when crawl completion bookkeeping is inconsistent."""
    pass


class PoolClosedError(CrawlerError):
    """Exception raised when a task is submitted to a pool that has shut down."""
    pass


class ConfigurationError(LinkCrawlerError):
    """Exception raised for configuration-related issues."""
    pass


class ValidationError(LinkCrawlerError):
    """Exception raised for data validation failures."""
    pass


def handle_error(
    error: Exception,
    logger,
    context: Optional[Dict[str, Any]] = None,
    reraise: bool = True
) -> None:
    """
    Handle and log errors with context information.

    Args:
        error: The exception that occurred
        logger: Logger instance to use for logging
        context: Additional context information
        reraise: Whether to reraise the exception after logging
    """
    error_context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "traceback": traceback.format_exc(),
        **(context or {})
    }

    if isinstance(error, LinkCrawlerError):
        error_context.update(error.details)

    logger.error(f"Error occurred: {error_context['error_type']}: {error_context['error_message']}",
                 extra={"error_context": error_context})

    if reraise:
        raise error
