"""
Core business exceptions for the rural data refresher.

This module defines a hierarchy of custom exceptions to allow for granular
error handling and clear separation of failure domains.
"""

from typing import Optional


class RuralDataError(Exception):
    """Base exception for all component-specific errors."""
    pass


# --- Configuration Errors ---

class ConfigurationError(RuralDataError):
    """Raised for errors related to application configuration."""
    pass


# --- Infrastructure Errors ---

class InfrastructureError(RuralDataError):
    """Base class for errors related to external systems (network, disk)."""
    pass


class NetworkError(InfrastructureError):
    """Raised on transport-level failures (connect, timeout, redirects)."""
    pass


class FetchError(InfrastructureError):
    """Raised when a download ends on a non-success HTTP status."""

    def __init__(self, status_code: int, url: str, reason: Optional[str] = None):
        self.status_code = status_code
        self.url = url
        message = f"HTTP {status_code} for {url}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


# --- Domain/Business Logic Errors ---

class DomainError(RuralDataError):
    """Base class for errors related to business logic failures."""
    pass


class ParseError(DomainError):
    """Raised when downloaded content is empty, malformed or yields no data."""
    pass


# --- Cache Errors ---

class CacheError(RuralDataError):
    """Base class for cache store failures."""
    pass


class CacheMissError(CacheError):
    """Raised when no readable cache entry exists for a source."""
    pass


class CacheCorruptError(CacheMissError):
    """
    Raised when a cache entry exists but cannot be deserialized.

    Subclasses CacheMissError: readers treat a corrupt entry as absent.
    """
    pass
