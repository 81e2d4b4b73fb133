"""Exceptions raised by the storefront server."""

from typing import Optional


class StorefrontError(Exception):
    """Base class for storefront errors."""


class ValidationError(StorefrontError):
    """Required input is missing or empty."""


class UpstreamFetchError(StorefrontError):
    """A remote service (catalog feed or inference backend) failed."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamTimeoutError(UpstreamFetchError, TimeoutError):
    """A remote service did not answer within the configured timeout."""


class ParseError(StorefrontError):
    """A remote document could not be parsed."""
