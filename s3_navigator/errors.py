from __future__ import annotations
"""Exceptions raised while signing, fetching and shaping S3 resources."""


class S3NavigatorError(Exception):
    """Base class for every error surfaced by :func:`fetch_resource`."""


class UnrecognizedHostError(S3NavigatorError, ValueError):
    """Raised when a URL does not point at an Amazon S3 endpoint."""

    def __init__(self, host: str):
        super().__init__(f"unrecognized URL: {host!r} is not an Amazon S3 host")
        self.host = host


class AuthenticationError(S3NavigatorError):
    """Raised when credentials are unavailable or rejected by S3."""


class TransportError(S3NavigatorError):
    """Raised when the HTTP request fails or returns a non-success status."""

    def __init__(self, message: str, *, status: int | None = None, url: str | None = None):
        super().__init__(message)
        self.status = status
        self.url = url


class ShapeMismatchError(S3NavigatorError):
    """Raised when a response body does not have the expected listing shape."""
