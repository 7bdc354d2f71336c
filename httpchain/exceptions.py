"""
Exception taxonomy for the httpchain request pipeline.

This module provides the custom exceptions raised by the middleware chain and
the transport, plus utilities for converting aiohttp errors and classifying
which failures a caller may retry.
"""

from __future__ import annotations

import asyncio
import socket
from typing import TYPE_CHECKING, Any, Optional

import aiohttp

if TYPE_CHECKING:
    from .models import Response


class HttpChainError(Exception):
    """
    Base exception for all httpchain operations.

    Attributes:
        message: Human-readable error message
        url: URL that caused the error (if applicable)
        details: Additional error details as keyword arguments
    """

    def __init__(self, message: str, url: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message
        self.url = url
        self.details = kwargs


class InvalidArgumentError(HttpChainError):
    """Raised when a caller supplies an unusable argument (e.g. a missing URL)."""

    pass


class MalformedUrlError(HttpChainError):
    """Raised when a URL cannot be parsed into scheme, host and path."""

    pass


class UnsupportedBodyTypeError(HttpChainError):
    """Raised when a request body has a type input coercion does not know."""

    def __init__(self, message: str, body_type: Optional[type] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.body_type = body_type


class EncodingError(HttpChainError):
    """Raised for unknown charsets or text that cannot be encoded in one."""

    def __init__(self, message: str, charset: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.charset = charset


class DecompressionError(HttpChainError):
    """Raised when a gzip or deflate body has broken framing."""

    def __init__(self, message: str, encoding: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.encoding = encoding


class ParseError(HttpChainError):
    """Raised when a JSON or structured-literal body cannot be parsed."""

    def __init__(self, message: str, content_type: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.content_type = content_type


class TooManyRedirectsError(HttpChainError):
    """
    Raised when a redirect chain exceeds ``max_redirects``.

    Attributes:
        count: The redirect counter value at which the chain was abandoned
        response: The last redirect response received
    """

    def __init__(
        self,
        count: int,
        response: Optional["Response"] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(f"Too many redirects: {count}", url=url)
        self.count = count
        self.response = response


class HttpStatusError(HttpChainError):
    """
    Raised for responses whose status is not in the unexceptional set.

    The full response travels with the error so callers can build their own
    handling without re-issuing the request.
    """

    def __init__(
        self,
        message: str,
        response: "Response",
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message, url=url)
        self.response = response

    @property
    def status(self) -> int:
        return self.response.status

    @property
    def headers(self) -> Any:
        return self.response.headers

    @property
    def body(self) -> Any:
        return self.response.body


class AuthenticationError(HttpStatusError):
    """Raised for authentication-related statuses (401, 403)."""

    pass


class NotFoundError(HttpStatusError):
    """Raised when the resource is not found (404)."""

    pass


class RateLimitError(HttpStatusError):
    """Raised when rate limiting is encountered (429)."""

    def __init__(
        self,
        message: str,
        response: "Response",
        url: Optional[str] = None,
        retry_after: Optional[float] = None,
    ) -> None:
        super().__init__(message, response, url=url)
        self.retry_after = retry_after


class ServerError(HttpStatusError):
    """Raised for server errors (5xx)."""

    pass


# Transport errors


class TransportError(HttpChainError):
    """Base exception for failures inside the transport collaborator."""

    pass


class UnknownHostError(TransportError):
    """Raised when the target host name cannot be resolved."""

    pass


class RequestTimeoutError(TransportError):
    """
    Base class for timeouts raised by the transport.

    Attributes:
        timeout_value: The timeout value that was exceeded (in seconds)
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        timeout_value: Optional[float] = None,
    ) -> None:
        super().__init__(message, url)
        self.timeout_value = timeout_value


class ConnectTimeoutError(RequestTimeoutError):
    """Raised when establishing a connection times out."""

    pass


class SocketTimeoutError(RequestTimeoutError):
    """Raised when reading from an established connection times out."""

    pass


class ConnectionPoolTimeoutError(TransportError):
    """Raised when no pooled connection becomes available in time."""

    pass


PoolExhaustedError = ConnectionPoolTimeoutError


class ErrorHandler:
    """
    Utility class for handling and categorizing different types of errors.

    Provides methods to convert aiohttp exceptions to transport errors,
    build the right status error for a response and decide whether a caller
    may retry.
    """

    @staticmethod
    def handle_aiohttp_error(
        error: Exception, url: Optional[str] = None
    ) -> HttpChainError:
        """
        Convert aiohttp exceptions to TransportError subclasses.

        Args:
            error: The original aiohttp exception
            url: The URL that caused the error

        Returns:
            Appropriate TransportError subclass
        """
        if isinstance(error, HttpChainError):
            return error

        elif isinstance(error, aiohttp.ConnectionTimeoutError):
            return ConnectTimeoutError(f"Connect timed out: {error}", url=url)

        elif isinstance(error, (aiohttp.ServerTimeoutError, asyncio.TimeoutError)):
            return SocketTimeoutError(f"Read timed out: {error}", url=url)

        elif isinstance(error, aiohttp.ClientConnectorError):
            if isinstance(error.os_error, socket.gaierror):
                return UnknownHostError(f"Unknown host: {error}", url=url)
            return TransportError(f"Connector error: {error}", url=url)

        elif isinstance(error, aiohttp.ClientSSLError):
            return TransportError(f"SSL error: {error}", url=url)

        elif isinstance(error, aiohttp.ClientError):
            return TransportError(f"Transport error: {error}", url=url)

        else:
            return TransportError(f"Unexpected transport error: {error}", url=url)

    @staticmethod
    def handle_http_status_error(
        response: "Response",
        message: str,
        url: Optional[str] = None,
    ) -> HttpStatusError:
        """
        Create the HttpStatusError subclass that matches a response status.

        Args:
            response: The (already coerced) response
            message: Error message
            url: The URL that produced the response

        Returns:
            Appropriate HttpStatusError subclass
        """
        status_code = response.status

        if status_code in (401, 403):
            return AuthenticationError(message, response, url)

        elif status_code == 404:
            return NotFoundError(message, response, url)

        elif status_code == 429:
            retry_after = None
            retry_after_header = response.headers.get("retry-after")
            if retry_after_header:
                try:
                    retry_after = float(retry_after_header)
                except ValueError:
                    pass
            return RateLimitError(message, response, url, retry_after)

        elif 500 <= status_code < 600:
            return ServerError(message, response, url)

        else:
            return HttpStatusError(message, response, url)

    @staticmethod
    def is_retryable_error(error: Exception) -> bool:
        """
        Determine if an error is worth retrying by the caller.

        The pipeline itself never retries; this is advisory.

        Args:
            error: The exception to check

        Returns:
            True if the error may succeed on a later attempt, False otherwise
        """
        if isinstance(error, UnknownHostError):
            return False

        # Timeouts and pool exhaustion are transient
        if isinstance(error, (RequestTimeoutError, ConnectionPoolTimeoutError)):
            return True

        if isinstance(error, TransportError):
            return True

        if isinstance(error, (ServerError, RateLimitError)):
            return True

        if isinstance(error, HttpStatusError):
            return error.status in (408, 502, 503, 504)

        return False
