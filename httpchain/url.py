"""
URL parsing and rendering for the request pipeline.

This module turns absolute URL strings into the structured request target
(scheme, host, port, path, query string) used by the middleware and the
transport, and renders such a target back into a string for redirect
resolution.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional
from urllib.parse import quote, unquote, urljoin, urlsplit

from pydantic import BaseModel, Field

from .exceptions import MalformedUrlError

DEFAULT_PORTS: Dict[str, int] = {"http": 80, "https": 443}

# Anything outside the RFC 3986 unreserved/reserved set. '%' is kept so
# existing escapes are never encoded twice.
_ILLEGAL_CHARACTERS = re.compile(r"[^a-zA-Z0-9.\-_~!$&'()*+,;=:@/%?]")

_SCHEME = re.compile(r"^[a-z][a-z0-9+.\-]*$")


class URLParts(BaseModel):
    """Structured form of an absolute URL."""

    scheme: str = Field(description="Lower-cased URL scheme")
    host: str = Field(description="Host name or IP literal, IPv6 without brackets")
    port: Optional[int] = Field(default=None, description="Explicit non-default port")
    path: str = Field(default="/", description="Percent-encoded path")
    query_string: Optional[str] = Field(default=None, description="Raw query string")
    user_info: Optional[str] = Field(default=None, description="Decoded user-info")
    url: Optional[str] = Field(default=None, description="The URL as given")

    def as_update(self) -> Dict[str, Any]:
        """Fields to merge into a request, absent parts included as None."""
        return self.model_dump()


def url_encode_illegal_characters(path_or_query: Optional[str]) -> Optional[str]:
    """
    Percent-encode the characters that may not appear in a path or query.

    Space becomes ``%20`` rather than ``+`` to keep the result unambiguous.
    """
    if path_or_query is None:
        return None
    encoded = path_or_query.replace(" ", "%20")
    return _ILLEGAL_CHARACTERS.sub(lambda m: quote(m.group(0), safe=""), encoded)


def parse_url(url: str) -> URLParts:
    """
    Parse a URL string into its request-target parts.

    Args:
        url: Absolute URL, e.g. ``http://example.com:8080/foo?bar=bat``

    Returns:
        URLParts with the default port for the scheme omitted

    Raises:
        MalformedUrlError: If the URL has no scheme or host, or a bad port

    Example:
        ```python
        parse_url("http://example.com:8080/foo?bar=bat")
        # URLParts(scheme='http', host='example.com', port=8080,
        #          path='/foo', query_string='bar=bat', ...)
        ```
    """
    if not isinstance(url, str) or not url.strip():
        raise MalformedUrlError(f"Malformed URL: {url!r}", url=url)

    try:
        split = urlsplit(url.strip())
        port = split.port
    except ValueError as e:
        raise MalformedUrlError(f"Malformed URL: {url}: {e}", url=url) from e

    scheme = split.scheme.lower()
    if not scheme or not _SCHEME.match(scheme):
        raise MalformedUrlError(f"Malformed URL, no scheme: {url}", url=url)

    host = split.hostname
    if not split.netloc or not host:
        raise MalformedUrlError(f"Malformed URL, no host: {url}", url=url)

    if port is not None and port == DEFAULT_PORTS.get(scheme):
        port = None

    user_info = None
    if "@" in split.netloc:
        user_info = unquote(split.netloc.rpartition("@")[0]) or None

    return URLParts(
        scheme=scheme,
        host=host,
        port=port,
        path=url_encode_illegal_characters(split.path) or "/",
        query_string=url_encode_illegal_characters(split.query) or None,
        user_info=user_info,
        url=url,
    )


def render_url(parts: URLParts) -> str:
    """
    Render URL parts back into a string.

    No encoding is applied; parts are expected to be encoded already.
    """
    host = f"[{parts.host}]" if ":" in parts.host else parts.host
    netloc = f"{parts.user_info}@{host}" if parts.user_info else host
    if parts.port is not None:
        netloc = f"{netloc}:{parts.port}"
    query = f"?{parts.query_string}" if parts.query_string else ""
    return f"{parts.scheme}://{netloc}{parts.path}{query}"


def resolve_url(base: str, location: str) -> str:
    """Resolve a possibly relative ``Location`` header against ``base``."""
    return urljoin(base, location.strip())


def default_port(scheme: str) -> Optional[int]:
    return DEFAULT_PORTS.get(scheme.lower())
