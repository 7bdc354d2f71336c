"""
Smaller request/response middleware: timing, method and URL normalization,
unknown-host suppression and header sniffing from HTML bodies.
"""

from __future__ import annotations

import logging
import time
from typing import Dict, Optional

from bs4 import BeautifulSoup

from ..exceptions import UnknownHostError
from ..models import Request, Response
from ..url import parse_url
from ..utils.encoding import detect_charset
from ..utils.streams import force_bytes
from .base import Handler, request_middleware

logger = logging.getLogger(__name__)


def wrap_request_timing(handler: Handler) -> Handler:
    """Middleware recording the round trip in milliseconds as ``response.request_time``."""

    async def request_timing_handler(request: Request) -> Optional[Response]:
        start = time.monotonic()
        response = await handler(request)
        if response is None:
            return response
        elapsed = (time.monotonic() - start) * 1000
        return response.model_copy(update={"request_time": elapsed})

    return request_timing_handler


def method_request(request: Request) -> Request:
    """Upper-case the request method."""
    method = request.method.upper()
    if method == request.method:
        return request
    return request.model_copy(update={"method": method})


def url_request(request: Request) -> Request:
    """Merge the parsed ``url`` into the structured request fields."""
    if not request.url:
        return request
    return request.model_copy(update=parse_url(request.url).as_update())


wrap_method = request_middleware(method_request)
wrap_url = request_middleware(url_request)


def wrap_unknown_host(handler: Handler) -> Handler:
    """
    Middleware returning None instead of raising UnknownHostError when the
    request sets ``ignore_unknown_host``.
    """

    async def unknown_host_handler(request: Request) -> Optional[Response]:
        try:
            return await handler(request)
        except UnknownHostError as e:
            if not request.ignore_unknown_host:
                raise
            logger.debug(f"Ignoring unknown host: {e}")
            return None

    return unknown_host_handler


def get_headers_from_body(html: bytes, charset: Optional[str] = None) -> Dict[str, str]:
    """
    Headers declared in an HTML document's meta tags.

    ``<meta http-equiv="...">`` tags map to lower-cased header names and an
    HTML5 ``<meta charset="...">`` becomes a ``content-type`` header.
    """
    soup = BeautifulSoup(html, "html.parser", from_encoding=charset)
    metas = (soup.head or soup).find_all("meta")

    headers: Dict[str, str] = {}
    for meta in metas:
        http_equiv = meta.get("http-equiv")
        if http_equiv and meta.get("content") is not None:
            headers[http_equiv.lower()] = meta["content"]

    charsets = [meta["charset"] for meta in metas if meta.get("charset")]
    if charsets:
        headers["content-type"] = f"text/html; charset={charsets[0]}"
    return headers


async def additional_header_parsing_response(
    request: Request, response: Response
) -> Response:
    if not request.decode_body_headers or response.body is None:
        return response

    content_type = response.headers.get("content-type") or ""
    if content_type.strip() and not content_type.startswith("text"):
        return response

    body = await force_bytes(response.body)
    charset = detect_charset(content_type) if content_type else None
    additional = get_headers_from_body(body, charset)
    if not additional:
        return response.model_copy(update={"body": body})

    headers = response.headers.copy()
    for name, value in additional.items():
        headers[name] = value
    return response.model_copy(update={"headers": headers, "body": body})


def wrap_additional_header_parsing(handler: Handler) -> Handler:
    """
    Middleware adding headers found in the body of an HTML page.

    Only active with ``decode_body_headers``, and only for responses whose
    content type is blank or ``text/*``.
    """

    async def additional_header_parsing_handler(request: Request) -> Optional[Response]:
        response = await handler(request)
        if response is None:
            return response
        return await additional_header_parsing_response(request, response)

    return additional_header_parsing_handler
