"""
Link header parsing (RFC 8288).

``Link: <http://example.com/page2>; rel=next; title="Page 2"`` becomes
``{"next": {"href": "http://example.com/page2", "title": "Page 2"}}`` on
``response.links``.
"""

from __future__ import annotations

import re
from typing import Dict, Optional, Tuple

from ..models import Request, Response
from .base import Handler
from .headers import header_values

_QUOTED_STRING = r'"((?:[^"]|\\")*)"'
_TOKEN = r'([^,";]*)'
_LINK_PARAM = rf"(\w+)=(?:{_QUOTED_STRING}|{_TOKEN})"
_URI_REFERENCE = r"<([^>]*)>"
_LINK_VALUE = rf"{_URI_REFERENCE}((?:\s*;\s*{_LINK_PARAM})*)"
_LINK_HEADER = rf"(?:\s*({_LINK_VALUE})\s*,?\s*)"

LINK_PARAM = re.compile(_LINK_PARAM)
LINK_VALUE = re.compile(_LINK_VALUE)
LINK_HEADER = re.compile(_LINK_HEADER)


def read_link_params(params: str) -> Dict[str, str]:
    return {
        match.group(1): match.group(2) if match.group(2) is not None else match.group(3)
        for match in LINK_PARAM.finditer(params)
    }


def read_link_value(value: str) -> Optional[Tuple[str, Dict[str, str]]]:
    """Parse one link value into ``(rel, attributes)``."""
    match = LINK_VALUE.fullmatch(value.strip())
    if not match:
        return None
    params = read_link_params(match.group(2))
    rel = params.pop("rel", "")
    params["href"] = match.group(1)
    return rel, params


def read_link_headers(header: str) -> Dict[str, Dict[str, str]]:
    """Parse a Link header value holding one or more links."""
    links: Dict[str, Dict[str, str]] = {}
    for match in LINK_HEADER.finditer(header):
        parsed = read_link_value(match.group(1))
        if parsed is not None:
            rel, attrs = parsed
            links[rel] = attrs
    return links


def links_response(response: Response) -> Response:
    values = list(header_values(response.headers, "link"))
    if not values:
        return response
    links: Dict[str, Dict[str, str]] = {}
    for value in values:
        links.update(read_link_headers(value))
    return response.model_copy(update={"links": links})


def wrap_links(handler: Handler) -> Handler:
    """Middleware adding parsed Link headers as ``response.links``, keyed by rel."""

    async def links_handler(request: Request) -> Optional[Response]:
        response = await handler(request)
        if response is None:
            return response
        return links_response(response)

    return links_handler
