"""
Header shaping middleware.

Request headers may be given with Python-style names (``content_type``);
those are canonicalized into their HTTP form (``Content-Type``), while names
given with dashes keep their exact casing. Lookups are case-insensitive
throughout because header maps are ``CIMultiDict`` instances.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from multidict import CIMultiDict

from ..models import Request
from .base import request_middleware

SPECIAL_CASES = [
    "Content-MD5",
    "DNT",
    "ETag",
    "P3P",
    "TE",
    "WWW-Authenticate",
    "X-ATT-DeviceId",
    "X-UA-Compatible",
    "X-WebKit-CSP",
    "X-XSS-Protection",
]

_SPECIAL_CASES = {name.lower(): name for name in SPECIAL_CASES}


def canonicalize(name: str) -> str:
    """
    Canonical HTTP form of a header name.

    ``date`` -> ``Date``, ``foo_bar`` -> ``Foo-Bar``, ``content_md5`` ->
    ``Content-MD5``.
    """
    lowered = name.replace("_", "-").lower()
    if lowered in _SPECIAL_CASES:
        return _SPECIAL_CASES[lowered]
    return "-".join(part[:1].upper() + part[1:] for part in lowered.split("-"))


def header_map_request(request: Request) -> Request:
    """Convert the request headers into a header map with canonical names."""
    if not request.headers:
        return request
    headers: CIMultiDict = CIMultiDict()
    for name, value in request.headers.items():
        headers.add(canonicalize(name) if "_" in name else name, value)
    return request.model_copy(update={"headers": headers})


wrap_header_map = request_middleware(header_map_request)


def content_type_value(content_type: Optional[str]) -> Optional[str]:
    """Expand short names like ``json`` into ``application/json``."""
    if not content_type:
        return content_type
    return content_type if "/" in content_type else f"application/{content_type}"


def accept_encoding_value(accept_encoding: Any) -> str:
    if isinstance(accept_encoding, str):
        return accept_encoding
    return ", ".join(str(getattr(e, "value", e)) for e in accept_encoding)


def accept_request(request: Request) -> Request:
    """Turn the ``accept`` option into an Accept header."""
    if not request.accept:
        return request
    return request.with_header("Accept", content_type_value(request.accept)).model_copy(
        update={"accept": None}
    )


def accept_encoding_request(request: Request) -> Request:
    """Turn the ``accept_encoding`` option into an Accept-Encoding header."""
    if not request.accept_encoding:
        return request
    value = accept_encoding_value(request.accept_encoding)
    return request.with_header("Accept-Encoding", value).model_copy(
        update={"accept_encoding": None}
    )


def content_type_request(request: Request) -> Request:
    """
    Turn the ``content_type`` option into a Content-Type header, appending
    the body charset when one is known.
    """
    if not request.content_type:
        return request
    value = content_type_value(request.content_type)
    if request.character_encoding and "charset=" not in value.lower():
        value = f"{value}; charset={request.character_encoding}"
    return request.with_header("Content-Type", value)


wrap_accept = request_middleware(accept_request)
wrap_accept_encoding = request_middleware(accept_encoding_request)
wrap_content_type = request_middleware(content_type_request)


def header_values(headers: Any, name: str) -> Iterable[str]:
    """All values of ``name`` in ``headers``, in wire order."""
    if headers is None:
        return []
    if hasattr(headers, "getall"):
        return headers.getall(name, [])
    value = headers.get(name)
    if value is None:
        return []
    return value if isinstance(value, (list, tuple)) else [value]
