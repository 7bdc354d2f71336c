"""
Byte, string and compression helpers.

Every function here is pure: it works on in-memory values and never touches
external resources.
"""

from __future__ import annotations

import base64
import codecs
import gzip as _gzip
import re
import zlib
from typing import Dict, Optional, Tuple
from urllib.parse import quote_plus, unquote_plus

from ..exceptions import DecompressionError, EncodingError

DEFAULT_CHARSET = "UTF-8"

_CHARSET = re.compile(r"charset\s*=\s*([^\s;]+)", re.IGNORECASE)
_MEDIA_TYPE = re.compile(r"\s*(([^/\s]+)/([^ ;]+))\s*(\s*;.*)?", re.DOTALL)


def check_charset(charset: str) -> str:
    """
    Validate a charset name.

    Raises:
        EncodingError: If Python has no codec for the charset
    """
    try:
        codecs.lookup(charset)
    except (LookupError, TypeError) as e:
        raise EncodingError(f"Unsupported charset: {charset}", charset=charset) from e
    return charset


def utf8_bytes(s: str, encoding: Optional[str] = None) -> bytes:
    """Encode ``s`` in ``encoding`` (UTF-8 by default)."""
    charset = check_charset(encoding or DEFAULT_CHARSET)
    try:
        return s.encode(charset)
    except UnicodeEncodeError as e:
        raise EncodingError(
            f"Cannot encode text as {charset}: {e}", charset=charset
        ) from e


def utf8_string(b: bytes, encoding: Optional[str] = None) -> str:
    """Decode ``b`` in ``encoding`` (UTF-8 by default), replacing bad bytes."""
    charset = check_charset(encoding or DEFAULT_CHARSET)
    return bytes(b).decode(charset, errors="replace")


def url_encode(s: str, encoding: Optional[str] = None) -> str:
    """Percent-encode ``s`` following form-urlencoded rules (space becomes +)."""
    charset = check_charset(encoding or DEFAULT_CHARSET)
    return quote_plus(s, safe="*", encoding=charset)


def url_decode(s: str, encoding: Optional[str] = None) -> str:
    """Inverse of :func:`url_encode`."""
    charset = check_charset(encoding or DEFAULT_CHARSET)
    return unquote_plus(s, encoding=charset)


def base64_encode(data: bytes) -> str:
    """Standard Base64 without line wrapping."""
    return base64.b64encode(data).decode("ascii")


def gzip(data: bytes) -> bytes:
    """Return a gzip'd copy of ``data``."""
    return _gzip.compress(data)


def gunzip(data: bytes) -> bytes:
    """
    Return the gunzip'd content of ``data``.

    Raises:
        DecompressionError: If the gzip framing is malformed or truncated
    """
    try:
        return _gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise DecompressionError(f"Malformed gzip body: {e}", encoding="gzip") from e


def deflate(data: bytes) -> bytes:
    """Return the zlib deflate'd form of ``data``."""
    return zlib.compress(data)


def inflate(data: bytes) -> bytes:
    """
    Return the inflated content of a deflate body.

    Servers disagree on whether "deflate" means a zlib stream or raw deflate
    data, so the zlib form is tried first and raw deflate second.

    Raises:
        DecompressionError: If neither form decodes
    """
    try:
        return zlib.decompress(data)
    except zlib.error:
        pass
    try:
        return zlib.decompress(data, -zlib.MAX_WBITS)
    except zlib.error as e:
        raise DecompressionError(
            f"Malformed deflate body: {e}", encoding="deflate"
        ) from e


def parse_content_type(header: Optional[str]) -> Tuple[Optional[str], Dict[str, str]]:
    """
    Parse ``header`` as an RFC 2616 media type.

    Returns:
        ``(mime_type, params)``; mime type lower-cased, parameter names
        lower-cased and surrounding quotes removed from values. ``(None, {})``
        when the header is missing or not a media type.
    """
    if not header:
        return None, {}
    match = _MEDIA_TYPE.fullmatch(header)
    if not match:
        return None, {}

    params: Dict[str, str] = {}
    for part in (match.group(4) or "").split(";"):
        name, sep, value = part.strip().partition("=")
        if not sep or not name:
            continue
        params[name.strip().lower()] = value.strip().strip('"')
    return match.group(1).lower(), params


def detect_charset(content_type: Optional[str]) -> str:
    """Charset named in a Content-Type value, UTF-8 when absent."""
    if content_type:
        found = _CHARSET.search(content_type)
        if found:
            return found.group(1).strip('"')
    return DEFAULT_CHARSET
