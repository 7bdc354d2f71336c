"""
Utility helpers for httpchain: charset and compression codecs, and body
stream handling.
"""

from .encoding import (
    DEFAULT_CHARSET,
    base64_encode,
    check_charset,
    deflate,
    detect_charset,
    gunzip,
    gzip,
    inflate,
    parse_content_type,
    url_decode,
    url_encode,
    utf8_bytes,
    utf8_string,
)
from .streams import (
    ByteStream,
    BytesStream,
    DecompressingStream,
    ResponseStream,
    close_body,
    force_bytes,
    force_stream,
    force_string,
    is_stream,
)

__all__ = [
    "DEFAULT_CHARSET",
    "base64_encode",
    "check_charset",
    "deflate",
    "detect_charset",
    "gunzip",
    "gzip",
    "inflate",
    "parse_content_type",
    "url_decode",
    "url_encode",
    "utf8_bytes",
    "utf8_string",
    "ByteStream",
    "BytesStream",
    "DecompressingStream",
    "ResponseStream",
    "close_body",
    "force_bytes",
    "force_stream",
    "force_string",
    "is_stream",
]
