"""
Response decompression middleware.

Advertises gzip and deflate support on the way out and decodes the body on
the way back. Buffered bodies are decompressed at once; streamed bodies are
wrapped so they decompress while being read.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from ..models import Request, Response
from ..utils.encoding import gunzip, inflate
from ..utils.streams import DecompressingStream, force_bytes, is_stream
from .base import Handler

logger = logging.getLogger(__name__)

ACCEPTED_ENCODINGS = "gzip, deflate"

_DECOMPRESSORS: Dict[str, Callable[[bytes], bytes]] = {
    "gzip": gunzip,
    "deflate": inflate,
}


def decompression_request(request: Request) -> Request:
    """Append ``gzip, deflate`` to Accept-Encoding unless ``decompress_body`` is False."""
    if request.decompress_body is False:
        return request
    existing = request.headers.get("Accept-Encoding")
    value = f"{existing}, {ACCEPTED_ENCODINGS}" if existing else ACCEPTED_ENCODINGS
    return request.with_header("Accept-Encoding", value)


async def decompress_body(response: Response) -> Response:
    """
    Decode a gzip or deflate body.

    ``orig_content_encoding`` records the Content-Encoding the server sent.
    The header itself is dropped only for the encodings decoded here.

    Raises:
        DecompressionError: If the body framing is malformed
    """
    encoding = response.headers.get("content-encoding")
    if encoding is None:
        return response

    key = encoding.strip().lower()
    decompressor = _DECOMPRESSORS.get(key)
    if decompressor is None or response.body is None:
        return response.model_copy(update={"orig_content_encoding": encoding})

    logger.debug(f"Decompressing {key} response body")
    if is_stream(response.body):
        body = DecompressingStream(response.body, key)
    else:
        body = decompressor(await force_bytes(response.body))

    headers = response.headers.copy()
    headers.popall("content-encoding", None)
    return response.model_copy(
        update={"body": body, "headers": headers, "orig_content_encoding": encoding}
    )


async def decompression_response(request: Request, response: Response) -> Response:
    if request.decompress_body is False:
        return response
    return await decompress_body(response)


def wrap_decompression(handler: Handler) -> Handler:
    """
    Middleware handling automatic decompression of responses.

    With ``decompress_body=False`` neither the Accept-Encoding header is
    set nor the body decoded.
    """

    async def decompression_handler(request: Request) -> Optional[Response]:
        response = await handler(decompression_request(request))
        if response is None:
            return response
        return await decompression_response(request, response)

    return decompression_handler

