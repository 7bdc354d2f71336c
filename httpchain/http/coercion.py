"""
Request and response body coercion.

Input coercion turns whatever the caller passed as ``body`` into an
:class:`Entity` the transport can send. Output coercion turns the raw
response body into the representation chosen with the ``as_`` option,
dispatching through a registry of decoders keyed by format tag so callers
can add formats of their own.
"""

from __future__ import annotations

import ast
import inspect
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional
from urllib.parse import parse_qs

import aiofiles

from ..exceptions import ParseError, UnsupportedBodyTypeError
from ..models import CoercePolicy, OutputFormat, Request, Response
from ..utils.encoding import DEFAULT_CHARSET, parse_content_type, utf8_bytes
from ..utils.streams import CHUNK_SIZE, force_bytes, force_stream, force_string
from .base import Handler, request_middleware
from .status import is_unexceptional

logger = logging.getLogger(__name__)

LITERAL_CONTENT_TYPE = "application/x-python-literal"

OutputDecoder = Callable[[Request, Response], Awaitable[Response]]


# Codecs


class StdlibJsonCodec:
    """JSON codec backed by the standard library ``json`` module."""

    def loads(self, text: str) -> Any:
        return json.loads(text)

    def dumps(self, value: Any, **opts: Any) -> str:
        return json.dumps(value, **opts)


class LiteralCodec:
    """
    Structured data written as Python literals.

    Parsing goes through ``ast.literal_eval``, so calls, names, attribute
    access and every other code form are rejected instead of evaluated.
    """

    def loads(self, text: str) -> Any:
        return ast.literal_eval(text)

    def dumps(self, value: Any, **opts: Any) -> str:
        return repr(value)


@dataclass(frozen=True)
class Codecs:
    """The JSON and literal codecs used for form params and output coercion."""

    json: Any = field(default_factory=StdlibJsonCodec)
    literal: Any = field(default_factory=LiteralCodec)


DEFAULT_CODECS = Codecs()


def get_codecs(request: Request) -> Codecs:
    return request.codecs or DEFAULT_CODECS


# Input coercion


@dataclass
class Entity:
    """
    A transport-ready request body.

    ``content`` is either bytes or an async iterator of byte chunks. A
    ``length`` of None asks the transport for chunked transfer encoding.
    """

    content: Any
    length: Optional[int] = None

    @property
    def chunked(self) -> bool:
        return self.length is None

    async def read_all(self) -> bytes:
        """Consume the entity and return every byte it holds."""
        if isinstance(self.content, (bytes, bytearray)):
            return bytes(self.content)
        chunks = []
        async for chunk in self.content:
            chunks.append(bytes(chunk))
        return b"".join(chunks)


async def _file_chunks(path: Path) -> AsyncIterator[bytes]:
    async with aiofiles.open(path, "rb") as f:
        while True:
            chunk = await f.read(CHUNK_SIZE)
            if not chunk:
                break
            yield chunk


async def _reader_chunks(reader: Any) -> AsyncIterator[bytes]:
    is_async = inspect.iscoroutinefunction(reader.read)
    while True:
        chunk = await reader.read(CHUNK_SIZE) if is_async else reader.read(CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


def coerce_request_body(request: Request) -> Request:
    """
    Turn ``request.body`` into an :class:`Entity`.

    Raises:
        EncodingError: If a str body cannot be encoded in ``body_encoding``
        UnsupportedBodyTypeError: For body types that cannot be sent
    """
    body = request.body
    if body is None or isinstance(body, Entity):
        return request

    if isinstance(body, str):
        encoding = request.body_encoding or DEFAULT_CHARSET
        data = utf8_bytes(body, encoding)
        return request.model_copy(
            update={
                "body": Entity(data, len(data)),
                "character_encoding": encoding,
            }
        )

    if isinstance(body, (bytes, bytearray, memoryview)):
        data = bytes(body)
        return request.model_copy(update={"body": Entity(data, len(data))})

    if isinstance(body, Path):
        return request.model_copy(
            update={"body": Entity(_file_chunks(body), body.stat().st_size)}
        )

    if hasattr(body, "__aiter__"):
        return request.model_copy(update={"body": Entity(body, request.length)})

    if callable(getattr(body, "read", None)):
        return request.model_copy(
            update={"body": Entity(_reader_chunks(body), request.length)}
        )

    raise UnsupportedBodyTypeError(
        f"Cannot send a body of type {type(body).__name__}",
        body_type=type(body),
        url=request.current_url,
    )


wrap_input_coercion = request_middleware(coerce_request_body)


# Output coercion

_OUTPUT_COERCIONS: Dict[str, OutputDecoder] = {}
_CONTENT_TYPE_COERCIONS: Dict[str, OutputDecoder] = {}


def register_output_coercion(tag: Any, decoder: Optional[OutputDecoder] = None) -> Any:
    """
    Register a decoder for ``as_=tag``.

    Usable directly or as a decorator:

    ```python
    @register_output_coercion("csv")
    async def coerce_csv(request, response):
        ...
    ```
    """
    key = getattr(tag, "value", tag)

    def register(fn: OutputDecoder) -> OutputDecoder:
        _OUTPUT_COERCIONS[key] = fn
        return fn

    return register(decoder) if decoder is not None else register


def register_content_type_coercion(mime_type: str, decoder: Optional[OutputDecoder] = None) -> Any:
    """Register the decoder ``as_="auto"`` uses for a response media type."""
    key = mime_type.lower()

    def register(fn: OutputDecoder) -> OutputDecoder:
        _CONTENT_TYPE_COERCIONS[key] = fn
        return fn

    return register(decoder) if decoder is not None else register


def output_coercions() -> Dict[str, OutputDecoder]:
    return dict(_OUTPUT_COERCIONS)


def can_parse_body(request: Request, response: Response) -> bool:
    """Apply the ``coerce`` policy to the response status."""
    coerce = request.coerce
    unexceptional = is_unexceptional(request, response.status)
    if coerce == CoercePolicy.ALWAYS.value:
        return True
    if coerce in (None, CoercePolicy.UNEXCEPTIONAL.value):
        return unexceptional
    if coerce == CoercePolicy.EXCEPTIONAL.value:
        return not unexceptional
    return False


def response_charset(response: Response) -> str:
    _, params = parse_content_type(response.headers.get("content-type"))
    return params.get("charset") or DEFAULT_CHARSET


def _map_keys(value: Any, key_fn: Callable[[str], Any]) -> Any:
    if isinstance(value, dict):
        return {key_fn(k): _map_keys(v, key_fn) for k, v in value.items()}
    if isinstance(value, list):
        return [_map_keys(v, key_fn) for v in value]
    return value


def _parse(loads: Callable[[str], Any], text: str, content_type: str) -> Any:
    try:
        return loads(text)
    except (ValueError, SyntaxError, TypeError, RecursionError, MemoryError) as e:
        raise ParseError(f"Cannot parse {content_type} body: {e}", content_type=content_type) from e


async def coerce_json_body(
    request: Request,
    response: Response,
    apply_key_fn: bool = True,
    charset: Optional[str] = None,
) -> Response:
    """
    Decode a JSON body when the ``coerce`` policy allows it.

    On a policy mismatch the body is returned as a string. An empty body
    decodes to None.
    """
    charset = charset or response_charset(response)
    text = await force_string(response.body, charset)
    if not can_parse_body(request, response):
        return response.model_copy(update={"body": text})

    if not text or not text.strip():
        return response.model_copy(update={"body": None})

    body = _parse(get_codecs(request).json.loads, text, "application/json")
    if apply_key_fn and request.json_key_fn is not None:
        body = _map_keys(body, request.json_key_fn)
    return response.model_copy(update={"body": body})


async def coerce_literal_body(request: Request, response: Response) -> Response:
    """Parse a body written in Python literal syntax, never evaluating code."""
    text = await force_string(response.body, response_charset(response))
    if not text or not text.strip():
        return response.model_copy(update={"body": None})
    body = _parse(get_codecs(request).literal.loads, text, LITERAL_CONTENT_TYPE)
    return response.model_copy(update={"body": body})


async def coerce_form_urlencoded_body(request: Request, response: Response) -> Response:
    charset = response_charset(response)
    text = await force_string(response.body, charset)
    parsed = parse_qs(text or "", keep_blank_values=True, encoding=charset)
    body = {k: v[0] if len(v) == 1 else v for k, v in parsed.items()}
    return response.model_copy(update={"body": body})


async def coerce_byte_array_body(request: Request, response: Response) -> Response:
    return response.model_copy(update={"body": await force_bytes(response.body)})


async def coerce_stream_body(request: Request, response: Response) -> Response:
    return response.model_copy(update={"body": force_stream(response.body)})


async def coerce_text_body(request: Request, response: Response) -> Response:
    """Decode the body as text in the charset named by ``as_`` (UTF-8 when unset)."""
    charset = request.as_ or DEFAULT_CHARSET
    return response.model_copy(update={"body": await force_string(response.body, charset)})


async def coerce_auto_body(request: Request, response: Response) -> Response:
    """Choose the decoder from the response Content-Type header."""
    mime_type, params = parse_content_type(response.headers.get("content-type"))
    decoder = _CONTENT_TYPE_COERCIONS.get(mime_type or "")
    if decoder is not None:
        return await decoder(request, response)
    charset = params.get("charset") or DEFAULT_CHARSET
    return response.model_copy(update={"body": await force_string(response.body, charset)})


async def _json(request: Request, response: Response) -> Response:
    return await coerce_json_body(request, response, apply_key_fn=True)


async def _json_string_keys(request: Request, response: Response) -> Response:
    return await coerce_json_body(request, response, apply_key_fn=False)


register_output_coercion(OutputFormat.BYTE_ARRAY, coerce_byte_array_body)
register_output_coercion(OutputFormat.STREAM, coerce_stream_body)
register_output_coercion(OutputFormat.JSON, _json)
register_output_coercion(OutputFormat.JSON_STRICT, _json)
register_output_coercion(OutputFormat.JSON_STRING_KEYS, _json_string_keys)
register_output_coercion(OutputFormat.JSON_STRICT_STRING_KEYS, _json_string_keys)
register_output_coercion(OutputFormat.LITERAL, coerce_literal_body)
register_output_coercion(OutputFormat.FORM_URLENCODED, coerce_form_urlencoded_body)
register_output_coercion(OutputFormat.AUTO, coerce_auto_body)

register_content_type_coercion("application/json", _json)
register_content_type_coercion(LITERAL_CONTENT_TYPE, coerce_literal_body)
register_content_type_coercion("application/x-www-form-urlencoded", coerce_form_urlencoded_body)


async def coerce_response_body(request: Request, response: Response) -> Response:
    """Coerce ``response.body`` as requested by ``request.as_``."""
    logger.debug(f"Coercing response body as {request.as_ or DEFAULT_CHARSET}")
    decoder = _OUTPUT_COERCIONS.get(request.as_ or "", coerce_text_body)
    return await decoder(request, response)


def wrap_output_coercion(handler: Handler) -> Handler:
    """Middleware coercing response bodies; responses without a body pass through."""

    async def output_coercion_handler(request: Request) -> Optional[Response]:
        response = await handler(request)
        if response is None or response.body is None:
            return response
        return await coerce_response_body(request, response)

    return output_coercion_handler
