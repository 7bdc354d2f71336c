"""
Byte stream helpers for request and response bodies.

A response body is either fully buffered ``bytes`` or an open byte stream.
Streams follow the :class:`ByteStream` protocol (an awaitable ``read`` and
``close``); whoever holds a stream owns it and must close it.
"""

from __future__ import annotations

import inspect
import io
import zlib
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Callable, Optional, Protocol, runtime_checkable

from ..exceptions import DecompressionError
from .encoding import utf8_string

CHUNK_SIZE = 64 * 1024

_WBITS = {
    "gzip": 16 + zlib.MAX_WBITS,
    "deflate": zlib.MAX_WBITS,
}


@runtime_checkable
class ByteStream(Protocol):
    """An open source of bytes that must be closed once consumed."""

    async def read(self, n: int = -1) -> bytes:
        """Read up to ``n`` bytes, everything when ``n`` is negative."""
        ...

    async def close(self) -> None:
        """Release the underlying resource."""
        ...


class _StreamMixin(ABC):
    """Iteration and context management shared by the stream classes."""

    @abstractmethod
    async def read(self, n: int = -1) -> bytes:
        """Read up to ``n`` bytes, everything when ``n`` is negative."""

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying resource."""

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self.read(CHUNK_SIZE)
            if not chunk:
                break
            yield chunk

    async def __aenter__(self) -> Any:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


class BytesStream(_StreamMixin):
    """In-memory stream over a bytes value."""

    def __init__(self, data: bytes = b"") -> None:
        self._buffer = io.BytesIO(data)
        self.closed = False

    async def read(self, n: int = -1) -> bytes:
        return self._buffer.read(n)

    async def close(self) -> None:
        self.closed = True


class ResponseStream(_StreamMixin):
    """
    The body of a live response, read straight off the connection.

    The stream is the only owner of the connection. ``close`` releases it
    back to the pool and then runs ``on_close`` once.
    """

    def __init__(self, response: Any, on_close: Optional[Callable[[], Any]] = None) -> None:
        self._response = response
        self._on_close = on_close
        self.closed = False

    async def read(self, n: int = -1) -> bytes:
        if self.closed:
            return b""
        data = await self._response.content.read(n)
        if not data:
            await self.close()
        return data

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self._response.release()
        finally:
            if self._on_close is not None:
                await _maybe_await(self._on_close())


class DecompressingStream(_StreamMixin):
    """
    Lazily decompresses a gzip or deflate stream while it is read.

    Closing this stream closes the wrapped one.
    """

    def __init__(self, stream: Any, encoding: str) -> None:
        self._stream = stream
        self._encoding = encoding
        self._decompressor = zlib.decompressobj(_WBITS[encoding])
        self._pending = b""
        self._eof = False
        self._started = False

    async def _fill(self) -> None:
        chunk = await _maybe_await(self._stream.read(CHUNK_SIZE))
        if not chunk:
            self._pending += self._decompressor.flush()
            self._eof = True
            if self._started and not self._decompressor.eof:
                raise DecompressionError(
                    f"Truncated {self._encoding} stream", encoding=self._encoding
                )
            return

        try:
            self._pending += self._decompressor.decompress(chunk)
        except zlib.error as e:
            # Some servers send raw deflate data labelled as zlib
            if self._encoding != "deflate" or self._started:
                raise DecompressionError(
                    f"Malformed {self._encoding} stream: {e}", encoding=self._encoding
                ) from e
            self._decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
            try:
                self._pending += self._decompressor.decompress(chunk)
            except zlib.error as raw_error:
                raise DecompressionError(
                    f"Malformed deflate stream: {raw_error}", encoding="deflate"
                ) from raw_error
        self._started = True

    async def read(self, n: int = -1) -> bytes:
        if n is None or n < 0:
            while not self._eof:
                await self._fill()
            data, self._pending = self._pending, b""
            return data

        while len(self._pending) < n and not self._eof:
            await self._fill()
        data, self._pending = self._pending[:n], self._pending[n:]
        return data

    async def close(self) -> None:
        await close_body(self._stream)


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def is_stream(body: Any) -> bool:
    """True for open streams, False for buffered values."""
    return not isinstance(body, (bytes, bytearray, str)) and isinstance(body, ByteStream)


async def close_body(body: Any) -> None:
    """Close ``body`` if it is a stream; buffered values are left alone."""
    close = getattr(body, "close", None)
    if close is None or isinstance(body, (bytes, bytearray, str)):
        return
    await _maybe_await(close())


async def force_bytes(body: Any) -> Optional[bytes]:
    """Buffer ``body`` into bytes, closing it if it was a stream."""
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    try:
        return bytes(await _maybe_await(body.read()))
    finally:
        await close_body(body)


async def force_string(body: Any, charset: Optional[str] = None) -> Optional[str]:
    """Buffer ``body`` and decode it in ``charset`` (UTF-8 by default)."""
    if isinstance(body, str):
        return body
    data = await force_bytes(body)
    if data is None:
        return None
    return utf8_string(data, charset)


def force_stream(body: Any) -> Any:
    """Present ``body`` as a stream, wrapping buffered bytes in memory."""
    if body is None or is_stream(body):
        return body
    if isinstance(body, str):
        body = body.encode("utf-8")
    return BytesStream(bytes(body))
