"""
Tests for the body stream helpers.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from httpchain.exceptions import DecompressionError
from httpchain.utils.encoding import deflate, gzip
from httpchain.utils.streams import (
    ByteStream,
    BytesStream,
    DecompressingStream,
    ResponseStream,
    _StreamMixin,
    close_body,
    force_bytes,
    force_stream,
    force_string,
    is_stream,
)


class TestBytesStream:
    @pytest.mark.asyncio
    async def test_read_in_chunks(self):
        stream = BytesStream(b"abcdef")

        assert await stream.read(4) == b"abcd"
        assert await stream.read(4) == b"ef"
        assert await stream.read(4) == b""

    @pytest.mark.asyncio
    async def test_iteration(self):
        chunks = [chunk async for chunk in BytesStream(b"abc")]
        assert b"".join(chunks) == b"abc"

    @pytest.mark.asyncio
    async def test_context_manager_closes(self):
        async with BytesStream(b"abc") as stream:
            assert not stream.closed
        assert stream.closed

    def test_protocol(self):
        assert isinstance(BytesStream(b""), ByteStream)

    def test_stream_base_requires_read_and_close(self):
        class ReadOnly(_StreamMixin):
            async def read(self, n=-1):
                return b""

        with pytest.raises(TypeError):
            ReadOnly()


class TestResponseStream:
    def _response(self, *chunks):
        response = MagicMock()
        response.content.read = AsyncMock(side_effect=list(chunks) + [b""])
        return response

    @pytest.mark.asyncio
    async def test_reads_until_eof_then_closes(self):
        response = self._response(b"abc", b"def")
        closed = []
        on_close = lambda: closed.append(True)
        stream = ResponseStream(response, on_close=on_close)

        assert await stream.read(3) == b"abc"
        assert await stream.read(3) == b"def"
        assert await stream.read(3) == b""

        assert stream.closed
        response.release.assert_called_once()
        assert closed == [True]

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        response = self._response(b"abc")
        closed = []
        on_close = lambda: closed.append(True)
        stream = ResponseStream(response, on_close=on_close)

        await stream.close()
        await stream.close()

        assert await stream.read() == b""
        response.release.assert_called_once()
        assert closed == [True]


class TestDecompressingStream:
    @pytest.mark.asyncio
    async def test_gzip(self):
        stream = DecompressingStream(BytesStream(gzip(b"foofoofoo" * 1000)), "gzip")
        assert await stream.read() == b"foofoofoo" * 1000

    @pytest.mark.asyncio
    async def test_partial_reads(self):
        stream = DecompressingStream(BytesStream(gzip(b"0123456789")), "gzip")

        assert await stream.read(4) == b"0123"
        assert await stream.read(4) == b"4567"
        assert await stream.read(4) == b"89"

    @pytest.mark.asyncio
    async def test_deflate(self):
        stream = DecompressingStream(BytesStream(deflate(b"barbarbar")), "deflate")
        assert await stream.read() == b"barbarbar"

    @pytest.mark.asyncio
    async def test_malformed(self):
        stream = DecompressingStream(BytesStream(b"not gzip at all"), "gzip")
        with pytest.raises(DecompressionError):
            await stream.read()

    @pytest.mark.asyncio
    async def test_truncated(self):
        stream = DecompressingStream(BytesStream(gzip(b"foofoofoo" * 1000)[:-20]), "gzip")
        with pytest.raises(DecompressionError):
            await stream.read()

    @pytest.mark.asyncio
    async def test_truncated_partial_reads(self):
        stream = DecompressingStream(BytesStream(gzip(b"0123456789")[:-4]), "gzip")
        with pytest.raises(DecompressionError):
            while await stream.read(4):
                pass

    @pytest.mark.asyncio
    async def test_empty_source(self):
        stream = DecompressingStream(BytesStream(b""), "gzip")
        assert await stream.read() == b""

    @pytest.mark.asyncio
    async def test_close_closes_inner(self):
        inner = BytesStream(gzip(b"x"))
        await DecompressingStream(inner, "gzip").close()
        assert inner.closed


class TestForce:
    def test_is_stream(self):
        assert is_stream(BytesStream(b""))
        assert not is_stream(b"bytes")
        assert not is_stream("text")
        assert not is_stream(None)

    @pytest.mark.asyncio
    async def test_force_bytes(self):
        assert await force_bytes(None) is None
        assert await force_bytes(b"abc") == b"abc"
        assert await force_bytes(bytearray(b"abc")) == b"abc"
        assert await force_bytes("abc") == b"abc"

    @pytest.mark.asyncio
    async def test_force_bytes_closes_stream(self):
        stream = BytesStream(b"abc")
        assert await force_bytes(stream) == b"abc"
        assert stream.closed

    @pytest.mark.asyncio
    async def test_force_string(self):
        assert await force_string(b"h\xe9", "ISO-8859-1") == "hé"
        assert await force_string("already") == "already"
        assert await force_string(None) is None

    @pytest.mark.asyncio
    async def test_force_stream(self):
        stream = force_stream(b"abc")
        assert is_stream(stream)
        assert await stream.read() == b"abc"

        same = BytesStream(b"x")
        assert force_stream(same) is same
        assert force_stream(None) is None

    @pytest.mark.asyncio
    async def test_close_body_ignores_buffered(self):
        await close_body(b"bytes")
        await close_body(None)

        stream = BytesStream(b"")
        await close_body(stream)
        assert stream.closed
