"""
Tests for byte, charset and compression helpers.
"""

import zlib

import pytest

from httpchain.exceptions import DecompressionError, EncodingError
from httpchain.utils.encoding import (
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


class TestCharsets:
    def test_check_charset(self):
        assert check_charset("utf-8") == "utf-8"
        assert check_charset("ISO-8859-1") == "ISO-8859-1"

    def test_unknown_charset(self):
        with pytest.raises(EncodingError) as exc_info:
            check_charset("no-such-charset")
        assert exc_info.value.charset == "no-such-charset"

    def test_utf8_bytes_default(self):
        assert utf8_bytes("héllo") == "héllo".encode("utf-8")

    def test_utf8_bytes_other_charset(self):
        assert utf8_bytes("héllo", "ISO-8859-1") == b"h\xe9llo"

    def test_unencodable_text(self):
        with pytest.raises(EncodingError):
            utf8_bytes("snowman ☃", "ascii")

    def test_utf8_string(self):
        assert utf8_string(b"h\xc3\xa9llo") == "héllo"
        assert utf8_string(b"h\xe9llo", "ISO-8859-1") == "héllo"


class TestUrlEncoding:
    def test_url_encode(self):
        assert url_encode("a b&c=d") == "a+b%26c%3Dd"
        assert url_encode("*") == "*"
        assert url_encode("é") == "%C3%A9"

    def test_url_encode_charset(self):
        assert url_encode("é", "ISO-8859-1") == "%E9"

    def test_url_decode(self):
        assert url_decode("a+b%26c%3Dd") == "a b&c=d"


class TestBase64:
    def test_base64_encode(self):
        assert base64_encode(b"user:pass") == "dXNlcjpwYXNz"

    def test_no_line_wrapping(self):
        assert "\n" not in base64_encode(b"x" * 200)


class TestCompression:
    def test_gzip_round_trip(self):
        assert gunzip(gzip(b"foofoofoo")) == b"foofoofoo"

    def test_malformed_gzip(self):
        with pytest.raises(DecompressionError) as exc_info:
            gunzip(b"definitely not gzip")
        assert exc_info.value.encoding == "gzip"

    def test_truncated_gzip(self):
        with pytest.raises(DecompressionError):
            gunzip(gzip(b"foofoofoo" * 100)[:-10])

    def test_deflate_round_trip(self):
        assert inflate(deflate(b"barbarbar")) == b"barbarbar"

    def test_inflate_raw_deflate(self):
        compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
        raw = compressor.compress(b"barbarbar") + compressor.flush()
        assert inflate(raw) == b"barbarbar"

    def test_malformed_deflate(self):
        with pytest.raises(DecompressionError):
            inflate(b"\xff\xff\xff\xff")


class TestContentType:
    def test_parse_content_type(self):
        mime_type, params = parse_content_type('text/html; charset="ISO-8859-1"; q=1')

        assert mime_type == "text/html"
        assert params == {"charset": "ISO-8859-1", "q": "1"}

    def test_parse_without_params(self):
        assert parse_content_type("Application/JSON") == ("application/json", {})

    @pytest.mark.parametrize("header", [None, "", "garbage"])
    def test_parse_invalid(self, header):
        assert parse_content_type(header) == (None, {})

    def test_detect_charset(self):
        assert detect_charset("text/plain; charset=ISO-8859-1") == "ISO-8859-1"
        assert detect_charset("text/plain") == "UTF-8"
        assert detect_charset(None) == "UTF-8"
