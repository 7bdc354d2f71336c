"""
Tests for header shaping middleware.
"""

import pytest

from httpchain.http.headers import (
    accept_encoding_request,
    accept_request,
    canonicalize,
    content_type_request,
    content_type_value,
    header_map_request,
    header_values,
    wrap_header_map,
)
from httpchain.models import Request, to_header_map


class TestCanonicalize:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("date", "Date"),
            ("foo_bar", "Foo-Bar"),
            ("content_type", "Content-Type"),
            ("content_md5", "Content-MD5"),
            ("www_authenticate", "WWW-Authenticate"),
            ("x_xss_protection", "X-XSS-Protection"),
            ("etag", "ETag"),
            ("dnt", "DNT"),
        ],
    )
    def test_canonicalize(self, name, expected):
        assert canonicalize(name) == expected


class TestHeaderMap:
    def test_underscore_names_canonicalized(self):
        request = header_map_request(Request(headers={"user_agent": "x", "X-Keep-Me": "y"}))
        names = list(request.headers.keys())

        assert "User-Agent" in names
        assert "X-Keep-Me" in names

    def test_dash_names_keep_casing(self):
        request = header_map_request(Request(headers={"x-lower-case": "1"}))
        assert list(request.headers.keys()) == ["x-lower-case"]

    def test_lookup_is_case_insensitive(self):
        request = header_map_request(Request(headers={"content_type": "text/plain"}))
        assert request.headers["CONTENT-TYPE"] == "text/plain"

    def test_repeated_values(self):
        headers = to_header_map({"Accept": ["a/b", "c/d"]})
        assert headers.getall("accept") == ["a/b", "c/d"]

    @pytest.mark.asyncio
    async def test_wrap_header_map(self, handler):
        await wrap_header_map(handler)(Request(headers={"x_api_key": "k"}))
        assert list(handler.last_request.headers.keys()) == ["X-Api-Key"]


class TestShorthands:
    def test_content_type_value(self):
        assert content_type_value("json") == "application/json"
        assert content_type_value("text/html") == "text/html"
        assert content_type_value(None) is None

    def test_accept(self):
        request = accept_request(Request(accept="json"))

        assert request.headers["Accept"] == "application/json"
        assert request.accept is None

    def test_accept_unset(self):
        request = Request()
        assert accept_request(request) is request

    def test_accept_encoding_list(self):
        request = accept_encoding_request(Request(accept_encoding=["gzip", "br"]))
        assert request.headers["Accept-Encoding"] == "gzip, br"

    def test_accept_encoding_string(self):
        request = accept_encoding_request(Request(accept_encoding="identity"))
        assert request.headers["Accept-Encoding"] == "identity"

    def test_content_type_with_charset(self):
        request = content_type_request(Request(content_type="json", character_encoding="UTF-8"))
        assert request.headers["Content-Type"] == "application/json; charset=UTF-8"

    def test_content_type_existing_charset(self):
        request = content_type_request(
            Request(content_type="text/plain; charset=ascii", character_encoding="UTF-8")
        )
        assert request.headers["Content-Type"] == "text/plain; charset=ascii"

    def test_content_type_replaces_header(self):
        request = content_type_request(
            Request(content_type="text/csv", headers={"content-type": "text/plain"})
        )
        assert request.headers.getall("Content-Type") == ["text/csv"]


class TestHeaderValues:
    def test_multidict(self):
        headers = to_header_map([("link", "a"), ("link", "b")])
        assert list(header_values(headers, "Link")) == ["a", "b"]

    def test_plain_mapping(self):
        assert list(header_values({"link": ["a", "b"]}, "link")) == ["a", "b"]
        assert list(header_values({"link": "a"}, "link")) == ["a"]
        assert list(header_values(None, "link")) == []
