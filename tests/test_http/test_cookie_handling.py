"""
Tests for cookie decoding, encoding and the cookie jar.
"""

from datetime import datetime, timedelta, timezone

import pytest

from httpchain.http.cookies import (
    Cookie,
    CookieJar,
    decode_cookie_header,
    decode_cookies,
    decode_set_cookie,
    encode_cookie_header,
    encode_cookies,
    wrap_cookies,
)
from httpchain.models import Request, Response
from httpchain.pipeline import Pipeline


def _past():
    return datetime.now(timezone.utc) - timedelta(days=1)


def _future():
    return datetime.now(timezone.utc) + timedelta(days=1)


class TestDecodeSetCookie:
    def test_attributes(self):
        cookie = decode_set_cookie(
            "a=1; Path=/foo; Domain=.example.com; Secure; HttpOnly; Version=1; Foo=bar"
        )

        assert cookie.name == "a"
        assert cookie.value == "1"
        assert cookie.path == "/foo"
        assert cookie.domain == ".example.com"
        assert cookie.secure
        assert cookie.http_only
        assert cookie.version == 1
        assert cookie.expires is None
        assert cookie.discard

    def test_defaults(self):
        cookie = decode_set_cookie("session=abc")

        assert cookie.path == "/"
        assert cookie.domain is None
        assert not cookie.secure

    def test_max_age(self):
        before = datetime.now(timezone.utc)
        cookie = decode_set_cookie("a=1; Max-Age=3600")

        assert cookie.max_age == 3600
        assert cookie.expires >= before + timedelta(seconds=3600)
        assert not cookie.discard
        assert not cookie.is_expired

    def test_max_age_wins_over_expires(self):
        cookie = decode_set_cookie("a=1; Expires=Wed, 09 Jun 2021 10:18:14 GMT; Max-Age=60")
        assert cookie.expires > datetime.now(timezone.utc)

    def test_non_positive_max_age_expires_now(self):
        cookie = decode_set_cookie("a=1; Max-Age=0")
        assert cookie.is_expired

    @pytest.mark.parametrize(
        "expires",
        ["Wed, 09 Jun 2021 10:18:14 GMT", "Wednesday, 09-Jun-21 10:18:14 GMT"],
    )
    def test_expires_formats(self, expires):
        cookie = decode_set_cookie(f"a=1; Expires={expires}")

        assert cookie.expires == datetime(2021, 6, 9, 10, 18, 14, tzinfo=timezone.utc)
        assert cookie.is_expired
        assert not cookie.discard

    def test_unparseable_expires_ignored(self):
        cookie = decode_set_cookie("a=1; Expires=someday")

        assert cookie.expires is None
        assert cookie.discard

    @pytest.mark.parametrize("header", [None, "", "   ", "no-equals-sign", "=value"])
    def test_malformed(self, header):
        assert decode_set_cookie(header) is None

    def test_empty_value(self):
        cookie = decode_set_cookie("a=; Path=/")
        assert cookie.value == ""

    def test_decode_cookies_last_wins(self):
        cookies = decode_cookies(["a=1", "b=2", "a=3", "garbage"])

        assert set(cookies) == {"a", "b"}
        assert cookies["a"].value == "3"


class TestCookieHeaders:
    def test_decode_cookie_header(self):
        response = Response(
            status=200,
            headers=[("Set-Cookie", "a=1"), ("Set-Cookie", "b=2; Path=/x"), ("X-Other", "y")],
        )
        decoded = decode_cookie_header(response)

        assert decoded.cookies["a"].value == "1"
        assert decoded.cookies["b"].path == "/x"
        assert "set-cookie" not in decoded.headers
        assert decoded.headers["x-other"] == "y"

    def test_decode_without_set_cookie(self):
        response = Response(status=200)
        assert decode_cookie_header(response) is response

    def test_encode_cookies(self):
        assert encode_cookies({"a": "1", "b": Cookie(name="b", value="2")}) == "a=1;b=2"
        assert encode_cookies({"c": {"value": "3"}}) == "c=3"

    def test_encode_cookie_header(self):
        request = encode_cookie_header(Request(cookies={"a": "1", "b": "2"}))

        assert request.headers["Cookie"] == "a=1;b=2"
        assert request.cookies is None

    def test_encode_without_cookies(self):
        request = Request()
        assert encode_cookie_header(request) is request


class TestWrapCookies:
    @pytest.mark.asyncio
    async def test_encodes_and_decodes(self, handler):
        handler.response = Response(status=200, headers={"Set-Cookie": "c=3"})
        response = await wrap_cookies(handler)(Request(cookies={"a": "1"}))

        assert handler.last_request.headers["Cookie"] == "a=1"
        assert response.cookies["c"].value == "3"
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_decode_cookies_disabled(self, handler):
        handler.response = Response(status=200, headers={"Set-Cookie": "c=3"})
        response = await wrap_cookies(handler)(Request(decode_cookies=False))

        assert response.headers["set-cookie"] == "c=3"
        assert response.cookies == {}

    @pytest.mark.asyncio
    async def test_cookie_store_round_trip(self, handler):
        jar = CookieJar([Cookie(name="a", value="1"), Cookie(name="b", value="2")])
        handler.response = Response(status=200, headers={"Set-Cookie": "c=3; Path=/"})

        wrapped = Pipeline(["url", "cookies"]).wrap(handler)
        await wrapped(Request(url="http://example.com/", cookie_store=jar))

        sent = set(handler.last_request.headers["Cookie"].split(";"))
        assert sent == {"a=1", "b=2"}

        stored = jar.get_all()
        assert set(stored) == {"a", "b", "c"}
        assert stored["a"].path == "/"
        assert stored["a"].domain is None
        assert stored["c"].value == "3"
        assert stored["c"].path == "/"
        assert stored["c"].domain == "example.com"

    @pytest.mark.asyncio
    async def test_explicit_cookies_win_over_store(self, handler):
        jar = CookieJar([Cookie(name="a", value="stored")])
        wrapped = Pipeline(["url", "cookies"]).wrap(handler)

        await wrapped(Request(url="http://example.com/", cookie_store=jar, cookies={"a": "given"}))
        assert handler.last_request.headers["Cookie"] == "a=given"


class TestCookieMatching:
    def test_domain(self):
        cookie = Cookie(name="a", domain=".example.com")

        assert cookie.matches_domain("example.com")
        assert cookie.matches_domain("www.EXAMPLE.com")
        assert not cookie.matches_domain("badexample.com")
        assert Cookie(name="b").matches_domain("anything.org")

    def test_path(self):
        cookie = Cookie(name="a", path="/foo")

        assert cookie.matches_path("/foo")
        assert cookie.matches_path("/foo/bar")
        assert not cookie.matches_path("/foobar")
        assert Cookie(name="b").matches_path("/anything")


class TestCookieJar:
    def test_add_and_get_all(self):
        jar = CookieJar()
        jar.add(Cookie(name="a", value="1"), domain="example.com")

        assert len(jar) == 1
        assert jar.get_all()["a"].domain == "example.com"

    def test_same_name_different_paths(self):
        jar = CookieJar()
        jar.add(Cookie(name="a", value="1", path="/"))
        jar.add(Cookie(name="a", value="2", path="/x"))

        assert len(jar) == 2

    def test_expired_cookie_removes_stored(self):
        jar = CookieJar([Cookie(name="a", value="1", domain="example.com")])
        jar.add(Cookie(name="a", domain="example.com", expires=_past()))

        assert len(jar) == 0

    def test_remove(self):
        jar = CookieJar(
            [Cookie(name="a", domain="one.com"), Cookie(name="a", domain="two.com")]
        )

        assert jar.remove("a", domain="one.com")
        assert len(jar) == 1
        assert not jar.remove("missing")

    def test_clear(self):
        jar = CookieJar([Cookie(name="a"), Cookie(name="b")])
        jar.clear()
        assert jar.get_all() == {}

    def test_clear_expired(self):
        jar = CookieJar([Cookie(name="a", expires=_future())])
        jar._cookies[("", "/", "old")] = Cookie(name="old", expires=_past())

        assert jar.clear_expired() == 1
        assert set(jar.get_all()) == {"a"}

    def test_cookies_for_url(self):
        jar = CookieJar(
            [
                Cookie(name="root", domain="example.com", path="/"),
                Cookie(name="deep", domain="example.com", path="/api"),
                Cookie(name="other", domain="other.com"),
                Cookie(name="secure", domain="example.com", secure=True),
            ]
        )

        names = [c.name for c in jar.cookies_for_url("http://www.example.com/api/items")]
        assert names == ["deep", "root"]

        secure_names = {c.name for c in jar.cookies_for_url("https://example.com/")}
        assert secure_names == {"root", "secure"}

    def test_cookie_header(self):
        jar = CookieJar([Cookie(name="a", value="1", path="/x"), Cookie(name="b", value="2")])

        assert jar.get_cookie_header("http://example.com/x/y") == "a=1; b=2"
        assert CookieJar().get_cookie_header("http://example.com/") is None
