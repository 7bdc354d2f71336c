"""
Cookie handling for the request pipeline.

Set-Cookie response headers are decoded into :class:`Cookie` records using
browser-compatible rules, request cookies are encoded into a single Cookie
header, and an optional in-memory :class:`CookieJar` keeps session state
across requests.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

from ..models import Request, Response
from .base import Handler
from .headers import header_values

logger = logging.getLogger(__name__)

# Legacy Expires layouts still seen in the wild, tried after RFC 1123
_EXPIRES_FORMATS = (
    "%A, %d-%b-%y %H:%M:%S GMT",
    "%a, %d-%b-%Y %H:%M:%S GMT",
    "%a, %d %b %y %H:%M:%S GMT",
    "%a %b %d %H:%M:%S %Y",
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Cookie(BaseModel):
    """Cookie model with all attributes."""

    name: str = Field(description="Cookie name")
    value: str = Field(default="", description="Cookie value")
    domain: Optional[str] = Field(default=None, description="Cookie domain")
    path: str = Field(default="/", description="Cookie path")
    expires: Optional[datetime] = Field(default=None, description="Expiration time (UTC)")
    max_age: Optional[int] = Field(default=None, description="Max age in seconds")
    secure: bool = Field(default=False, description="Secure flag")
    http_only: bool = Field(default=False, description="HttpOnly flag")
    discard: bool = Field(default=True, description="Session cookie, no expiry")
    version: int = Field(default=0, description="Cookie version")

    @property
    def is_expired(self) -> bool:
        return self.expires is not None and self.expires <= _now()

    def matches_domain(self, host: str) -> bool:
        """Check if cookie matches the request host."""
        if not self.domain:
            return True

        cookie_domain = self.domain.lower().lstrip(".")
        request_host = host.lower()
        return request_host == cookie_domain or request_host.endswith("." + cookie_domain)

    def matches_path(self, path: str) -> bool:
        """Check if cookie matches path."""
        if not self.path or self.path == "/":
            return True
        if path == self.path:
            return True
        prefix = self.path if self.path.endswith("/") else self.path + "/"
        return path.startswith(prefix)

    def to_header_value(self) -> str:
        return f"{self.name}={self.value}"


class CookieStore(Protocol):
    """Anything that can hold cookies between requests."""

    def add(self, cookie: Cookie, domain: Optional[str] = None) -> None:
        ...

    def cookies_for_url(self, url: str) -> List[Cookie]:
        ...


def _parse_expires(value: str) -> Optional[datetime]:
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        parsed = None

    if parsed is None:
        for fmt in _EXPIRES_FORMATS:
            try:
                parsed = datetime.strptime(value, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def decode_set_cookie(header: Optional[str]) -> Optional[Cookie]:
    """
    Parse a single Set-Cookie header value.

    Recognized attributes are Domain, Path, Expires, Max-Age, Secure,
    HttpOnly and Version; anything else is ignored. Max-Age wins over
    Expires and is turned into an absolute expiry.

    Returns:
        The decoded cookie, or None for an empty or malformed header
    """
    if not header or not header.strip():
        return None

    parts = header.split(";")
    name, sep, value = parts[0].partition("=")
    name = name.strip()
    if not sep or not name:
        return None

    attrs: Dict[str, Any] = {"name": name, "value": value.strip()}
    max_age: Optional[int] = None

    for part in parts[1:]:
        attr_name, _, attr_value = part.partition("=")
        attr_name = attr_name.strip().lower()
        attr_value = attr_value.strip()

        if attr_name == "domain" and attr_value:
            attrs["domain"] = attr_value
        elif attr_name == "path" and attr_value:
            attrs["path"] = attr_value
        elif attr_name == "expires":
            expires = _parse_expires(attr_value)
            if expires is not None:
                attrs["expires"] = expires
        elif attr_name == "max-age":
            try:
                max_age = int(attr_value)
            except ValueError:
                pass
        elif attr_name == "secure":
            attrs["secure"] = True
        elif attr_name == "httponly":
            attrs["http_only"] = True
        elif attr_name == "version":
            try:
                attrs["version"] = int(attr_value.strip('"'))
            except ValueError:
                pass

    if max_age is not None:
        attrs["max_age"] = max_age
        attrs["expires"] = _now() + timedelta(seconds=max(max_age, 0))

    attrs["discard"] = "expires" not in attrs
    return Cookie(**attrs)


def decode_cookies(headers: Iterable[str]) -> Dict[str, Cookie]:
    """Decode several Set-Cookie values; the last one for a name wins."""
    cookies: Dict[str, Cookie] = {}
    for header in headers:
        cookie = decode_set_cookie(header)
        if cookie is not None:
            cookies[cookie.name] = cookie
    return cookies


def decode_cookie_header(response: Response) -> Response:
    """Move Set-Cookie headers of ``response`` into ``response.cookies``."""
    values = list(header_values(response.headers, "set-cookie"))
    if not values:
        return response

    headers = response.headers.copy()
    headers.popall("set-cookie", None)
    cookies = dict(response.cookies)
    cookies.update(decode_cookies(values))
    return response.model_copy(update={"headers": headers, "cookies": cookies})


def _cookie_value(cookie: Any) -> str:
    if isinstance(cookie, Cookie):
        return cookie.value
    if isinstance(cookie, Mapping):
        return str(cookie.get("value", ""))
    return str(cookie)


def encode_cookies(cookies: Mapping[str, Any]) -> str:
    """Render ``name=value`` pairs joined by ``;`` without attributes."""
    return ";".join(f"{name}={_cookie_value(cookie)}" for name, cookie in cookies.items())


def encode_cookie_header(request: Request) -> Request:
    """Replace ``request.cookies`` with a single Cookie header."""
    if not request.cookies:
        return request
    return request.with_header("Cookie", encode_cookies(request.cookies)).model_copy(
        update={"cookies": None}
    )


class CookieJar:
    """
    In-memory cookie store keyed by (domain, path, name).

    Safe to share between threads and tasks; every operation takes the
    jar's lock.
    """

    def __init__(self, cookies: Optional[Iterable[Cookie]] = None) -> None:
        self._cookies: Dict[Tuple[str, str, str], Cookie] = {}
        self._lock = threading.RLock()
        for cookie in cookies or ():
            self.add(cookie)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cookies)

    def add(self, cookie: Cookie, domain: Optional[str] = None) -> None:
        """
        Add a cookie to the jar.

        Args:
            cookie: Cookie to add
            domain: Domain to use when the cookie names none

        A cookie that is already expired removes any stored cookie with the
        same key instead.
        """
        if not cookie.domain and domain:
            cookie = cookie.model_copy(update={"domain": domain})

        key = ((cookie.domain or "").lower(), cookie.path or "/", cookie.name)
        with self._lock:
            if cookie.is_expired:
                self._cookies.pop(key, None)
                logger.debug(f"Expired cookie removed: {cookie.name}")
                return
            self._cookies[key] = cookie
        logger.debug(f"Cookie stored: {cookie.name} for {key[0] or '*'}{key[1]}")

    def get_all(self) -> Dict[str, Cookie]:
        """All cookies by name; when a name is stored twice, the last added wins."""
        with self._lock:
            return {cookie.name: cookie for cookie in self._cookies.values()}

    def cookies(self) -> List[Cookie]:
        with self._lock:
            return list(self._cookies.values())

    def remove(self, name: str, domain: Optional[str] = None, path: Optional[str] = None) -> bool:
        """
        Remove cookies called ``name``, optionally only in one domain or path.

        Returns:
            True if anything was removed
        """
        with self._lock:
            keys = [
                key
                for key in self._cookies
                if key[2] == name
                and (domain is None or key[0] == domain.lower())
                and (path is None or key[1] == path)
            ]
            for key in keys:
                del self._cookies[key]
        return bool(keys)

    def clear(self) -> None:
        with self._lock:
            self._cookies.clear()

    def clear_expired(self) -> int:
        """
        Remove expired cookies.

        Returns:
            Number of cookies removed
        """
        with self._lock:
            expired = [key for key, cookie in self._cookies.items() if cookie.is_expired]
            for key in expired:
                del self._cookies[key]
        return len(expired)

    def cookies_for_url(self, url: str) -> List[Cookie]:
        """
        Cookies that should be sent with a request to ``url``.

        Args:
            url: Request URL

        Returns:
            Matching cookies, most specific path first
        """
        parsed = urlsplit(url)
        host = parsed.hostname or ""
        path = parsed.path or "/"
        is_secure = parsed.scheme == "https"

        with self._lock:
            candidates = list(self._cookies.values())

        matching = [
            cookie
            for cookie in candidates
            if not cookie.is_expired
            and cookie.matches_domain(host)
            and cookie.matches_path(path)
            and (is_secure or not cookie.secure)
        ]
        return sorted(matching, key=lambda c: len(c.path or "/"), reverse=True)

    def get_cookie_header(self, url: str) -> Optional[str]:
        """Cookie header value for ``url``, None when no cookie applies."""
        cookies = self.cookies_for_url(url)
        if not cookies:
            return None
        return "; ".join(cookie.to_header_value() for cookie in cookies)


def _add_store_cookies(request: Request) -> Request:
    url = request.current_url
    if not url:
        return request
    stored = {cookie.name: cookie for cookie in reversed(request.cookie_store.cookies_for_url(url))}
    if not stored:
        return request
    stored.update(request.cookies or {})
    return request.model_copy(update={"cookies": stored})


def _save_store_cookies(request: Request, response: Response) -> None:
    for cookie in response.cookies.values():
        if isinstance(cookie, Cookie):
            request.cookie_store.add(cookie, domain=request.host)


def wrap_cookies(handler: Handler) -> Handler:
    """
    Middleware encoding request cookies and decoding response cookies.

    With ``decode_cookies=False`` the Set-Cookie headers are left in the
    response untouched. When the request carries a ``cookie_store`` its
    matching cookies are sent along and decoded response cookies are saved
    back into it.
    """

    async def cookies_handler(request: Request) -> Optional[Response]:
        store = request.cookie_store
        outgoing = _add_store_cookies(request) if store is not None else request
        response = await handler(encode_cookie_header(outgoing))
        if response is None or request.decode_cookies is False:
            return response

        response = decode_cookie_header(response)
        if store is not None:
            _save_store_cookies(request, response)
        return response

    return cookies_handler
