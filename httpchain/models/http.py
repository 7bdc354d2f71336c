"""
Request and response models for the httpchain pipeline.

Requests and responses are pydantic models that middleware never mutates:
each layer derives an updated copy with ``model_copy(update=...)``. Header
maps are ``CIMultiDict`` instances, so lookups are case-insensitive and
repeated header lines survive as repeated entries.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from multidict import CIMultiDict
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..url import URLParts, render_url


def to_header_map(headers: Any, lower: bool = False) -> CIMultiDict:
    """
    Build a fresh header map from any mapping of header names to values.

    List or tuple values become repeated entries, preserving their order.

    Args:
        headers: Mapping, multi-mapping or iterable of (name, value) pairs
        lower: Lower-case every header name (used for response headers)

    Returns:
        A new CIMultiDict
    """
    result: CIMultiDict = CIMultiDict()
    if not headers:
        return result

    pairs: Iterable[Any] = headers.items() if hasattr(headers, "items") else headers
    for name, value in pairs:
        name = str(name).lower() if lower else str(name)
        if isinstance(value, (list, tuple)):
            for item in value:
                result.add(name, str(item))
        elif value is not None:
            result.add(name, str(value))
    return result


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class Request(BaseModel):
    """
    A request flowing through the middleware chain.

    Unknown keyword options are kept as extra attributes so custom
    middleware can carry its own settings alongside the recognized ones.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        populate_by_name=True,
        use_enum_values=True,
        extra="allow",
    )

    # Target
    url: Optional[str] = Field(default=None, description="Absolute request URL")
    method: str = Field(default="GET", description="HTTP method")
    scheme: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    path: Optional[str] = None
    query_string: Optional[str] = None
    user_info: Optional[str] = None

    # Headers and body
    headers: Any = Field(default_factory=CIMultiDict)
    body: Any = Field(default=None, description="bytes, str, stream, Path or Entity")
    body_encoding: str = Field(default="UTF-8", description="Charset for str bodies")
    character_encoding: Optional[str] = None
    length: Optional[int] = Field(default=None, ge=0, description="Stream body length")
    content_type: Optional[str] = None
    accept: Optional[str] = None
    accept_encoding: Any = None

    # Parameters
    query_params: Optional[Dict[str, Any]] = None
    form_params: Optional[Any] = None
    form_param_encoding: Optional[str] = None
    multi_param_style: Optional[str] = None
    json_opts: Dict[str, Any] = Field(default_factory=dict)
    flatten_nested_keys: Optional[List[str]] = None
    ignore_nested_query_string: Optional[bool] = None
    flatten_nested_form_params: Optional[bool] = None

    # Authentication
    basic_auth: Any = Field(default=None, description="'user:pass' or (user, pass)")
    oauth_token: Optional[str] = None

    # Cookies
    cookies: Optional[Dict[str, Any]] = None
    cookie_store: Any = None
    decode_cookies: bool = True

    # Output coercion
    as_: Optional[str] = Field(default=None, alias="as")
    coerce: Optional[str] = None
    json_key_fn: Optional[Callable[[str], Any]] = None
    codecs: Any = None

    # Behaviour flags
    decompress_body: bool = True
    follow_redirects: bool = True
    max_redirects: Optional[int] = Field(default=20, ge=0)
    force_redirects: bool = False
    redirects_count: int = Field(default=1, ge=1)
    trace_redirects: List[str] = Field(default_factory=list)
    throw_exceptions: Optional[bool] = None
    throw_entire_message: bool = False
    unexceptional_status: Optional[Set[int]] = None
    ignore_unknown_host: bool = False
    decode_body_headers: bool = False

    # Passed through to the transport
    conn_timeout: Optional[float] = Field(default=None, gt=0)
    socket_timeout: Optional[float] = Field(default=None, gt=0)

    @field_validator("headers", mode="before")
    @classmethod
    def _headers_to_map(cls, v: Any) -> CIMultiDict:
        if isinstance(v, CIMultiDict):
            return v
        return to_header_map(v)

    @field_validator("method", "as_", "coerce", "multi_param_style", mode="before")
    @classmethod
    def _unwrap_enums(cls, v: Any) -> Any:
        return _enum_value(v)

    def with_header(self, name: str, value: Optional[str]) -> "Request":
        """Return a copy with ``name`` set to ``value`` (or removed when None)."""
        headers = CIMultiDict(self.headers)
        headers.popall(name, None)
        if value is not None:
            headers[name] = value
        return self.model_copy(update={"headers": headers})

    def option(self, name: str, default: Any = None) -> Any:
        """Read a recognized or extra option by name."""
        return getattr(self, name, default)

    @property
    def current_url(self) -> Optional[str]:
        """The URL this request targets, rendered from its parts if needed."""
        if self.url:
            return self.url
        return self.target_url

    @property
    def target_url(self) -> Optional[str]:
        """
        The URL rendered from the structured parts, which is what goes on the
        wire once the query string has been extended with ``query_params``.
        """
        if not (self.scheme and self.host):
            return self.url
        return render_url(
            URLParts(
                scheme=self.scheme,
                host=self.host,
                port=self.port,
                path=self.path or "/",
                query_string=self.query_string,
            )
        )


class Response(BaseModel):
    """A response travelling back out through the middleware chain."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="allow")

    status: int = Field(ge=100, le=599, description="HTTP status code")
    headers: Any = Field(default_factory=CIMultiDict)
    body: Any = None
    trace_redirects: List[str] = Field(default_factory=list)
    cookies: Dict[str, Any] = Field(default_factory=dict)
    orig_content_encoding: Optional[str] = None
    request_time: Optional[float] = Field(default=None, description="Milliseconds")
    links: Optional[Dict[str, Dict[str, str]]] = None
    redirects_count: Optional[int] = None

    @field_validator("headers", mode="before")
    @classmethod
    def _headers_to_map(cls, v: Any) -> CIMultiDict:
        return to_header_map(v, lower=True)

    def with_headers(self, headers: CIMultiDict) -> "Response":
        return self.model_copy(update={"headers": headers})
