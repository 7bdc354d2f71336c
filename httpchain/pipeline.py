"""
Middleware composition.

A :class:`Pipeline` is an immutable, ordered list of middleware. Wrapping a
transport with ``[m1, m2, ..., mn]`` yields ``m1(m2(...mn(transport)))``:
``m1`` sees the request first and the response last.

Middleware can be named by identifier through the :data:`MIDDLEWARE`
registry, so a reduced or extended chain can be described as plain data.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, Tuple, Union

from .exceptions import InvalidArgumentError
from .http.auth import wrap_basic_auth, wrap_oauth, wrap_user_info
from .http.base import Handler, Middleware
from .http.coercion import wrap_input_coercion, wrap_output_coercion
from .http.cookies import wrap_cookies
from .http.decompression import wrap_decompression
from .http.headers import wrap_accept, wrap_accept_encoding, wrap_content_type, wrap_header_map
from .http.links import wrap_links
from .http.middleware import (
    wrap_additional_header_parsing,
    wrap_method,
    wrap_request_timing,
    wrap_unknown_host,
    wrap_url,
)
from .http.params import (
    wrap_flatten_nested_params,
    wrap_form_params,
    wrap_nested_params,
    wrap_query_params,
)
from .http.redirects import wrap_redirects
from .http.status import wrap_exceptions

MiddlewareSpec = Union[str, Middleware]

MIDDLEWARE: Dict[str, Middleware] = {
    "request_timing": wrap_request_timing,
    "unknown_host": wrap_unknown_host,
    "header_map": wrap_header_map,
    "method": wrap_method,
    "url": wrap_url,
    "user_info": wrap_user_info,
    "basic_auth": wrap_basic_auth,
    "oauth": wrap_oauth,
    "accept": wrap_accept,
    "accept_encoding": wrap_accept_encoding,
    "links": wrap_links,
    "redirects": wrap_redirects,
    "exceptions": wrap_exceptions,
    "cookies": wrap_cookies,
    "output_coercion": wrap_output_coercion,
    "additional_header_parsing": wrap_additional_header_parsing,
    "decompression": wrap_decompression,
    "flatten_nested_params": wrap_flatten_nested_params,
    "nested_params": wrap_nested_params,
    "query_params": wrap_query_params,
    "form_params": wrap_form_params,
    "input_coercion": wrap_input_coercion,
    "content_type": wrap_content_type,
}

# Outermost first. Redirects wrap everything that must re-run per hop, the
# exception check sits outside output coercion, and parameters are encoded
# after the method and URL are normalized.
DEFAULT_MIDDLEWARE: Tuple[str, ...] = (
    "request_timing",
    "unknown_host",
    "header_map",
    "method",
    "url",
    "user_info",
    "basic_auth",
    "oauth",
    "accept",
    "accept_encoding",
    "links",
    "redirects",
    "exceptions",
    "cookies",
    "output_coercion",
    "additional_header_parsing",
    "decompression",
    "flatten_nested_params",
    "nested_params",
    "query_params",
    "form_params",
    "input_coercion",
    "content_type",
)


def register_middleware(name: str, middleware: Middleware) -> Middleware:
    """Make ``middleware`` addressable as ``name`` in pipeline definitions."""
    MIDDLEWARE[name] = middleware
    return middleware


def resolve_middleware(spec: MiddlewareSpec) -> Middleware:
    """
    Look up a middleware by identifier, or pass a callable through.

    Raises:
        InvalidArgumentError: For unknown identifiers
    """
    if callable(spec):
        return spec
    try:
        return MIDDLEWARE[spec]
    except KeyError:
        raise InvalidArgumentError(f"Unknown middleware: {spec!r}") from None


def _name(spec: MiddlewareSpec) -> str:
    if isinstance(spec, str):
        return spec
    for name, middleware in MIDDLEWARE.items():
        if middleware is spec:
            return name
    return getattr(spec, "__name__", repr(spec))


class Pipeline:
    """
    An immutable, ordered middleware chain.

    Example:
        ```python
        pipeline = Pipeline(["url", "redirects", "output_coercion"])
        handler = pipeline.wrap(transport)
        response = await handler(Request(url="http://example.com/"))
        ```
    """

    def __init__(self, middleware: Iterable[MiddlewareSpec] = DEFAULT_MIDDLEWARE) -> None:
        specs = tuple(middleware)
        # Resolve eagerly so a typo fails at construction
        self._middleware: Tuple[Middleware, ...] = tuple(resolve_middleware(s) for s in specs)
        self._specs: Tuple[MiddlewareSpec, ...] = specs

    @property
    def middleware(self) -> Tuple[Middleware, ...]:
        return self._middleware

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(_name(spec) for spec in self._specs)

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._middleware)

    def __repr__(self) -> str:
        return f"Pipeline({list(self.names)!r})"

    def wrap(self, transport: Handler) -> Handler:
        """Compose the chain around ``transport``; the first entry ends up outermost."""
        handler = transport
        for middleware in reversed(self._middleware):
            handler = middleware(handler)
        return handler

    def with_additional(self, *middleware: MiddlewareSpec) -> "Pipeline":
        """New pipeline with ``middleware`` added innermost, just before the transport."""
        return Pipeline(self._specs + tuple(middleware))

    def with_outer(self, *middleware: MiddlewareSpec) -> "Pipeline":
        """New pipeline with ``middleware`` added outermost."""
        return Pipeline(tuple(middleware) + self._specs)

    def without(self, *middleware: MiddlewareSpec) -> "Pipeline":
        """New pipeline lacking the given identifiers or callables."""
        removed = {resolve_middleware(m) for m in middleware}
        return Pipeline(
            spec for spec in self._specs if resolve_middleware(spec) not in removed
        )
