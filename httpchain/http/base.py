"""
Handler and middleware types shared by every layer of the chain.

A handler turns a request into a response. A middleware wraps a handler and
returns a new one, so the outermost middleware sees the request first and
the response last.
"""

from __future__ import annotations

import functools
from typing import Awaitable, Callable, Optional

from ..models import Request, Response

Handler = Callable[[Request], Awaitable[Optional[Response]]]
Middleware = Callable[[Handler], Handler]


def request_middleware(transform: Callable[[Request], Request]) -> Middleware:
    """
    Build a middleware that only rewrites the outgoing request.

    Args:
        transform: Pure function from request to updated request

    Returns:
        Middleware applying ``transform`` before delegating
    """

    def middleware(handler: Handler) -> Handler:
        async def wrapped(request: Request) -> Optional[Response]:
            return await handler(transform(request))

        return wrapped

    functools.update_wrapper(middleware, transform, assigned=("__doc__", "__module__"))
    return middleware
