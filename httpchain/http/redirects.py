"""
Redirect following.

Each response is turned into an explicit decision: follow with a new request
(:class:`Continue`), hand the response back (:class:`Stop`) or give up with
an error (:class:`Fail`). The middleware loops over hops, running the whole
inner chain again for every one, and only raises at its own boundary.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Union

from ..exceptions import HttpChainError, TooManyRedirectsError
from ..models import HTTPMethod, Request, Response
from ..url import parse_url, resolve_url
from ..utils.streams import close_body
from .base import Handler
from .coercion import Entity

logger = logging.getLogger(__name__)

DEFAULT_MAX_REDIRECTS = 20

_GET_LIKE = frozenset({HTTPMethod.GET.value, HTTPMethod.HEAD.value})


def is_replayable(body: Any) -> bool:
    """True when ``body`` can be sent again on a later hop."""
    if isinstance(body, Entity):
        body = body.content
    return body is None or isinstance(body, (bytes, bytearray, memoryview, str, Path))


@dataclass(frozen=True)
class Continue:
    """Follow the redirect with ``request``."""

    request: Request


@dataclass(frozen=True)
class Stop:
    """Return ``response`` to the caller."""

    response: Response


@dataclass(frozen=True)
class Fail:
    """Abandon the chain with ``error``."""

    error: HttpChainError


RedirectDecision = Union[Continue, Stop, Fail]


def follow_redirect_request(
    request: Request,
    location: str,
    trace: List[str],
    method: Optional[str] = None,
) -> Request:
    """
    Build the request for the next hop.

    ``query_params`` are dropped since the Location already carries the
    query. When the method changes to GET the body goes too.
    """
    method = (method or request.method).upper()
    update = parse_url(location).as_update()
    update.update(
        {
            "url": location,
            "method": method,
            "query_params": None,
            "trace_redirects": trace,
            "redirects_count": request.redirects_count + 1,
        }
    )
    if method == HTTPMethod.GET.value and request.method.upper() != method:
        update.update({"body": None, "form_params": None, "length": None})
    return request.model_copy(update=update)


def _follow(request: Request, response: Response, method: Optional[str] = None) -> RedirectDecision:
    raw_location = response.headers.get("location")
    if not raw_location:
        logger.debug(f"Redirect {response.status} without Location, returning it as is")
        return Stop(response)

    location = resolve_url(request.current_url or "", raw_location)
    # A stream body was consumed by the first hop and cannot be sent again
    next_method = (method or request.method).upper()
    drops_body = next_method == HTTPMethod.GET.value and request.method.upper() != next_method
    if not drops_body and not is_replayable(request.body):
        logger.debug(
            f"Not following {response.status} redirect to {location}: the request body was a stream"
        )
        return Stop(response)

    logger.debug(
        f"Following {response.status} redirect #{request.redirects_count} to {location}"
    )
    return Continue(
        follow_redirect_request(request, location, list(response.trace_redirects), method)
    )


def redirect_decision(request: Request, response: Response) -> RedirectDecision:
    """
    Decide what to do with ``response``.

    Args:
        request: The request that produced the response
        response: The response, with ``trace_redirects`` already updated

    Returns:
        A Continue, Stop or Fail decision
    """
    status = response.status
    method = request.method.upper()

    if request.follow_redirects is False:
        return Stop(response)
    if status not in (301, 302, 303, 307):
        return Stop(response)

    max_redirects = request.max_redirects
    if max_redirects is not None and request.redirects_count > max_redirects:
        if request.throw_exceptions:
            return Fail(
                TooManyRedirectsError(
                    request.redirects_count, response=response, url=request.current_url
                )
            )
        return Stop(response)

    if status == 303:
        return _follow(request, response, HTTPMethod.GET.value)

    if status in (301, 302):
        if method in _GET_LIKE:
            return _follow(request, response)
        if request.force_redirects:
            return _follow(request, response, HTTPMethod.GET.value)
        return Stop(response)

    # 307 keeps the method and body
    if method in _GET_LIKE or request.force_redirects:
        return _follow(request, response)
    return Stop(response)


def wrap_redirects(handler: Handler) -> Handler:
    """
    Middleware following 301, 302, 303 and 307 redirects.

    ``response.trace_redirects`` lists every URL requested, the first one
    included. The body of each intermediate response is closed before the
    next hop.

    Raises:
        TooManyRedirectsError: When ``max_redirects`` is exceeded and
            ``throw_exceptions`` is set
    """

    async def redirects_handler(request: Request) -> Optional[Response]:
        current = request
        while True:
            response = await handler(current)
            if response is None:
                return None

            trace = list(current.trace_redirects)
            if current.current_url:
                trace.append(current.current_url)
            response = response.model_copy(
                update={"trace_redirects": trace, "redirects_count": current.redirects_count}
            )

            decision = redirect_decision(current, response)
            if isinstance(decision, Continue):
                await close_body(response.body)
                current = decision.request
            elif isinstance(decision, Fail):
                raise decision.error
            else:
                return decision.response

    return redirects_handler
