"""
Status classification and the exception policy middleware.
"""

from __future__ import annotations

import logging
from typing import Optional, Set

from ..exceptions import ErrorHandler
from ..models import Request, Response
from ..utils.streams import force_bytes, is_stream
from .base import Handler

logger = logging.getLogger(__name__)

UNEXCEPTIONAL_STATUS: Set[int] = {200, 201, 202, 203, 204, 205, 206, 207, 300, 301, 302, 303, 307}

REDIRECT_STATUS: Set[int] = {301, 302, 303, 307}


def is_unexceptional(request: Request, status: int) -> bool:
    """Whether ``status`` counts as success for this request."""
    allowed = request.unexceptional_status or UNEXCEPTIONAL_STATUS
    return status in allowed


def is_success(response: Response) -> bool:
    return 200 <= response.status < 300


def is_missing(response: Response) -> bool:
    return response.status == 404


def is_conflict(response: Response) -> bool:
    return response.status == 409


def is_redirect(response: Response) -> bool:
    return response.status in REDIRECT_STATUS


def is_client_error(response: Response) -> bool:
    return 400 <= response.status < 500


def is_server_error(response: Response) -> bool:
    return 500 <= response.status < 600


def status_message(request: Request, response: Response) -> str:
    """Error message for an exceptional response."""
    if request.throw_entire_message:
        headers = dict(response.headers.items())
        return f"status {response.status} headers {headers} body {response.body!r}"
    return f"status {response.status}"


def exceptions_response(request: Request, response: Response) -> Response:
    """
    Raise for exceptional statuses unless ``throw_exceptions`` is False.

    Raises:
        HttpStatusError: Carrying the full (already coerced) response
    """
    if request.throw_exceptions is False or is_unexceptional(request, response.status):
        return response

    url = request.current_url
    logger.debug(f"Exceptional status {response.status} from {url}")
    raise ErrorHandler.handle_http_status_error(
        response, status_message(request, response), url
    )


def wrap_exceptions(handler: Handler) -> Handler:
    """
    Middleware raising HttpStatusError for responses outside the unexceptional set.

    A streamed body is read into memory before raising, so the error never
    holds an open connection.
    """

    async def exceptions_handler(request: Request) -> Optional[Response]:
        response = await handler(request)
        if response is None:
            return response
        if (
            request.throw_exceptions is not False
            and not is_unexceptional(request, response.status)
            and is_stream(response.body)
        ):
            response = response.model_copy(update={"body": await force_bytes(response.body)})
        return exceptions_response(request, response)

    return exceptions_handler
