"""
Authentication middleware: basic auth, OAuth bearer tokens and URL
user-info.
"""

from __future__ import annotations

from typing import Any, Optional

from ..exceptions import InvalidArgumentError
from ..utils.encoding import base64_encode, utf8_bytes
from ..models import Request
from .base import request_middleware


def basic_auth_value(basic_auth: Any) -> str:
    """
    Authorization header value for ``"user:pass"`` or ``(user, pass)``.

    Raises:
        InvalidArgumentError: For any other shape
    """
    if isinstance(basic_auth, (list, tuple)):
        if len(basic_auth) != 2:
            raise InvalidArgumentError(
                "basic_auth must be 'user:password' or a (user, password) pair"
            )
        basic_auth = f"{basic_auth[0]}:{basic_auth[1]}"
    if not isinstance(basic_auth, str):
        raise InvalidArgumentError(
            "basic_auth must be 'user:password' or a (user, password) pair"
        )
    return "Basic " + base64_encode(utf8_bytes(basic_auth))


def basic_auth_request(request: Request) -> Request:
    """Turn ``basic_auth`` into an Authorization header."""
    if not request.basic_auth:
        return request
    return request.with_header(
        "Authorization", basic_auth_value(request.basic_auth)
    ).model_copy(update={"basic_auth": None})


def oauth_request(request: Request) -> Request:
    """Turn ``oauth_token`` into a Bearer Authorization header."""
    if not request.oauth_token:
        return request
    return request.with_header(
        "Authorization", f"Bearer {request.oauth_token}"
    ).model_copy(update={"oauth_token": None})


def user_info_request(request: Request) -> Request:
    """Use credentials embedded in the URL as basic auth."""
    user_info: Optional[str] = request.user_info
    if not user_info or request.basic_auth:
        return request
    user, _, password = user_info.partition(":")
    return request.model_copy(update={"basic_auth": (user, password)})


wrap_basic_auth = request_middleware(basic_auth_request)
wrap_oauth = request_middleware(oauth_request)
wrap_user_info = request_middleware(user_info_request)
