"""
Middleware for the httpchain request pipeline.

Each ``wrap_*`` function takes a handler and returns a new handler adding
one behaviour: header shaping, authentication, parameters, cookies,
redirects, decompression, body coercion and the exception policy.
"""

from .auth import basic_auth_value, wrap_basic_auth, wrap_oauth, wrap_user_info
from .base import Handler, Middleware, request_middleware
from .coercion import (
    DEFAULT_CODECS,
    LITERAL_CONTENT_TYPE,
    Codecs,
    Entity,
    LiteralCodec,
    StdlibJsonCodec,
    coerce_request_body,
    coerce_response_body,
    register_content_type_coercion,
    register_output_coercion,
    wrap_input_coercion,
    wrap_output_coercion,
)
from .cookies import (
    Cookie,
    CookieJar,
    CookieStore,
    decode_cookie_header,
    decode_set_cookie,
    encode_cookie_header,
    wrap_cookies,
)
from .decompression import wrap_decompression
from .headers import (
    canonicalize,
    content_type_value,
    wrap_accept,
    wrap_accept_encoding,
    wrap_content_type,
    wrap_header_map,
)
from .links import read_link_headers, wrap_links
from .middleware import (
    wrap_additional_header_parsing,
    wrap_method,
    wrap_request_timing,
    wrap_unknown_host,
    wrap_url,
)
from .params import (
    generate_query_string,
    wrap_flatten_nested_params,
    wrap_form_params,
    wrap_nested_params,
    wrap_query_params,
)
from .redirects import Continue, Fail, Stop, redirect_decision, wrap_redirects
from .status import (
    UNEXCEPTIONAL_STATUS,
    is_client_error,
    is_conflict,
    is_missing,
    is_redirect,
    is_server_error,
    is_success,
    is_unexceptional,
    wrap_exceptions,
)

__all__ = [
    # Types
    "Handler",
    "Middleware",
    "request_middleware",
    # Auth
    "basic_auth_value",
    "wrap_basic_auth",
    "wrap_oauth",
    "wrap_user_info",
    # Coercion
    "DEFAULT_CODECS",
    "LITERAL_CONTENT_TYPE",
    "Codecs",
    "Entity",
    "LiteralCodec",
    "StdlibJsonCodec",
    "coerce_request_body",
    "coerce_response_body",
    "register_content_type_coercion",
    "register_output_coercion",
    "wrap_input_coercion",
    "wrap_output_coercion",
    # Cookies
    "Cookie",
    "CookieJar",
    "CookieStore",
    "decode_cookie_header",
    "decode_set_cookie",
    "encode_cookie_header",
    "wrap_cookies",
    # Headers
    "canonicalize",
    "content_type_value",
    "wrap_accept",
    "wrap_accept_encoding",
    "wrap_content_type",
    "wrap_header_map",
    # Links
    "read_link_headers",
    "wrap_links",
    # Misc
    "wrap_additional_header_parsing",
    "wrap_decompression",
    "wrap_method",
    "wrap_request_timing",
    "wrap_unknown_host",
    "wrap_url",
    # Params
    "generate_query_string",
    "wrap_flatten_nested_params",
    "wrap_form_params",
    "wrap_nested_params",
    "wrap_query_params",
    # Redirects
    "Continue",
    "Fail",
    "Stop",
    "redirect_decision",
    "wrap_redirects",
    # Status
    "UNEXCEPTIONAL_STATUS",
    "is_client_error",
    "is_conflict",
    "is_missing",
    "is_redirect",
    "is_server_error",
    "is_success",
    "is_unexceptional",
    "wrap_exceptions",
]
