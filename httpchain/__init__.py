"""
Composable async HTTP client built from middleware.

A request is a pydantic model passed through an ordered chain of middleware
wrapped around a transport. Each middleware adds one behaviour on the way
out or on the way back:

- Header canonicalization, Accept/Content-Type shorthands
- Basic, OAuth bearer and URL user-info authentication
- Query and form parameter encoding, nested parameter flattening
- Cookie encoding/decoding with an optional cookie jar
- Redirect following with a redirect trace
- gzip/deflate decompression
- Output coercion to bytes, text, JSON, Python literals or streams
- Exceptions for unexceptional statuses, Link header parsing, timing
"""

from .client import (
    Client,
    close_default_client,
    copy,
    default_client,
    delete,
    get,
    head,
    move,
    options,
    patch,
    post,
    put,
    request,
)
from .config import ClientConfig, HttpChainConfig, LoggingConfig, PoolConfig, load_config
from .exceptions import (
    AuthenticationError,
    ConnectionPoolTimeoutError,
    ConnectTimeoutError,
    DecompressionError,
    EncodingError,
    ErrorHandler,
    HttpChainError,
    HttpStatusError,
    InvalidArgumentError,
    MalformedUrlError,
    NotFoundError,
    ParseError,
    PoolExhaustedError,
    RateLimitError,
    RequestTimeoutError,
    ServerError,
    SocketTimeoutError,
    TooManyRedirectsError,
    TransportError,
    UnknownHostError,
    UnsupportedBodyTypeError,
)
from .http import (
    Codecs,
    Cookie,
    CookieJar,
    Entity,
    register_content_type_coercion,
    register_output_coercion,
)
from .logging import setup_logging
from .models import CoercePolicy, HTTPMethod, MultiParamStyle, OutputFormat, Request, Response
from .pipeline import DEFAULT_MIDDLEWARE, MIDDLEWARE, Pipeline, register_middleware
from .transport import AiohttpTransport, Transport
from .url import URLParts, parse_url

__version__ = "0.1.0"

__all__ = [
    # Client
    "Client",
    "close_default_client",
    "default_client",
    "request",
    "get",
    "head",
    "post",
    "put",
    "delete",
    "options",
    "patch",
    "copy",
    "move",
    # Pipeline
    "DEFAULT_MIDDLEWARE",
    "MIDDLEWARE",
    "Pipeline",
    "register_middleware",
    # Transport
    "AiohttpTransport",
    "Transport",
    # Models
    "CoercePolicy",
    "HTTPMethod",
    "MultiParamStyle",
    "OutputFormat",
    "Request",
    "Response",
    "URLParts",
    "parse_url",
    # Middleware extras
    "Codecs",
    "Cookie",
    "CookieJar",
    "Entity",
    "register_content_type_coercion",
    "register_output_coercion",
    # Configuration
    "ClientConfig",
    "HttpChainConfig",
    "LoggingConfig",
    "PoolConfig",
    "load_config",
    "setup_logging",
    # Exceptions
    "AuthenticationError",
    "ConnectionPoolTimeoutError",
    "ConnectTimeoutError",
    "DecompressionError",
    "EncodingError",
    "ErrorHandler",
    "HttpChainError",
    "HttpStatusError",
    "InvalidArgumentError",
    "MalformedUrlError",
    "NotFoundError",
    "ParseError",
    "PoolExhaustedError",
    "RateLimitError",
    "RequestTimeoutError",
    "ServerError",
    "SocketTimeoutError",
    "TooManyRedirectsError",
    "TransportError",
    "UnknownHostError",
    "UnsupportedBodyTypeError",
]
