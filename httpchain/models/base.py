"""
Base models and common types for the httpchain library.

This module contains the enums shared by the middleware and the base
configuration model.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class HTTPMethod(str, Enum):
    """HTTP methods the request facade exposes."""

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    PATCH = "PATCH"
    COPY = "COPY"
    MOVE = "MOVE"


class OutputFormat(str, Enum):
    """
    Built-in output coercion formats, selected with the ``as_`` option.

    Any ``as_`` string that is not one of these (and not a registered custom
    format) is treated as a charset name for plain text decoding.
    """

    BYTE_ARRAY = "byte-array"  # Raw bytes, no decoding
    STREAM = "stream"  # Open byte stream, caller closes it
    JSON = "json"  # JSON, object keys passed through json_key_fn
    JSON_STRICT = "json-strict"
    JSON_STRING_KEYS = "json-string-keys"  # JSON, keys left as strings
    JSON_STRICT_STRING_KEYS = "json-strict-string-keys"
    LITERAL = "literal"  # Safe structured literal syntax, never evaluated
    FORM_URLENCODED = "x-www-form-urlencoded"  # Decoded into a dict
    AUTO = "auto"  # Chosen from the Content-Type header


class CoercePolicy(str, Enum):
    """When a structured output format actually decodes the body."""

    ALWAYS = "always"
    UNEXCEPTIONAL = "unexceptional"
    EXCEPTIONAL = "exceptional"


class MultiParamStyle(str, Enum):
    """How repeated query/form parameter values are named."""

    REPEAT = "repeat"  # a=1&a=2
    INDEXED = "indexed"  # a[0]=1&a[1]=2
    ARRAY = "array"  # a[]=1&a[]=2


class BaseConfig(BaseModel):
    """Base configuration class with common validation settings."""

    model_config = ConfigDict(
        use_enum_values=True, validate_assignment=True, extra="forbid"
    )
