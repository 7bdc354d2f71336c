"""
Models package for httpchain.

Re-exports the request/response models and the shared enums.
"""

from .base import BaseConfig, CoercePolicy, HTTPMethod, MultiParamStyle, OutputFormat
from .http import Request, Response, to_header_map

__all__ = [
    "BaseConfig",
    "CoercePolicy",
    "HTTPMethod",
    "MultiParamStyle",
    "OutputFormat",
    "Request",
    "Response",
    "to_header_map",
]
