"""
Query and form parameter middleware.

Structured ``query_params`` are rendered onto the query string and
``form_params`` into a request body (url-encoded, JSON or Python literal,
chosen from the content type). Nested mappings can be flattened into
``a[b][c]`` style keys first.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..exceptions import InvalidArgumentError
from ..models import MultiParamStyle, Request
from ..utils.encoding import detect_charset, url_encode
from .base import request_middleware
from .coercion import LITERAL_CONTENT_TYPE, get_codecs
from .headers import content_type_value

FORM_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

DEFAULT_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _multi_param_suffix(index: int, style: Optional[str]) -> str:
    if style == MultiParamStyle.INDEXED.value:
        return f"[{index}]"
    if style == MultiParamStyle.ARRAY.value:
        return "[]"
    return ""


def _param_pairs(params: Any) -> Iterable[Tuple[Any, Any]]:
    return params.items() if hasattr(params, "items") else params


def _param_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(getattr(value, "value", value))


def generate_query_string_with_encoding(
    params: Any, encoding: str, multi_param_style: Optional[str] = None
) -> str:
    """
    Render ``params`` as ``k=v`` pairs joined by ``&``.

    List and tuple values expand into one pair per item, named according to
    ``multi_param_style``: ``a=1&a=2`` (repeat), ``a[0]=1&a[1]=2``
    (indexed) or ``a[]=1&a[]=2`` (array).
    """
    parts: List[str] = []
    for key, value in _param_pairs(params):
        name = url_encode(_param_str(key), encoding)
        if isinstance(value, (list, tuple)):
            for i, item in enumerate(value):
                suffix = _multi_param_suffix(i, multi_param_style)
                parts.append(f"{name}{suffix}={url_encode(_param_str(item), encoding)}")
        else:
            parts.append(f"{name}={url_encode(_param_str(value), encoding)}")
    return "&".join(parts)


def generate_query_string(
    params: Any,
    content_type: Optional[str] = None,
    multi_param_style: Optional[str] = None,
) -> str:
    """Like :func:`generate_query_string_with_encoding`, charset taken from ``content_type``."""
    return generate_query_string_with_encoding(
        params, detect_charset(content_type), multi_param_style
    )


def query_params_request(request: Request) -> Request:
    """Append ``query_params`` to the request's query string."""
    if not request.query_params:
        return request

    new_query = generate_query_string(
        request.query_params,
        content_type_value(request.content_type or DEFAULT_FORM_CONTENT_TYPE),
        request.multi_param_style,
    )
    old_query = request.query_string
    query = f"{old_query}&{new_query}" if old_query else new_query
    return request.model_copy(
        update={"query_string": query or None, "query_params": None}
    )


def coerce_form_params(request: Request) -> str:
    """Encode ``form_params`` according to the request content type."""
    content_type = content_type_value(request.content_type or DEFAULT_FORM_CONTENT_TYPE)
    mime_type = content_type.split(";")[0].strip().lower()
    codecs = get_codecs(request)

    if mime_type == "application/json":
        return codecs.json.dumps(request.form_params, **(request.json_opts or {}))
    if mime_type == LITERAL_CONTENT_TYPE:
        return codecs.literal.dumps(request.form_params)

    if request.form_param_encoding:
        return generate_query_string_with_encoding(
            request.form_params, request.form_param_encoding, request.multi_param_style
        )
    return generate_query_string(request.form_params, content_type, request.multi_param_style)


def form_params_request(request: Request) -> Request:
    """Encode ``form_params`` into the body of POST, PUT, PATCH and DELETE requests."""
    if not request.form_params or request.method.upper() not in FORM_METHODS:
        return request
    return request.model_copy(
        update={
            "body": coerce_form_params(request),
            "content_type": content_type_value(
                request.content_type or DEFAULT_FORM_CONTENT_TYPE
            ),
            "form_params": None,
        }
    )


def flatten_nested(params: Mapping[str, Any], prefix: Optional[str] = None) -> Dict[str, Any]:
    """
    Flatten nested mappings into bracketed keys.

    ``{"a": {"b": {"c": 1}}, "d": 2}`` becomes ``{"a[b][c]": 1, "d": 2}``.
    """
    flat: Dict[str, Any] = {}
    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix is not None else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten_nested(value, name))
        else:
            flat[name] = value
    return flat


def nested_params_request(request: Request) -> Request:
    """Flatten each parameter field named in ``flatten_nested_keys``."""
    keys = request.flatten_nested_keys
    if not keys:
        return request

    update: Dict[str, Any] = {}
    for key in keys:
        params = getattr(request, key, None)
        if isinstance(params, Mapping):
            update[key] = flatten_nested(params)
    return request.model_copy(update=update) if update else request


def nested_keys_to_flatten(request: Request) -> List[str]:
    """
    Which parameter fields get flattened.

    Query params are flattened unless ``ignore_nested_query_string`` is set;
    form params only with ``flatten_nested_form_params``.

    Raises:
        InvalidArgumentError: If ``flatten_nested_keys`` is combined with
            either flag
    """
    if request.flatten_nested_keys is not None and (
        request.ignore_nested_query_string is not None
        or request.flatten_nested_form_params is not None
    ):
        raise InvalidArgumentError(
            "only flatten_nested_keys or ignore_nested_query_string/"
            "flatten_nested_form_params may be specified, not both"
        )
    if request.flatten_nested_keys is not None:
        return list(request.flatten_nested_keys)

    keys = []
    if not request.ignore_nested_query_string:
        keys.append("query_params")
    if request.flatten_nested_form_params:
        keys.append("form_params")
    return keys


def flatten_nested_params_request(request: Request) -> Request:
    return request.model_copy(
        update={"flatten_nested_keys": nested_keys_to_flatten(request)}
    )


wrap_query_params = request_middleware(query_params_request)
wrap_form_params = request_middleware(form_params_request)
wrap_nested_params = request_middleware(nested_params_request)
wrap_flatten_nested_params = request_middleware(flatten_nested_params_request)
