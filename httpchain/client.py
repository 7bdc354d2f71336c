"""
Request facade.

:class:`Client` binds a middleware pipeline to a transport and exposes the
HTTP verbs. Module-level verb functions delegate to a lazily created default
client for one-off requests.

Example:
    ```python
    async with Client() as client:
        response = await client.get("http://example.com/api", as_="json")
        print(response.status, response.body)
    ```
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Union

from pydantic import ValidationError

from .config.models import ClientConfig, HttpChainConfig, PoolConfig
from .exceptions import InvalidArgumentError
from .http.base import Handler
from .http.coercion import Codecs
from .models import HTTPMethod, Request, Response, to_header_map
from .pipeline import DEFAULT_MIDDLEWARE, MiddlewareSpec, Pipeline
from .transport import AiohttpTransport

logger = logging.getLogger(__name__)


class Client:
    """
    An HTTP client: a transport wrapped in a middleware pipeline.

    Args:
        transport: Innermost handler; an AiohttpTransport is created (and
            owned by the client) when omitted
        middleware: Pipeline or sequence of middleware identifiers/callables
        config: Request defaults merged under every request
        codecs: JSON and literal codecs for requests that set none
        pool_config: Pool settings for the transport the client creates
    """

    def __init__(
        self,
        transport: Optional[Handler] = None,
        middleware: Union[Pipeline, Iterable[MiddlewareSpec]] = DEFAULT_MIDDLEWARE,
        config: Optional[ClientConfig] = None,
        codecs: Optional[Codecs] = None,
        pool_config: Optional[PoolConfig] = None,
    ) -> None:
        self._owns_transport = transport is None
        self.transport: Handler = transport or AiohttpTransport(pool_config)
        self.pipeline = middleware if isinstance(middleware, Pipeline) else Pipeline(middleware)
        self.config = config or ClientConfig()
        self.codecs = codecs
        self._handler = self.pipeline.wrap(self.transport)

    @classmethod
    def from_config(cls, config: HttpChainConfig, **kwargs: Any) -> "Client":
        """Build a client from a loaded HttpChainConfig."""
        return cls(config=config.client, pool_config=config.pool, **kwargs)

    def _derive(self, pipeline: Pipeline) -> "Client":
        client = Client(
            transport=self.transport,
            middleware=pipeline,
            config=self.config,
            codecs=self.codecs,
        )
        # The transport stays owned by the client that created it
        client._owns_transport = False
        return client

    def with_middleware(self, middleware: Union[Pipeline, Iterable[MiddlewareSpec]]) -> "Client":
        """A client sharing this transport but running ``middleware`` instead."""
        pipeline = middleware if isinstance(middleware, Pipeline) else Pipeline(middleware)
        return self._derive(pipeline)

    def with_additional_middleware(self, *middleware: MiddlewareSpec) -> "Client":
        """A client whose pipeline has ``middleware`` added innermost."""
        return self._derive(self.pipeline.with_additional(*middleware))

    def build_request(self, **options: Any) -> Request:
        """
        Merge ``options`` over the client defaults into a Request.

        Raises:
            InvalidArgumentError: If the URL is missing or an option is invalid
        """
        url = options.get("url")
        if url is None or (isinstance(url, str) and not url.strip()):
            raise InvalidArgumentError("Host URL cannot be empty")

        data: Dict[str, Any] = self.config.request_defaults()
        if self.codecs is not None:
            data["codecs"] = self.codecs

        # Per-request headers replace defaults of the same name
        headers = to_header_map(data.pop("headers", None))
        overrides = to_header_map(options.pop("headers", None))
        for name in set(overrides.keys()):
            headers.popall(name, None)
        headers.extend(overrides)
        data.update(options)

        try:
            return Request(**data, headers=headers)
        except ValidationError as e:
            raise InvalidArgumentError(f"Invalid request options: {e}", url=url) from e

    async def request(self, **options: Any) -> Optional[Response]:
        """
        Execute a request through the pipeline.

        Returns:
            The response, or None when an unknown host was ignored
        """
        request = self.build_request(**options)
        logger.debug(f"{request.method} {request.url}")
        return await self._handler(request)

    async def get(self, url: Optional[str], **options: Any) -> Optional[Response]:
        return await self.request(method=HTTPMethod.GET, url=url, **options)

    async def head(self, url: Optional[str], **options: Any) -> Optional[Response]:
        return await self.request(method=HTTPMethod.HEAD, url=url, **options)

    async def post(self, url: Optional[str], **options: Any) -> Optional[Response]:
        return await self.request(method=HTTPMethod.POST, url=url, **options)

    async def put(self, url: Optional[str], **options: Any) -> Optional[Response]:
        return await self.request(method=HTTPMethod.PUT, url=url, **options)

    async def delete(self, url: Optional[str], **options: Any) -> Optional[Response]:
        return await self.request(method=HTTPMethod.DELETE, url=url, **options)

    async def options(self, url: Optional[str], **options: Any) -> Optional[Response]:
        return await self.request(method=HTTPMethod.OPTIONS, url=url, **options)

    async def patch(self, url: Optional[str], **options: Any) -> Optional[Response]:
        return await self.request(method=HTTPMethod.PATCH, url=url, **options)

    async def copy(self, url: Optional[str], **options: Any) -> Optional[Response]:
        return await self.request(method=HTTPMethod.COPY, url=url, **options)

    async def move(self, url: Optional[str], **options: Any) -> Optional[Response]:
        return await self.request(method=HTTPMethod.MOVE, url=url, **options)

    async def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            close = getattr(self.transport, "close", None)
            if close is not None:
                await close()

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


_default_client: Optional[Client] = None


def default_client() -> Client:
    """The shared client behind the module-level verb functions."""
    global _default_client
    if _default_client is None:
        _default_client = Client()
    return _default_client


async def close_default_client() -> None:
    """Close the shared client; a later call creates a fresh one."""
    global _default_client
    if _default_client is not None:
        client, _default_client = _default_client, None
        await client.close()


async def request(**options: Any) -> Optional[Response]:
    return await default_client().request(**options)


async def get(url: Optional[str], **options: Any) -> Optional[Response]:
    return await default_client().get(url, **options)


async def head(url: Optional[str], **options: Any) -> Optional[Response]:
    return await default_client().head(url, **options)


async def post(url: Optional[str], **options: Any) -> Optional[Response]:
    return await default_client().post(url, **options)


async def put(url: Optional[str], **options: Any) -> Optional[Response]:
    return await default_client().put(url, **options)


async def delete(url: Optional[str], **options: Any) -> Optional[Response]:
    return await default_client().delete(url, **options)


async def options(url: Optional[str], **options: Any) -> Optional[Response]:
    return await default_client().options(url, **options)


async def patch(url: Optional[str], **options: Any) -> Optional[Response]:
    return await default_client().patch(url, **options)


async def copy(url: Optional[str], **options: Any) -> Optional[Response]:
    return await default_client().copy(url, **options)


async def move(url: Optional[str], **options: Any) -> Optional[Response]:
    return await default_client().move(url, **options)
