"""
Transport collaborators.

A transport is the innermost handler: it takes a fully normalized request
(scheme, host, path, headers, entity body) and performs the HTTP exchange,
returning a response with lower-cased header names and a raw body. It
never follows redirects or decodes bodies; the middleware does that.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Protocol

import aiohttp
from multidict import CIMultiDict
from yarl import URL

from .config.models import PoolConfig
from .exceptions import ConnectionPoolTimeoutError, ErrorHandler, InvalidArgumentError
from .http.coercion import Entity
from .models import OutputFormat, Request, Response
from .utils.streams import ResponseStream

logger = logging.getLogger(__name__)

_NO_BODY_STATUS = frozenset({204, 304})


class Transport(Protocol):
    """Anything awaitable as ``transport(request) -> response``."""

    async def __call__(self, request: Request) -> Response:
        ...


def _request_data(request: Request, headers: CIMultiDict) -> Any:
    body = request.body
    if body is None:
        return None
    if isinstance(body, Entity):
        if not isinstance(body.content, (bytes, bytearray)) and body.length is not None:
            headers.setdefault("Content-Length", str(body.length))
        return body.content
    return body


class AiohttpTransport:
    """
    Transport on top of an aiohttp ``ClientSession``.

    The session and its ``TCPConnector`` are created lazily on first use.
    Concurrency is bounded by the connector limits and by a checkout
    semaphore; waiting longer than ``pool_timeout`` for a slot raises
    ConnectionPoolTimeoutError. A slot is held until the body is read, or
    for streamed bodies until the caller closes the stream.
    """

    def __init__(self, config: Optional[PoolConfig] = None) -> None:
        self.config = config or PoolConfig()
        self._session: Optional[aiohttp.ClientSession] = None
        self._slots = asyncio.Semaphore(self.config.max_connections)
        self._lock = asyncio.Lock()
        self._closed = False

    async def _get_session(self) -> aiohttp.ClientSession:
        async with self._lock:
            if self._session is None or self._session.closed:
                connector = aiohttp.TCPConnector(
                    limit=self.config.max_connections,
                    limit_per_host=self.config.max_connections_per_host,
                    keepalive_timeout=self.config.keepalive_timeout,
                    ssl=self.config.verify_ssl,
                )
                self._session = aiohttp.ClientSession(
                    connector=connector,
                    auto_decompress=False,
                    raise_for_status=False,
                    skip_auto_headers={"Accept-Encoding"},
                )
            return self._session

    async def _acquire_slot(self, url: Optional[str]) -> None:
        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=self.config.pool_timeout)
        except asyncio.TimeoutError:
            raise ConnectionPoolTimeoutError(
                f"No connection available within {self.config.pool_timeout}s", url=url
            ) from None

    def _release_slot(self) -> None:
        self._slots.release()

    async def __call__(self, request: Request) -> Response:
        if self._closed:
            raise InvalidArgumentError("Transport is closed")

        url = request.target_url
        if not url:
            raise InvalidArgumentError("Request has no target URL")

        headers = CIMultiDict(request.headers)
        data = _request_data(request, headers)
        timeout = aiohttp.ClientTimeout(
            total=None,
            sock_connect=request.conn_timeout,
            sock_read=request.socket_timeout,
        )

        session = await self._get_session()
        await self._acquire_slot(url)
        try:
            resp = await session.request(
                request.method,
                URL(url, encoded=True),
                headers=headers,
                data=data,
                allow_redirects=False,
                timeout=timeout,
            )
        except asyncio.CancelledError:
            self._release_slot()
            raise
        except Exception as e:
            self._release_slot()
            error = ErrorHandler.handle_aiohttp_error(e, url)
            logger.debug(f"{request.method} {url} failed: {error}")
            raise error from e

        response_headers = [(name.lower(), value) for name, value in resp.headers.items()]
        logger.debug(f"{request.method} {url} -> {resp.status}")

        if request.method == "HEAD" or resp.status in _NO_BODY_STATUS:
            resp.release()
            self._release_slot()
            return Response(status=resp.status, headers=response_headers, body=None)

        if request.as_ == OutputFormat.STREAM.value:
            body = ResponseStream(resp, on_close=self._release_slot)
            return Response(status=resp.status, headers=response_headers, body=body)

        try:
            body = await resp.read()
        except Exception as e:
            raise ErrorHandler.handle_aiohttp_error(e, url) from e
        finally:
            resp.release()
            self._release_slot()
        return Response(status=resp.status, headers=response_headers, body=body)

    async def close(self) -> None:
        """Close the session and every pooled connection."""
        self._closed = True
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "AiohttpTransport":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
