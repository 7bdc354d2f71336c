"""
Shared test fixtures and configuration for the httpchain test suite.
"""

import inspect
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List, Optional, Union

import pytest

from httpchain import Client
from httpchain.models import Request, Response

Route = Union[Response, Callable[[Request], Any]]


def make_response(
    status: int = 200,
    headers: Optional[Dict[str, Any]] = None,
    body: Any = b"",
) -> Response:
    """Build a transport-level response."""
    return Response(status=status, headers=headers or {}, body=body)


class FakeTransport:
    """
    Transport answering from a route table keyed by request path.

    A route is either a Response or a callable taking the request (sync or
    async) and returning one. Unknown paths answer 404. Every request the
    transport sees is recorded.
    """

    def __init__(self, routes: Optional[Dict[str, Route]] = None) -> None:
        self.routes: Dict[str, Route] = dict(routes or {})
        self.requests: List[Request] = []

    def route(self, path: str, route: Route) -> None:
        self.routes[path] = route

    @property
    def last_request(self) -> Request:
        return self.requests[-1]

    async def __call__(self, request: Request) -> Response:
        self.requests.append(request)
        route = self.routes.get(request.path or "/")
        if route is None:
            return make_response(404, body=b"not found")
        if isinstance(route, Response):
            return route
        result = route(request)
        if inspect.isawaitable(result):
            result = await result
        return result


class RecordingHandler:
    """Innermost handler returning one fixed response, for single-middleware tests."""

    def __init__(self, response: Optional[Response] = None) -> None:
        self.response = response if response is not None else make_response(body=b"ok")
        self.requests: List[Request] = []

    @property
    def last_request(self) -> Request:
        return self.requests[-1]

    async def __call__(self, request: Request) -> Optional[Response]:
        self.requests.append(request)
        return self.response


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Transport with the routes the client tests share."""
    return FakeTransport(
        {
            "/get": make_response(200, {"Content-Type": "text/plain"}, b"get"),
            "/redirect": make_response(302, {"Location": "/get"}),
            "/json": make_response(
                200, {"Content-Type": "application/json"}, b'{"foo": "bar", "n": 1}'
            ),
            "/empty": make_response(204, body=None),
            "/missing": make_response(404, body=b"nope"),
            "/error": make_response(500, body=b"boom"),
            "/multi-status": make_response(207, body=b"partial"),
        }
    )


@pytest.fixture
def client(fake_transport: FakeTransport) -> Client:
    """Client running the default pipeline over the fake transport."""
    return Client(transport=fake_transport)


@pytest.fixture
def handler() -> RecordingHandler:
    """Innermost handler answering 200 ``ok``; set ``.response`` to change it."""
    return RecordingHandler()
