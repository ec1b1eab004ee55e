from __future__ import annotations

import functools
import textwrap
import threading
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

BASE_URL = "http://api.test"


class FakeAPI:
    """Routes requests to per-path handlers and records every request."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []
        self._lock = threading.Lock()

    def route(self, method: str, path: str, response: httpx.Response | Callable[[httpx.Request], httpx.Response]):
        if isinstance(response, httpx.Response):
            fixed = response
            self.routes[(method, path)] = lambda request: httpx.Response(
                fixed.status_code, headers=fixed.headers, content=fixed.content
            )
        else:
            self.routes[(method, path)] = response

    def handler(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        return route(request)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    @functools.cached_property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_api() -> FakeAPI:
    return FakeAPI()


@pytest.fixture
def http_client(fake_api):
    with httpx.Client(transport=fake_api.transport) as client:
        yield client


@pytest.fixture
def write_workflow(tmp_path) -> Callable[..., Path]:
    """Write a workflow document into the temporary directory."""

    def inner(name: str, content: str, directory: Path | None = None) -> Path:
        target = (directory or tmp_path) / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(textwrap.dedent(content).replace("{{BASE_URL}}", BASE_URL), encoding="utf-8")
        return target

    return inner
