"""Pytest fixtures for JS Miner tests."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from jsminer.models import Resource, ResourceType, ScanConfig, ScanContext

Route = int | str | bytes | Exception


@pytest.fixture
def config() -> ScanConfig:
    """Default scan configuration."""
    return ScanConfig()


@pytest.fixture
def make_resource() -> Callable[..., Resource]:
    """Factory for enriched resources."""

    def _make(
        content: str = "",
        url: str = "https://example.com/static/app.js",
        type: ResourceType = ResourceType.JS,
        **kwargs: Any,
    ) -> Resource:
        kwargs.setdefault("raw_bytes", content.encode("utf-8"))
        return Resource(url=url, type=type, content=content, **kwargs)

    return _make


@pytest.fixture
def make_context() -> Callable[..., ScanContext]:
    """Factory for scan contexts."""

    def _make(
        *resources: Resource,
        page_url: str = "https://example.com/",
        referrer: str = "",
    ) -> ScanContext:
        return ScanContext(page_url=page_url, referrer=referrer, resources=list(resources))

    return _make


@pytest.fixture
def routed_transport() -> Callable[..., tuple[httpx.MockTransport, list[httpx.Request]]]:
    """
    Factory for a mock transport answering from a URL -> route table.

    A route is a status code, a 200 body (str or bytes) or an exception
    to raise. Unknown URLs answer 404. Every request is recorded.
    """

    def _build(
        routes: dict[str, Route],
        default_status: int = 404,
    ) -> tuple[httpx.MockTransport, list[httpx.Request]]:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            route = routes.get(str(request.url))
            if route is None:
                return httpx.Response(default_status)
            if isinstance(route, Exception):
                raise route
            if isinstance(route, int):
                return httpx.Response(route)
            if isinstance(route, bytes):
                return httpx.Response(200, content=route)
            return httpx.Response(200, text=route)

        return httpx.MockTransport(handler), seen

    return _build


@pytest.fixture
def registry_routes() -> dict[str, Route]:
    """Routes for a reachable public registry."""
    return {
        "https://www.npmjs.com/robots.txt": "User-agent: *",
        "https://registry.npmjs.org/": "{}",
    }
