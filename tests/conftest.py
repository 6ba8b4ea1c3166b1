from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any

import httpx
import pytest

from sessionkit.networking.client import ApiClient
from sessionkit.networking.config import ApiClientConfig, CsrfConfig

BASE_URL = "https://example.test"


class ScriptedTransport:
    """In-memory transport answering from per-route reply queues.

    A reply is an ``httpx.Response``, an exception to raise, or a future
    whose result (response or exception) is used once it resolves.
    """

    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[Any]] = defaultdict(list)

    def add(self, method: str, path: str, *replies: Any) -> None:
        self._routes[(method, path)].extend(replies)

    def paths(self, method: str | None = None) -> list[str]:
        return [
            call.url.path
            for call in self.calls
            if method is None or call.method == method
        ]

    def count(self, method: str, path: str) -> int:
        return sum(
            1
            for call in self.calls
            if call.method == method and call.url.path == path
        )

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            raise AssertionError(
                f"unexpected {request.method} {request.url}"
            )
        reply = queue.pop(0)
        if isinstance(reply, asyncio.Future):
            reply = await reply
        if isinstance(reply, BaseException):
            raise reply
        return reply


def json_response(
    status: int, payload: Any, headers: dict[str, str] | None = None
) -> httpx.Response:
    return httpx.Response(status, json=payload, headers=headers)


def empty_response(
    status: int = 200, headers: dict[str, str] | None = None
) -> httpx.Response:
    return httpx.Response(status, headers=headers)


async def wait_for_calls(transport: ScriptedTransport, count: int) -> None:
    """Yield to the loop until ``count`` transport calls were recorded."""
    for _ in range(1000):
        if len(transport.calls) >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(
        f"expected {count} transport calls, saw {len(transport.calls)}"
    )


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def client(transport):
    return ApiClient(
        ApiClientConfig(base_url=BASE_URL, transport=transport)
    )


@pytest.fixture
def csrf_client(transport):
    return ApiClient(
        ApiClientConfig(
            base_url=BASE_URL,
            csrf=CsrfConfig(token_path="/csrf"),
            transport=transport,
        )
    )
