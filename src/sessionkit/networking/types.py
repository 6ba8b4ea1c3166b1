"""Request, response, and transport types shared by the networking layer."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Literal, Mapping, Union

import httpx

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

MUTATING_METHODS: frozenset[str] = frozenset(
    {"POST", "PUT", "PATCH", "DELETE"}
)

QueryValue = Union[str, int, float, bool, None]

# Sends one fully built request and returns the response with its body loaded.
# The transport owns the cookie jar, so cookies ride along on every call.
Transport = Callable[[httpx.Request], Awaitable[httpx.Response]]


def _empty_mapping() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class RequestOptions:
    """Describes one logical API call.

    Attributes:
        method: HTTP method.
        path: Path relative to the client's base URL.
        query: Query parameters; ``None`` values are dropped.
        headers: Per-request headers, merged over the client defaults.
        body: Request body; encoded as JSON unless a content type says
            otherwise or it is already a string.
        cancel: Event that aborts the transport call when set.
        timeout_seconds: Per-call timeout, overriding the client default.
        retry_on_unauthorized: Whether a 401 may trigger one
            refresh-and-retry cycle.
        requires_csrf: Force (``True``) or suppress (``False``) the CSRF
            header. ``None`` attaches it for mutating methods only.
    """

    method: HttpMethod
    path: str
    query: Mapping[str, QueryValue] = field(default_factory=_empty_mapping)
    headers: Mapping[str, str] = field(default_factory=_empty_mapping)
    body: Any = None
    cancel: asyncio.Event | None = None
    timeout_seconds: float | None = None
    retry_on_unauthorized: bool = True
    requires_csrf: bool | None = None


@dataclass(frozen=True)
class ApiResponse:
    """Successful response: status, headers, and the decoded body."""

    status: int
    headers: httpx.Headers
    data: Any
