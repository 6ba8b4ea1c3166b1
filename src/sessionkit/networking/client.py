"""Async API client for a cookie-session backend.

This module defines the request executor used by the application services.
Each logical call may take one extra hop: a 401 triggers a shared session
refresh followed by exactly one retry. Every failure leaves the client as a
normalized :class:`~sessionkit.networking.errors.ApiError`.
"""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Any, Mapping

import httpx

from .codec import decode_body, encode_body
from .config import ApiClientConfig
from .csrf import CsrfTokenManager
from .errors import ApiError, normalize_http_error, timeout_error
from .refresh import SessionRefresher
from .transport import DeadlineExceeded, HttpxTransport, send_with_deadline
from .types import (
    MUTATING_METHODS,
    ApiResponse,
    HttpMethod,
    QueryValue,
    RequestOptions,
    Transport,
)
from .urls import build_url

logger = logging.getLogger(__name__)


def _normalize_path(path: str) -> str:
    return path if path.startswith("/") else f"/{path}"


class _Deadline:
    """Monotonic deadline of one attempt; a ``None`` timeout never expires."""

    def __init__(self, timeout: float | None, label: str, debug: bool) -> None:
        self._loop = asyncio.get_running_loop()
        self._timeout = timeout
        self._label = label
        self._debug = debug
        self._expires_at = (
            None if timeout is None else self._loop.time() + timeout
        )

    def error(self) -> ApiError:
        cause = DeadlineExceeded(f"{self._label} exceeded {self._timeout}s")
        return timeout_error(cause, debug=self._debug)

    def remaining(self) -> float | None:
        """Seconds left, raising the timeout ApiError once none are."""
        if self._expires_at is None:
            return None
        left = self._expires_at - self._loop.time()
        if left <= 0:
            error = self.error()
            raise error from error.details
        return left


class ApiClient:
    """Core API client (async).

    All backend calls go through this client so that session refresh, CSRF
    handling and error normalization stay consistent. The CSRF cache and the
    in-flight refresh/fetch handles are private to one instance.
    """

    def __init__(self, config: ApiClientConfig) -> None:
        """Create a new ApiClient.

        Args:
            config: Base URL, refresh/CSRF settings, headers and timeout.
                When ``config.transport`` is unset the client owns an
                :class:`HttpxTransport` and closes it in :meth:`aclose`.
        """
        self._config = config
        self._owned_transport: HttpxTransport | None = None
        transport = config.transport
        if transport is None:
            self._owned_transport = HttpxTransport()
            transport = self._owned_transport
        self._transport: Transport = transport
        self._csrf = CsrfTokenManager(config, transport)
        self._refresher = SessionRefresher(config, self._csrf, transport)

    @property
    def config(self) -> ApiClientConfig:
        return self._config

    @property
    def csrf(self) -> CsrfTokenManager:
        return self._csrf

    @property
    def refresher(self) -> SessionRefresher:
        return self._refresher

    async def aclose(self) -> None:
        """Release the owned transport, if any."""
        if self._owned_transport is not None:
            await self._owned_transport.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def _get_timeout(self, override: float | None) -> float | None:
        """Resolve timeout preference."""
        if override is not None:
            if override <= 0:
                raise ValueError("timeout override must be > 0 when provided")
            return override
        return self._config.timeout_seconds

    def _requires_csrf(self, options: RequestOptions) -> bool:
        if options.requires_csrf is not None:
            return options.requires_csrf
        return options.method in MUTATING_METHODS

    def _can_refresh(self, options: RequestOptions) -> bool:
        """Return True when a 401 on this call may be refreshed away."""
        if not options.retry_on_unauthorized:
            return False
        return _normalize_path(options.path) != _normalize_path(
            self._config.refresh_path
        )

    async def _ensure_csrf_token(self, deadline: _Deadline) -> str | None:
        """Wait for the CSRF token within the attempt's deadline.

        Giving up only stops this caller's wait; the shared fetch keeps
        running for the other callers.
        """
        try:
            return await asyncio.wait_for(
                self._csrf.ensure_token(), timeout=deadline.remaining()
            )
        except asyncio.TimeoutError as exc:
            raise deadline.error() from exc

    async def _attempt(
        self, options: RequestOptions, timeout: float | None
    ) -> tuple[httpx.Response, Any]:
        """Run one attempt and return the response with its decoded body.

        The deadline starts before the CSRF wait, so the token fetch and the
        call itself share one timeout budget.
        """
        deadline = _Deadline(
            timeout, f"{options.method} {options.path}", self._config.debug
        )
        url = build_url(self._config.base_url, options.path, options.query)
        merged = httpx.Headers(self._config.default_headers)
        merged.update(options.headers)
        encoded, content = encode_body(options.body, merged)
        headers = httpx.Headers(encoded)

        if self._requires_csrf(options):
            token = await self._ensure_csrf_token(deadline)
            if token:
                headers[self._csrf.header_name] = token

        request = httpx.Request(
            options.method, url, headers=headers, content=content
        )
        response = await send_with_deadline(
            self._transport,
            request,
            timeout=deadline.remaining(),
            cancel=options.cancel,
            debug=self._config.debug,
        )

        data = decode_body(response)
        self._csrf.capture(response)
        return response, data

    async def request_raw(self, options: RequestOptions) -> ApiResponse:
        """Execute one logical call and return status, headers and data.

        Raises:
            ApiError: on transport failure, timeout, decode failure, or a
                non-2xx status that the single refresh-and-retry did not fix.
            ValueError: if the per-call timeout is not positive.
        """
        timeout = self._get_timeout(options.timeout_seconds)

        response, data = await self._attempt(options, timeout)
        if response.status_code == 401 and self._can_refresh(options):
            logger.debug(
                "%s %s returned 401; refreshing session and retrying once",
                options.method,
                options.path,
            )
            await self._refresher.refresh()
            response, data = await self._attempt(options, timeout)

        if not response.is_success:
            raise normalize_http_error(response.status_code, data)

        return ApiResponse(
            status=response.status_code,
            headers=response.headers,
            data=data,
        )

    async def request(self, options: RequestOptions) -> Any:
        """Execute one logical call and return only the decoded body."""
        response = await self.request_raw(options)
        return response.data

    async def _call(
        self,
        method: HttpMethod,
        path: str,
        *,
        body: Any = None,
        query: Mapping[str, QueryValue] | None = None,
        headers: Mapping[str, str] | None = None,
        cancel: asyncio.Event | None = None,
        timeout: float | None = None,
        retry_on_unauthorized: bool = True,
        requires_csrf: bool | None = None,
    ) -> Any:
        return await self.request(
            RequestOptions(
                method=method,
                path=path,
                query=dict(query or {}),
                headers=dict(headers or {}),
                body=body,
                cancel=cancel,
                timeout_seconds=timeout,
                retry_on_unauthorized=retry_on_unauthorized,
                requires_csrf=requires_csrf,
            )
        )

    async def get(
        self,
        path: str,
        *,
        query: Mapping[str, QueryValue] | None = None,
        headers: Mapping[str, str] | None = None,
        cancel: asyncio.Event | None = None,
        timeout: float | None = None,
        retry_on_unauthorized: bool = True,
        requires_csrf: bool | None = None,
    ) -> Any:
        """Perform a GET request.

        Args:
            path: Path relative to the base URL.
            query: Optional query parameters; ``None`` values are dropped.
            headers: Optional per-request headers merged over defaults.
            cancel: Optional event that aborts the call when set.
            timeout: Override timeout in seconds for this request.
            retry_on_unauthorized: Allow one refresh-and-retry on 401.
            requires_csrf: Force or suppress the CSRF header.

        Returns:
            The decoded response body.
        """
        return await self._call(
            "GET",
            path,
            query=query,
            headers=headers,
            cancel=cancel,
            timeout=timeout,
            retry_on_unauthorized=retry_on_unauthorized,
            requires_csrf=requires_csrf,
        )

    async def post(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        """Perform a POST request; keyword options match :meth:`get`."""
        return await self._call("POST", path, body=body, **kwargs)

    async def put(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        """Perform a PUT request; keyword options match :meth:`get`."""
        return await self._call("PUT", path, body=body, **kwargs)

    async def patch(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        """Perform a PATCH request; keyword options match :meth:`get`."""
        return await self._call("PATCH", path, body=body, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        """Perform a DELETE request; keyword options match :meth:`get`."""
        return await self._call("DELETE", path, **kwargs)
