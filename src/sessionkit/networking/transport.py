"""Default httpx transport and deadline-aware dispatch."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from .errors import network_error, timeout_error
from .types import Transport

logger = logging.getLogger(__name__)


class DeadlineExceeded(Exception):
    """The client-side timeout fired before the transport answered."""


class RequestAborted(Exception):
    """The caller's cancellation event fired before the transport answered."""


class HttpxTransport:
    """Transport backed by one long-lived ``httpx.AsyncClient``.

    The client's cookie jar is the session: cookies set by any response are
    sent with every later request. httpx timeouts are disabled because the
    ApiClient applies its own deadline around each call.
    """

    def __init__(self, *, client: httpx.AsyncClient | None = None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            timeout=None,
        )

    @property
    def cookies(self) -> httpx.Cookies:
        return self._client.cookies

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self._client.cookies.set_cookie_header(request)
        return await self._client.send(request)

    async def aclose(self) -> None:
        """Close the underlying client when owned."""
        if self._owns_client:
            await self._client.aclose()


async def send_with_deadline(
    transport: Transport,
    request: httpx.Request,
    *,
    timeout: float | None,
    cancel: asyncio.Event | None = None,
    debug: bool = False,
) -> httpx.Response:
    """Send ``request``, aborting when the deadline or ``cancel`` fires.

    Raises:
        ApiError: kind ``timeout`` when the deadline fired first, kind
            ``network`` for caller cancellation or any transport exception.
    """
    if cancel is not None and cancel.is_set():
        aborted = RequestAborted(f"{request.method} {request.url} cancelled")
        raise network_error(aborted, debug=debug) from aborted

    call = asyncio.ensure_future(transport(request))
    waiters: set[asyncio.Future[Any]] = {call}
    cancelled: asyncio.Future[Any] | None = None
    if cancel is not None:
        cancelled = asyncio.ensure_future(cancel.wait())
        waiters.add(cancelled)

    try:
        done, _ = await asyncio.wait(
            waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        if cancelled is not None:
            cancelled.cancel()
        if not call.done():
            call.cancel()

    if call in done:
        try:
            return call.result()
        except Exception as exc:
            raise network_error(exc, debug=debug) from exc

    if cancelled is not None and cancelled in done:
        logger.debug("%s %s cancelled by caller", request.method, request.url)
        aborted = RequestAborted(f"{request.method} {request.url} cancelled")
        raise network_error(aborted, debug=debug) from aborted

    logger.debug(
        "%s %s exceeded %ss deadline", request.method, request.url, timeout
    )
    expired = DeadlineExceeded(
        f"{request.method} {request.url} exceeded {timeout}s"
    )
    raise timeout_error(expired, debug=debug) from expired
