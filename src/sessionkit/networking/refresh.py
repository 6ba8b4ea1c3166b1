"""Single-flight session refresh."""

from __future__ import annotations

import logging

import httpx

from .codec import decode_body
from .config import ApiClientConfig
from .csrf import CsrfTokenManager
from .errors import ApiError, normalize_http_error
from .singleflight import SingleFlight
from .transport import send_with_deadline
from .types import Transport
from .urls import build_url

logger = logging.getLogger(__name__)


class SessionRefresher:
    """Renews the cookie session; concurrent callers share one call.

    The backend sees at most one refresh request at a time no matter how
    many requests hit a 401 while it is outstanding. A failed refresh is not
    retried; every waiter receives the same ApiError.
    """

    def __init__(
        self,
        config: ApiClientConfig,
        csrf: CsrfTokenManager,
        transport: Transport,
    ) -> None:
        self._config = config
        self._csrf = csrf
        self._transport = transport
        self._flight: SingleFlight[None] = SingleFlight()

    @property
    def in_flight(self) -> bool:
        return self._flight.in_flight

    async def refresh(self) -> None:
        """Refresh the session, joining a refresh already in flight.

        Raises:
            ApiError: the normalized transport or HTTP failure.
        """
        await self._flight.run(self._refresh)

    async def _refresh(self) -> None:
        url = build_url(self._config.base_url, self._config.refresh_path)
        headers = dict(self._config.default_headers)
        token = self._csrf.token
        if self._csrf.enabled and token:
            headers[self._csrf.header_name] = token

        method = self._config.refresh_method
        logger.debug("Refreshing session via %s %s", method, url)
        request = httpx.Request(method, url, headers=headers)
        try:
            response = await send_with_deadline(
                self._transport,
                request,
                timeout=self._config.timeout_seconds,
                debug=self._config.debug,
            )
            if not response.is_success:
                raise normalize_http_error(
                    response.status_code, decode_body(response)
                )
        except ApiError as exc:
            logger.warning("Session refresh failed: %s", exc)
            raise

        # Some backends rotate the CSRF token on refresh.
        self._csrf.capture(response)
