"""Lazily fetched, cached CSRF token."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from .codec import decode_body
from .config import ApiClientConfig
from .singleflight import SingleFlight
from .transport import send_with_deadline
from .types import Transport
from .urls import build_url

logger = logging.getLogger(__name__)

_BODY_TOKEN_FIELDS = ("csrfToken", "csrf")


def token_from_body(body: Any) -> str | None:
    """Return the first non-empty token field of a mapping body."""
    if not isinstance(body, Mapping):
        return None
    for name in _BODY_TOKEN_FIELDS:
        candidate = body.get(name)
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


class CsrfTokenManager:
    """Owns the cached CSRF token and its single in-flight fetch."""

    def __init__(self, config: ApiClientConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport
        self._token: str | None = None
        self._fetch: SingleFlight[str | None] = SingleFlight()

    @property
    def enabled(self) -> bool:
        return self._config.csrf is not None

    @property
    def header_name(self) -> str:
        return self._config.csrf_header_name

    @property
    def token(self) -> str | None:
        return self._token

    def remember(self, token: str | None) -> None:
        """Overwrite the cached token with a non-empty value."""
        if token:
            self._token = token

    def capture(self, response: httpx.Response) -> None:
        """Cache a token the backend sent back in the CSRF header."""
        if self.enabled:
            self.remember(response.headers.get(self.header_name))

    def clear(self) -> None:
        self._token = None

    async def ensure_token(self) -> str | None:
        """Return the cached token, fetching it once if needed.

        Returns ``None`` when CSRF is disabled or the backend did not hand
        out a token. Concurrent callers share the same fetch.

        Raises:
            ApiError: kind ``network`` if the token request itself fails.
        """
        if not self.enabled:
            return None
        if self._token:
            return self._token
        return await self._fetch.run(self._fetch_token)

    async def _fetch_token(self) -> str | None:
        assert self._config.csrf is not None
        url = build_url(self._config.base_url, self._config.csrf.token_path)
        request = httpx.Request(
            "GET", url, headers=dict(self._config.default_headers)
        )
        logger.debug("Fetching CSRF token from %s", url)

        response = await send_with_deadline(
            self._transport,
            request,
            timeout=self._config.timeout_seconds,
            debug=self._config.debug,
        )
        body = decode_body(response)

        token = response.headers.get(self.header_name) or token_from_body(body)
        if not token:
            logger.debug("No CSRF token in response from %s", url)
            return None

        self._token = token
        return token
