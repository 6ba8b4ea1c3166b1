"""Auth operations on top of the ApiClient."""

from __future__ import annotations

import logging
from typing import Mapping

from ..networking.client import ApiClient
from ..networking.errors import ApiError
from .models import Session, SignInResult, User

logger = logging.getLogger(__name__)

ME_PATH = "/me"
LOGIN_PATH = "/auth/login"
LOGOUT_PATH = "/auth/logout"


class AuthService:
    """Session check, sign-in and sign-out for one ApiClient."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_me(self) -> Session | None:
        """Return the current session, or None when nobody is signed in.

        The session check never triggers a refresh: a 401 here means "no
        session", not a failure. Any other ApiError is re-raised.
        """
        try:
            payload = await self._client.get(
                ME_PATH, retry_on_unauthorized=False
            )
        except ApiError as exc:
            if exc.is_unauthorized:
                logger.debug("No active session")
                return None
            raise
        return Session(user=User.from_payload(payload))

    async def sign_in(self, email: str, password: str) -> SignInResult:
        """Sign in and return the user from the login response.

        Raises:
            ApiError: when the login call fails.
            ValueError: when the response carries no usable user.
        """
        payload = await self._client.post(
            LOGIN_PATH, {"email": email, "password": password}
        )
        user = payload.get("user") if isinstance(payload, Mapping) else None
        return SignInResult(user=User.from_payload(user))

    async def sign_out(self) -> None:
        """End the session and forget the cached CSRF token."""
        try:
            await self._client.post(LOGOUT_PATH, {})
        finally:
            self._client.csrf.clear()
