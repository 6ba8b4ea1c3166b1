"""Application-wide ApiClient factory."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from .networking.client import ApiClient
from .networking.config import ApiClientConfig, CsrfConfig

DEFAULT_BASE_URL = "http://localhost:3000"


def app_config(
    base_url: str = DEFAULT_BASE_URL, **overrides: Any
) -> ApiClientConfig:
    """Return the backend configuration used by the app.

    Args:
        base_url: Backend origin.
        **overrides: Any ApiClientConfig field to replace.
    """
    config = ApiClientConfig(
        base_url=base_url,
        refresh_path="/auth/refresh",
        csrf=CsrfConfig(token_path="/csrf", header_name="X-CSRF-Token"),
        default_headers={"Accept": "application/json"},
        timeout_seconds=15.0,
    )
    return replace(config, **overrides)


def create_app_client(
    base_url: str = DEFAULT_BASE_URL, **overrides: Any
) -> ApiClient:
    """Build an ApiClient with the app defaults; see :func:`app_config`."""
    return ApiClient(app_config(base_url, **overrides))
