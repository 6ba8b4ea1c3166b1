"""Configuration models for the ApiClient."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from .types import MUTATING_METHODS, HttpMethod, Transport

DEFAULT_REFRESH_PATH = "/auth/refresh"
DEFAULT_CSRF_HEADER = "X-CSRF-Token"


def _default_headers() -> Mapping[str, str]:
    """Return immutable empty default headers mapping."""

    return MappingProxyType({})


@dataclass(frozen=True)
class CsrfConfig:
    """Where to fetch the CSRF token and which header carries it."""

    token_path: str
    header_name: str = DEFAULT_CSRF_HEADER

    def __post_init__(self) -> None:
        if not self.token_path:
            raise ValueError("token_path must be a non-empty path")
        if not self.header_name:
            raise ValueError("header_name must be a non-empty header name")


@dataclass(frozen=True)
class ApiClientConfig:
    """Configuration for ApiClient behavior.

    Created once per client and never changed afterwards; the refresh path
    and CSRF token path stay stable for the client's lifetime.
    """

    base_url: str
    refresh_path: str = DEFAULT_REFRESH_PATH
    refresh_method: HttpMethod = "POST"
    csrf: CsrfConfig | None = None
    default_headers: Mapping[str, str] = field(
        default_factory=_default_headers
    )
    timeout_seconds: float | None = None
    transport: Transport | None = field(default=None, compare=False)
    debug: bool = False

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url must be provided")
        if not self.refresh_path:
            raise ValueError("refresh_path must be a non-empty path")
        if self.refresh_method not in MUTATING_METHODS:
            raise ValueError(
                "refresh_method must be one of "
                + ", ".join(sorted(MUTATING_METHODS))
            )
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0 when provided")

        # Freeze copied headers to avoid post-init mutation side effects.
        object.__setattr__(
            self,
            "default_headers",
            MappingProxyType(dict(self.default_headers)),
        )

    @property
    def csrf_header_name(self) -> str:
        """Header carrying the CSRF token, even when fetching is disabled."""
        if self.csrf is None:
            return DEFAULT_CSRF_HEADER
        return self.csrf.header_name
