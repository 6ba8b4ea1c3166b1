"""Normalized errors raised by the ApiClient.

Every failure that leaves the client is an :class:`ApiError`: transport
exceptions, aborts, non-2xx responses and body decoding failures alike. The
``message_key`` is meant for i18n lookup; server text only ever travels in
``details``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class ErrorKind(str, Enum):
    """Closed taxonomy of failure kinds."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    HTTP = "http"
    PARSE = "parse"
    UNKNOWN = "unknown"


class ErrorCode(str, Enum):
    """Stable machine codes."""

    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    SERVER_ERROR = "SERVER_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    UNKNOWN_HTTP_ERROR = "UNKNOWN_HTTP_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


@dataclass(eq=False)
class ApiError(Exception):
    """Normalized client error."""

    kind: ErrorKind
    code: ErrorCode
    message_key: str
    status: int | None = None
    server_code: str | None = None
    details: Any = None
    debug_message: str | None = None

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.code.value} (HTTP {self.status})"
        return self.code.value

    @property
    def is_unauthorized(self) -> bool:
        return self.code is ErrorCode.UNAUTHORIZED


_HTTP_STATUS_TABLE: Mapping[int, tuple[ErrorCode, str]] = {
    400: (ErrorCode.BAD_REQUEST, "errors.badRequest"),
    401: (ErrorCode.UNAUTHORIZED, "errors.unauthorized"),
    403: (ErrorCode.FORBIDDEN, "errors.forbidden"),
    404: (ErrorCode.NOT_FOUND, "errors.notFound"),
}


def _server_code(body: Any) -> str | None:
    """Best-effort extraction of a backend error code."""
    if isinstance(body, Mapping):
        code = body.get("code")
        if isinstance(code, str):
            return code
    return None


def safe_debug_message(error: Any) -> str | None:
    """Render an arbitrary failure for developers, never raising."""
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    if isinstance(error, str):
        return error
    try:
        return json.dumps(error)
    except (TypeError, ValueError):
        return None


def normalize_http_error(status: int, body: Any = None) -> ApiError:
    """Map a non-success HTTP status (and its parsed body) to an ApiError."""
    if status in _HTTP_STATUS_TABLE:
        code, message_key = _HTTP_STATUS_TABLE[status]
    elif status >= 500:
        code, message_key = ErrorCode.SERVER_ERROR, "errors.server"
    else:
        code, message_key = ErrorCode.UNKNOWN_HTTP_ERROR, "errors.http"

    return ApiError(
        kind=ErrorKind.HTTP,
        code=code,
        message_key=message_key,
        status=status,
        server_code=_server_code(body),
        details=body,
    )


def network_error(cause: BaseException, *, debug: bool = False) -> ApiError:
    """Transport failure other than the client-side timeout."""
    return ApiError(
        kind=ErrorKind.NETWORK,
        code=ErrorCode.NETWORK_ERROR,
        message_key="errors.network",
        details=cause,
        debug_message=safe_debug_message(cause) if debug else None,
    )


def timeout_error(cause: BaseException, *, debug: bool = False) -> ApiError:
    """Transport call aborted by the client-side deadline."""
    return ApiError(
        kind=ErrorKind.TIMEOUT,
        code=ErrorCode.TIMEOUT,
        message_key="errors.timeout",
        details=cause,
        debug_message=safe_debug_message(cause) if debug else None,
    )


def decode_error(cause: BaseException, *, json_body: bool) -> ApiError:
    """Body decoding failure: ``parse`` for JSON, ``unknown`` for text."""
    if json_body:
        return ApiError(
            kind=ErrorKind.PARSE,
            code=ErrorCode.UNKNOWN_ERROR,
            message_key="errors.parse",
            details=cause,
        )
    return ApiError(
        kind=ErrorKind.UNKNOWN,
        code=ErrorCode.UNKNOWN_ERROR,
        message_key="errors.unknown",
        details=cause,
    )
