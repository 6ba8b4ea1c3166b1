"""Session-aware HTTP client for the application backend."""

from .client import ApiClient
from .config import ApiClientConfig, CsrfConfig
from .errors import ApiError, ErrorCode, ErrorKind
from .transport import HttpxTransport
from .types import ApiResponse, RequestOptions

__all__ = [
    "ApiClient",
    "ApiClientConfig",
    "ApiError",
    "ApiResponse",
    "CsrfConfig",
    "ErrorCode",
    "ErrorKind",
    "HttpxTransport",
    "RequestOptions",
]
