"""sessionkit: cookie-session API client and auth service."""

__version__ = "0.1.0"
