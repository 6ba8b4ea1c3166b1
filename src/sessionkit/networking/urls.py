"""URL composition for API paths."""

from __future__ import annotations

from typing import Mapping
from urllib.parse import quote

from .types import QueryValue

# Characters encodeURIComponent leaves alone besides alphanumerics and "-_.~".
_UNRESERVED = "!*'()"


def _encode(value: object) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    return quote(str(value), safe=_UNRESERVED)


def build_url(
    base_url: str,
    path: str,
    query: Mapping[str, QueryValue] | None = None,
) -> str:
    """Join ``base_url`` and ``path`` with exactly one slash, then add query.

    Query entries whose value is ``None`` are dropped; the remaining ones are
    percent-encoded in mapping order. No ``?`` is appended when nothing is
    left.
    """
    base = base_url[:-1] if base_url.endswith("/") else base_url
    normalized_path = path if path.startswith("/") else f"/{path}"
    url = f"{base}{normalized_path}"

    if not query:
        return url

    parts = [
        f"{_encode(key)}={_encode(value)}"
        for key, value in query.items()
        if value is not None
    ]
    if not parts:
        return url
    return f"{url}?{'&'.join(parts)}"
