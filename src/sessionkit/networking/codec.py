"""Request body encoding and response body decoding."""

from __future__ import annotations

import json
from typing import Any, Mapping

import httpx

from .errors import decode_error

JSON_CONTENT_TYPE = "application/json"


def _content_type(headers: Mapping[str, str]) -> str | None:
    """Return the content-type header value, matching any casing."""
    for key, value in headers.items():
        if key.lower() == "content-type":
            return value
    return None


def decode_body(response: httpx.Response) -> Any:
    """Decode a response body according to its declared content type.

    Returns ``None`` for 204, parsed JSON for JSON content types, and text
    otherwise.

    Raises:
        ApiError: kind ``parse`` when JSON decoding fails, kind ``unknown``
            when text decoding fails.
    """
    if response.status_code == 204:
        return None

    content_type = response.headers.get("content-type", "")
    if JSON_CONTENT_TYPE in content_type:
        try:
            return response.json()
        except ValueError as exc:
            raise decode_error(exc, json_body=True) from exc

    try:
        return response.text
    except (UnicodeDecodeError, LookupError) as exc:
        raise decode_error(exc, json_body=False) from exc


def encode_body(
    body: Any, headers: Mapping[str, str]
) -> tuple[dict[str, str], Any]:
    """Return the final headers and wire content for a request body.

    A ``None`` body sends no content. Otherwise the content type defaults to
    JSON and non-string bodies are serialized with :func:`json.dumps`.

    Raises:
        ValueError: if a non-JSON content type is paired with a body that is
            not ``str`` or ``bytes``.
    """
    merged = dict(headers)
    if body is None:
        return merged, None

    content_type = _content_type(merged)
    if content_type is None:
        merged["Content-Type"] = JSON_CONTENT_TYPE
        content_type = JSON_CONTENT_TYPE

    if isinstance(body, (str, bytes)):
        return merged, body
    if JSON_CONTENT_TYPE not in content_type:
        raise ValueError(
            f"cannot encode {type(body).__name__} body as {content_type}"
        )
    return merged, json.dumps(body)
