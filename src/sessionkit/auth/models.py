"""Session and user models returned by the auth endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class Role(str, Enum):
    ADMIN = "Admin"
    INSTRUCTOR = "Instructor"
    STUDENT = "Student"


@dataclass(frozen=True)
class User:
    id: str
    role: Role
    email: str | None = None
    name: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> User:
        """Build a User from a decoded JSON object.

        Raises:
            ValueError: if ``id`` or ``role`` is missing or unknown.
        """
        if not isinstance(payload, Mapping):
            raise ValueError("user payload must be an object")
        user_id = payload.get("id")
        if not isinstance(user_id, str) or not user_id:
            raise ValueError("user payload is missing 'id'")
        return cls(
            id=user_id,
            role=Role(payload.get("role")),
            email=payload.get("email"),
            name=payload.get("name"),
        )


@dataclass(frozen=True)
class Session:
    """An authenticated session: currently just the signed-in user."""

    user: User


@dataclass(frozen=True)
class SignInResult:
    user: User
