"""
Request dependencies: bearer-token authentication.
"""

from __future__ import annotations

from typing import Any

from fastapi import Header

from backend_ldgrowth.users.service import authenticate


def bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def get_current_user(authorization: str | None = Header(None)) -> dict[str, Any]:
    """Dependency: the active user owning the request's API token (401 otherwise)."""
    return authenticate(bearer_token(authorization))
