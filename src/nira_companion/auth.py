"""Request authentication.

Token verification is an external concern: the server is handed a
``TokenVerifier`` and only extracts the bearer token and the resulting
user id. ``DevTokenVerifier`` treats the token itself as the user id and is
meant for local development and tests.
"""

from __future__ import annotations

import hmac
from typing import Awaitable, Callable, Protocol

from fastapi import Header, HTTPException
from loguru import logger

from .memory.exceptions import AuthenticationError


class TokenVerifier(Protocol):
    async def verify(self, token: str) -> str:
        """Return the user id for ``token`` or raise AuthenticationError."""
        ...


class DevTokenVerifier:
    async def verify(self, token: str) -> str:
        token = token.strip()
        if not token:
            raise AuthenticationError("empty token")
        return token


class RejectAllVerifier:
    """Used when no verifier is configured."""

    async def verify(self, token: str) -> str:
        raise AuthenticationError("no token verifier configured")


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def make_user_dependency(verifier: TokenVerifier) -> Callable[..., Awaitable[str]]:
    """FastAPI dependency resolving the authenticated user id."""

    async def current_user(authorization: str | None = Header(None)) -> str:
        token = extract_bearer_token(authorization)
        if token is None:
            raise HTTPException(status_code=401, detail="Unauthorized")
        try:
            return await verifier.verify(token)
        except AuthenticationError as e:
            logger.warning(f"Auth error: {e}")
            raise HTTPException(status_code=401, detail="Unauthorized") from e

    return current_user


def make_admin_dependency(admin_key: str) -> Callable[..., Awaitable[None]]:
    """FastAPI dependency guarding the administrative routes."""

    async def require_admin(x_admin_key: str | None = Header(None)) -> None:
        if not admin_key:
            raise HTTPException(status_code=403, detail="Admin API is disabled")
        if not x_admin_key or not hmac.compare_digest(x_admin_key, admin_key):
            raise HTTPException(status_code=403, detail="Forbidden")

    return require_admin
