"""Login, logout and current-user calls on top of the authenticated client.

Newer backends expose these under ``/api/auth/*``; older ones answer 404/405
there and serve the legacy route instead, so most calls try both.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .errors import ApiError, HttpStatusError, InvalidLoginResponse
from .http_client import HttpClient
from .models import ApiResponse
from .token_store import TokenPair, TokenStore

logger = logging.getLogger(__name__)

FALLBACK_STATUSES = (404, 405)


@dataclass
class AuthSession:
    """Result of a successful login."""
    access_token: str
    user: dict[str, Any] = field(default_factory=dict)


class AuthService:
    """Account-level operations that create or destroy the stored token pair."""

    def __init__(self, client: HttpClient, token_store: TokenStore | None = None) -> None:
        self.client = client
        self.token_store = token_store or client.token_store

    async def post_with_fallback(self, primary: str, fallback: str, body: Any = None) -> ApiResponse:
        try:
            return await self.client.post(primary, body)
        except HttpStatusError as e:
            if e.status not in FALLBACK_STATUSES:
                raise
            logger.info("%s answered %s; trying %s", primary, e.status, fallback)
            return await self.client.post(fallback, body)

    async def get_with_fallback(self, primary: str, fallback: str) -> ApiResponse:
        try:
            return await self.client.get(primary)
        except HttpStatusError as e:
            if e.status not in FALLBACK_STATUSES:
                raise
            logger.info("%s answered %s; trying %s", primary, e.status, fallback)
            return await self.client.get(fallback)

    async def login(self, email: str, password: str) -> AuthSession:
        try:
            resp = await self.client.post("/api/login", {"email": email, "password": password})
        except ApiError:
            logger.error("Login failed for %s", email)
            raise
        return await self._store_login(resp.data)

    async def logout(self) -> None:
        """Tell the server (best-effort) and always drop the local tokens."""
        try:
            refresh_token = await self.token_store.get_refresh()
            if refresh_token:
                try:
                    await self.post_with_fallback("/api/auth/logout", "/api/logout", {"refreshToken": refresh_token})
                except ApiError as e:
                    logger.warning("Server logout failed, clearing local tokens anyway: %s", e)
        finally:
            await self.token_store.clear()

    async def current_user(self) -> dict[str, Any]:
        resp = await self.get_with_fallback("/api/auth/me", "/api/me")
        return resp.data

    async def is_authenticated(self) -> bool:
        return bool(await self.token_store.get_access())

    async def _store_login(self, data: Any) -> AuthSession:
        if not isinstance(data, dict):
            raise InvalidLoginResponse("Login response is not a JSON object")
        # ApiResponse envelope: {"message": ..., "data": {...}}
        root = data["data"] if isinstance(data.get("data"), dict) and "message" in data else data

        access = root.get("accessToken") or root.get("token") or root.get("jwtToken")
        if not access:
            raise InvalidLoginResponse("Login response has no access token")
        refresh = root.get("refreshToken")
        if refresh:
            await self.token_store.set_tokens(TokenPair(access_token=access, refresh_token=refresh))
        else:
            await self.token_store.set_access(access)

        user = root.get("user")
        if not isinstance(user, dict):
            user = {
                "id": root.get("userId"),
                "name": root.get("name", ""),
                "email": root.get("email", ""),
                "roles": root.get("roles"),
                "role": root.get("userGrade"),
            }
        logger.info("Logged in as user %s", user.get("id"))
        return AuthSession(access_token=access, user=user)
