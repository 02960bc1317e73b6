"""Cached, write-through persistence for the access/refresh token pair.

The in-memory cache is the source of truth for the running process. Writes
update the cache first and then persist through a ``KeyValueStorage``; a
failing write is logged and swallowed so request flow never blocks on storage.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .storage import KeyValueStorage

logger = logging.getLogger(__name__)

ACCESS_KEY = "accessToken"
REFRESH_KEY = "refreshToken"
LEGACY_KEYS = ("userToken",)


@dataclass(frozen=True)
class TokenPair:
    """Container for access/refresh token information."""
    access_token: str
    refresh_token: str


class TokenStore:
    """Token cache in front of a key-value storage collaborator."""

    def __init__(self, storage: KeyValueStorage, legacy_keys: tuple[str, ...] = LEGACY_KEYS) -> None:
        """Initialize the store.

        Parameters
        ----------
        storage: KeyValueStorage
            Persistence collaborator.
        legacy_keys: tuple[str, ...]
            Extra keys removed (best-effort) by ``clear``.
        """
        self.storage = storage
        self.legacy_keys = legacy_keys
        self._access: str | None = None
        self._refresh: str | None = None

    async def _persist(self, key: str, value: str) -> None:
        try:
            await self.storage.set_item(key, value)
        except Exception:
            logger.exception("Failed to persist %s; keeping in-memory value", key)

    async def _load(self, key: str) -> str | None:
        value = await self.storage.get_item(key)
        return value or None

    async def set_access(self, token: str) -> None:
        self._access = token
        await self._persist(ACCESS_KEY, token)

    async def set_refresh(self, token: str) -> None:
        self._refresh = token
        await self._persist(REFRESH_KEY, token)

    async def set_tokens(self, tokens: TokenPair) -> None:
        self._access = tokens.access_token
        self._refresh = tokens.refresh_token
        await asyncio.gather(
            self._persist(ACCESS_KEY, tokens.access_token),
            self._persist(REFRESH_KEY, tokens.refresh_token),
        )
        logger.debug("Stored new token pair")

    async def get_access(self) -> str | None:
        if self._access:
            return self._access
        self._access = await self._load(ACCESS_KEY)
        return self._access

    async def get_refresh(self) -> str | None:
        if self._refresh:
            return self._refresh
        self._refresh = await self._load(REFRESH_KEY)
        return self._refresh

    async def get_tokens(self) -> TokenPair | None:
        """Return the full pair, or None unless both halves are present."""
        access, refresh = await asyncio.gather(self.get_access(), self.get_refresh())
        if not access or not refresh:
            return None
        return TokenPair(access_token=access, refresh_token=refresh)

    async def clear(self) -> None:
        """Forget both tokens. Never raises; each removal is attempted independently."""
        keys = (ACCESS_KEY, REFRESH_KEY) + tuple(self.legacy_keys)
        results = await asyncio.gather(
            *(self.storage.remove_item(key) for key in keys),
            return_exceptions=True,
        )
        for key, result in zip(keys, results):
            if isinstance(result, Exception):
                logger.warning("Failed to remove %s from storage: %s", key, result)
        self._access = None
        self._refresh = None
        logger.info("Cleared stored tokens")
