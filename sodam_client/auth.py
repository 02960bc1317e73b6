import asyncio
import logging
from typing import Any, Callable

import aiohttp

from .config import AppConfig
from .errors import AuthFailure, HttpStatusError, InvalidRefreshResponse, NetworkError, NoRefreshToken
from .models import ApiResponse
from .token_store import TokenPair, TokenStore

logger = logging.getLogger(__name__)

FALLBACK_STATUSES = (404, 405)
REJECTED_STATUSES = (401, 403)


class RefreshEndpointClient:
    """Exchanges the stored refresh token for a new token pair.

    The call goes straight to the session, bypassing the request interceptor
    and the refresh coordinator, so a failing refresh can never recurse into
    another refresh.
    """

    def __init__(
        self,
        config: AppConfig,
        token_store: TokenStore,
        session_provider: Callable[[], aiohttp.ClientSession],
    ) -> None:
        """Initialize the refresh helper.

        Parameters
        ----------
        config: AppConfig
            Supplies the base URL, both refresh routes and the refresh timeout.
        token_store: TokenStore
            Source of the current refresh token.
        session_provider: Callable[[], aiohttp.ClientSession]
            Returns the session owned by the HTTP client.
        """
        self.config = config
        self.token_store = token_store
        self._session_provider = session_provider

    async def refresh(self) -> TokenPair:
        refresh_token = await self.token_store.get_refresh()
        if not refresh_token:
            raise NoRefreshToken("No refresh token available")

        try:
            return await self._exchange(self.config.refresh_path, refresh_token)
        except AuthFailure:
            raise
        except HttpStatusError as e:
            if e.status not in FALLBACK_STATUSES:
                raise
            logger.info(
                "Refresh route %s answered %s; retrying on %s",
                self.config.refresh_path, e.status, self.config.refresh_fallback_path,
            )
            return await self._exchange(self.config.refresh_fallback_path, refresh_token)

    async def _exchange(self, path: str, refresh_token: str) -> TokenPair:
        url = self.config.url_for(path)
        timeout = aiohttp.ClientTimeout(total=self.config.refresh_timeout)
        session = self._session_provider()

        logger.info("→ Refreshing token via %s", url)
        try:
            async with session.post(url, json={"refreshToken": refresh_token}, timeout=timeout) as resp:
                response = await ApiResponse.from_aiohttp(resp)
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Refresh timed out after {self.config.refresh_timeout}s: {url}") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Network error during refresh: {e}") from e

        logger.info("← Refresh response: HTTP %s", response.status)
        if response.status in REJECTED_STATUSES:
            raise AuthFailure(response)
        if not response.ok:
            raise HttpStatusError(response)
        return parse_token_response(response.data, refresh_token)


def parse_token_response(data: Any, previous_refresh: str) -> TokenPair:
    """Pull the pair out of ``{accessToken, refreshToken}`` or ``{data: {...}}``.

    A missing rotated refresh token keeps the previous one.
    """
    if not isinstance(data, dict):
        raise InvalidRefreshResponse("Refresh response is not a JSON object")
    nested = data.get("data") if isinstance(data.get("data"), dict) else {}

    access = data.get("accessToken") or nested.get("accessToken")
    if not access:
        raise InvalidRefreshResponse("Refresh response has no accessToken")
    rotated = data.get("refreshToken") or nested.get("refreshToken") or previous_refresh
    return TokenPair(access_token=access, refresh_token=rotated)
