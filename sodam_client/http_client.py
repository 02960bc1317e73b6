"""Authenticated async HTTP client for the Sodam backend using aiohttp."""
import asyncio
import logging
from typing import Any, Callable, Dict, Optional

import aiohttp

from .auth import RefreshEndpointClient
from .config import AppConfig
from .coordinator import RefreshCoordinator
from .enums import HttpMethod
from .errors import HttpStatusError, NetworkError
from .interceptor import RequestInterceptor
from .models import ApiResponse, RequestDescriptor
from .token_store import TokenStore

logger = logging.getLogger(__name__)


class HttpClient:
    """``get/post/put/delete/patch`` over one aiohttp session.

    Every request passes through the ``RequestInterceptor`` before it is sent;
    a 401 reply is handed to the ``RefreshCoordinator``, which refreshes once
    and replays. Any other non-2xx reply raises ``HttpStatusError`` unchanged.

    Use as an async context manager, or call ``close()`` when done::

        async with HttpClient(config, store) as client:
            resp = await client.get("/api/attendance", params={"month": "2024-05"})
    """

    def __init__(
        self,
        config: AppConfig,
        token_store: TokenStore,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.config = config
        self.token_store = token_store
        self._session = session
        self._owns_session = session is None
        self._closed = False

        self.interceptor = RequestInterceptor(token_store)
        self.refresh_client = RefreshEndpointClient(config, token_store, self._get_session)
        self.coordinator = RefreshCoordinator(token_store, self.refresh_client)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._closed:
            raise RuntimeError("HttpClient is closed")
        if self._session is None:
            self._session = aiohttp.ClientSession()
        elif self._session.closed:
            raise RuntimeError("The aiohttp session passed to HttpClient is closed")
        return self._session

    async def close(self) -> None:
        self._closed = True
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "HttpClient":
        self._get_session()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def set_on_unauthorized(self, callback: Optional[Callable[[], None]]) -> None:
        """Register the hook fired when token refresh terminally fails."""
        self.coordinator.set_on_unauthorized(callback)

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse:
        descriptor = RequestDescriptor(
            method=HttpMethod(method.upper()),
            url=url,
            headers=dict(headers or {}),
            params=params,
            json=body,
            timeout=timeout,
        )
        return await self._dispatch(descriptor)

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None, **options: Any) -> ApiResponse:
        return await self.request(HttpMethod.GET.value, url, params=params, **options)

    async def post(self, url: str, body: Any = None, **options: Any) -> ApiResponse:
        return await self.request(HttpMethod.POST.value, url, body=body, **options)

    async def put(self, url: str, body: Any = None, **options: Any) -> ApiResponse:
        return await self.request(HttpMethod.PUT.value, url, body=body, **options)

    async def delete(self, url: str, **options: Any) -> ApiResponse:
        return await self.request(HttpMethod.DELETE.value, url, **options)

    async def patch(self, url: str, body: Any = None, **options: Any) -> ApiResponse:
        return await self.request(HttpMethod.PATCH.value, url, body=body, **options)

    async def _dispatch(self, descriptor: RequestDescriptor) -> ApiResponse:
        await self.interceptor.prepare(descriptor)
        try:
            return await self._send(descriptor)
        except HttpStatusError as e:
            if e.status != 401:
                raise
            return await self.coordinator.handle_unauthorized(descriptor, e, self._dispatch)

    async def _send(self, descriptor: RequestDescriptor) -> ApiResponse:
        url = self.config.url_for(descriptor.url)
        timeout = aiohttp.ClientTimeout(total=descriptor.timeout or self.config.request_timeout)
        session = self._get_session()

        logger.info("→ %s %s%s", descriptor.method.value, url, " (replay)" if descriptor.retried else "")
        try:
            async with session.request(
                descriptor.method.value,
                url,
                params=descriptor.params,
                json=descriptor.json,
                headers=descriptor.headers,
                timeout=timeout,
            ) as resp:
                response = await ApiResponse.from_aiohttp(resp)
        except asyncio.TimeoutError as e:
            raise NetworkError(f"{descriptor.method.value} {url} timed out") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Network error on {descriptor.method.value} {url}: {e}") from e

        logger.info("← HTTP %s for %s %s", response.status, descriptor.method.value, url)
        if not response.ok:
            raise HttpStatusError(response, descriptor)
        return response
