"""Single-flight token refresh for requests rejected with 401.

The coordinator is a two-state machine (``RefreshPhase.IDLE`` /
``RefreshPhase.REFRESHING``). The first 401 seen while idle starts a refresh;
every 401 arriving while that refresh is in flight is parked in a FIFO queue of
futures and settled with the refresh outcome. Successful refreshes replay the
parked requests with the new token; failed ones clear the stored tokens, fire
the unauthorized callback once, and reject every caller.

All state is touched from a single asyncio event loop. The phase check and the
phase assignment in ``handle_unauthorized`` must stay free of any ``await``
between them; driving one coordinator from several threads would need a lock
around that transition.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from .auth import RefreshEndpointClient
from .enums import RefreshPhase
from .errors import HttpStatusError
from .models import ApiResponse, RequestDescriptor
from .token_store import TokenStore

logger = logging.getLogger(__name__)

Replay = Callable[[RequestDescriptor], Awaitable[ApiResponse]]


@dataclass
class PendingEntry:
    """A request parked behind the in-flight refresh."""
    future: "asyncio.Future[Optional[str]]"
    descriptor: RequestDescriptor


class RefreshCoordinator:
    """Drives at most one refresh at a time and replays the requests it blocked."""

    def __init__(self, token_store: TokenStore, refresh_client: RefreshEndpointClient) -> None:
        self.token_store = token_store
        self.refresh_client = refresh_client
        self._phase = RefreshPhase.IDLE
        self._queue: list[PendingEntry] = []
        self._on_unauthorized: Optional[Callable[[], None]] = None

    @property
    def phase(self) -> RefreshPhase:
        return self._phase

    @property
    def is_refreshing(self) -> bool:
        return self._phase is RefreshPhase.REFRESHING

    @property
    def pending(self) -> int:
        return len(self._queue)

    def set_on_unauthorized(self, callback: Optional[Callable[[], None]]) -> None:
        """Register (or clear with None) the hook fired when refresh terminally fails."""
        self._on_unauthorized = callback

    async def handle_unauthorized(
        self, descriptor: RequestDescriptor, error: HttpStatusError, replay: Replay
    ) -> ApiResponse:
        """Resolve a 401 for ``descriptor`` by refreshing and replaying it.

        Raises ``error`` when the descriptor was already replayed once, or when a
        refresh it waited on failed. Raises the refresh error itself for the
        request that triggered a failing refresh.
        """
        if descriptor.retried:
            logger.warning("%s %s rejected again after refresh; giving up",
                           descriptor.method.value, descriptor.url)
            raise error
        descriptor.retried = True

        if self._phase is RefreshPhase.REFRESHING:
            token = await self._wait_for_refresh(descriptor)
            if token is None:
                raise error
            descriptor.set_bearer(token)
            return await replay(descriptor)

        self._phase = RefreshPhase.REFRESHING
        new_access: Optional[str] = None
        try:
            tokens = await self.refresh_client.refresh()
            await self.token_store.set_tokens(tokens)
            new_access = tokens.access_token
            logger.info("Token refreshed; replaying %d queued request(s)", len(self._queue))
        except Exception as e:
            logger.warning("Token refresh failed (%s); rejecting %d queued request(s)",
                           type(e).__name__, len(self._queue))
            self._drain(None)
            await self.token_store.clear()
            self._notify_unauthorized()
            raise
        finally:
            # Also covers cancellation of the refreshing task.
            self._drain(new_access)
            self._phase = RefreshPhase.IDLE

        descriptor.set_bearer(new_access)
        return await replay(descriptor)

    async def _wait_for_refresh(self, descriptor: RequestDescriptor) -> Optional[str]:
        future: "asyncio.Future[Optional[str]]" = asyncio.get_running_loop().create_future()
        self._queue.append(PendingEntry(future=future, descriptor=descriptor))
        logger.debug("Queued %s %s behind in-flight refresh (%d waiting)",
                     descriptor.method.value, descriptor.url, len(self._queue))
        return await future

    def _drain(self, token: Optional[str]) -> None:
        """Settle every parked entry in arrival order with ``token`` (None = failed)."""
        queue, self._queue = self._queue, []
        for entry in queue:
            if not entry.future.done():
                entry.future.set_result(token)

    def _notify_unauthorized(self) -> None:
        if self._on_unauthorized is None:
            return
        try:
            self._on_unauthorized()
        except Exception:
            logger.exception("Unauthorized callback raised")
