import logging

from .models import RequestDescriptor
from .token_store import TokenStore

logger = logging.getLogger(__name__)


class RequestInterceptor:
    """Attaches the current access token to outgoing requests."""

    def __init__(self, token_store: TokenStore) -> None:
        self.token_store = token_store

    async def prepare(self, descriptor: RequestDescriptor) -> RequestDescriptor:
        # A failed read sends the request unauthenticated; the server's 401
        # then goes through the normal refresh path.
        try:
            token = await self.token_store.get_access()
        except Exception:
            logger.warning("Could not read access token; sending %s %s without it",
                           descriptor.method.value, descriptor.url, exc_info=True)
            return descriptor
        if token:
            descriptor.set_bearer(token)
        return descriptor
