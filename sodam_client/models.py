"""Request and response containers passed between the client layers."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from .enums import HttpMethod

logger = logging.getLogger(__name__)


@dataclass
class RequestDescriptor:
    """Everything needed to (re-)issue one request.

    ``retried`` is set by the refresh coordinator the first time the request
    hits a 401; a second 401 on the same descriptor is terminal.
    """
    method: HttpMethod
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] | None = None
    json: Any = None
    timeout: float | None = None
    retried: bool = False

    def set_bearer(self, token: str) -> None:
        self.headers["Authorization"] = f"Bearer {token}"


@dataclass
class ApiResponse:
    """Normalized response handed back to callers."""
    status: int
    headers: dict[str, str]
    data: Any
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @classmethod
    async def from_aiohttp(cls, resp: aiohttp.ClientResponse) -> "ApiResponse":
        """Read the body while the connection is still open.

        JSON bodies are parsed, text bodies decoded (undecodable bytes replaced),
        and anything else (PDF payslips, images) is kept as raw bytes.
        """
        raw = await resp.read()
        content_type = resp.content_type or ""
        data: Any = raw or None
        if raw and "json" in content_type:
            try:
                data = await resp.json(content_type=None)
            except (ValueError, LookupError):
                logger.debug("Response from %s declared JSON but did not parse", resp.url)
                data = _decode(raw, resp.charset)
        elif raw and content_type.startswith("text/"):
            data = _decode(raw, resp.charset)
        return cls(status=resp.status, headers=dict(resp.headers), data=data, url=str(resp.url))


def _decode(raw: bytes, charset: str | None) -> str:
    try:
        return raw.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")
