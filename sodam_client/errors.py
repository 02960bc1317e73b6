"""Exception hierarchy raised by the Sodam client.

Everything raised on purpose derives from ``ApiError`` so callers can catch a
single type. Transport problems are wrapped in ``NetworkError``; non-2xx
replies become ``HttpStatusError`` carrying the decoded response.
"""
from __future__ import annotations

from .models import ApiResponse, RequestDescriptor


class ApiError(Exception):
    """Base class for client errors."""


class HttpStatusError(ApiError):
    """The server answered with a non-2xx status."""

    def __init__(self, response: ApiResponse, descriptor: RequestDescriptor | None = None) -> None:
        self.response = response
        self.descriptor = descriptor
        method = descriptor.method.value if descriptor else "POST"
        super().__init__(f"{method} {response.url} failed with HTTP {response.status}")

    @property
    def status(self) -> int:
        return self.response.status


class AuthFailure(HttpStatusError):
    """The refresh endpoint rejected the refresh token."""


class NetworkError(ApiError):
    """Timeout or connectivity failure."""


class RefreshError(ApiError):
    """Refresh could not produce a usable token pair."""


class NoRefreshToken(RefreshError):
    """No refresh token is stored; nothing was sent."""


class InvalidRefreshResponse(RefreshError):
    """The refresh call succeeded but the body has no access token."""


class InvalidLoginResponse(ApiError):
    """The login reply carried no access token."""
