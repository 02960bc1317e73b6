"""
Tests for RequestInterceptor.
"""

import pytest
from unittest.mock import AsyncMock, Mock

from sodam_client.enums import HttpMethod
from sodam_client.interceptor import RequestInterceptor
from sodam_client.models import RequestDescriptor


@pytest.fixture
def mock_store():
    mock = Mock()
    mock.get_access = AsyncMock()
    return mock


@pytest.mark.asyncio
async def test_attaches_bearer_token(mock_store):
    mock_store.get_access.return_value = "at"
    descriptor = RequestDescriptor(HttpMethod.GET, "/x", headers={"X-Trace": "1"})

    await RequestInterceptor(mock_store).prepare(descriptor)

    assert descriptor.headers == {"X-Trace": "1", "Authorization": "Bearer at"}


@pytest.mark.asyncio
async def test_no_token_no_header(mock_store):
    mock_store.get_access.return_value = None
    descriptor = RequestDescriptor(HttpMethod.POST, "/x")

    await RequestInterceptor(mock_store).prepare(descriptor)

    assert "Authorization" not in descriptor.headers


@pytest.mark.asyncio
async def test_failing_token_read_sends_without_header(mock_store):
    mock_store.get_access.side_effect = RuntimeError("storage unavailable")
    descriptor = RequestDescriptor(HttpMethod.GET, "/x")

    result = await RequestInterceptor(mock_store).prepare(descriptor)

    assert result is descriptor
    assert "Authorization" not in descriptor.headers
