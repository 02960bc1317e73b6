"""
Pytest configuration: a fake Sodam backend served by aiohttp.web.

Protected routes accept only ``Bearer <valid_token>``; the refresh routes count
their calls and can be switched between success and the various failure shapes.
"""

import asyncio

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from sodam_client.config import AppConfig
from sodam_client.http_client import HttpClient
from sodam_client.storage import MemoryStorage
from sodam_client.token_store import TokenPair, TokenStore


class FakeBackend:
    def __init__(self) -> None:
        self.base_url = ""
        self.valid_token = "newA"
        self.refresh_calls = 0
        self.fallback_calls = 0
        self.refresh_bodies: list = []
        self.refresh_delay = 0.2
        # ok | reject | missing | nested | server_error
        self.refresh_mode = "ok"
        self.primary_status: int | None = None
        self.seen_auth: list = []
        self.login_payload: dict = {"accessToken": "loginA", "refreshToken": "loginR", "userId": 7}
        self.logout_calls: list = []
        self.logout_status = 200
        self.me_status = 200

        app = web.Application()
        app.router.add_get("/protected", self.protected)
        app.router.add_get("/protected2", self.protected)
        app.router.add_post("/api/echo", self.echo)
        app.router.add_route("*", "/api/items/1", self.items)
        app.router.add_get("/boom", self.boom)
        app.router.add_get("/slow", self.slow)
        app.router.add_get("/payslip", self.payslip)
        app.router.add_get("/notes", self.notes)
        app.router.add_post("/api/auth/refresh", self.refresh_primary)
        app.router.add_post("/api/refresh", self.refresh_fallback)
        app.router.add_post("/api/login", self.login)
        app.router.add_post("/api/auth/logout", self.logout_primary)
        app.router.add_post("/api/logout", self.logout_fallback)
        app.router.add_get("/api/auth/me", self.me_primary)
        app.router.add_get("/api/me", self.me_fallback)
        self.app = app

    def _authorized(self, request: web.Request) -> bool:
        auth = request.headers.get("Authorization")
        self.seen_auth.append(auth)
        return auth == f"Bearer {self.valid_token}"

    async def protected(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.json_response({"message": "unauthorized"}, status=401)
        return web.json_response({"ok": True, "path": request.path, "query": dict(request.query)})

    async def echo(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.json_response({"message": "unauthorized"}, status=401)
        return web.json_response({"echo": await request.json()})

    async def items(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.json_response({"message": "unauthorized"}, status=401)
        body = await request.json() if request.can_read_body else None
        return web.json_response({"method": request.method, "body": body})

    async def boom(self, request: web.Request) -> web.Response:
        return web.json_response({"message": "server error"}, status=500)

    async def payslip(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.json_response({"message": "unauthorized"}, status=401)
        return web.Response(body=b"%PDF-1.4\xff\xfe\x00\x81", content_type="application/pdf")

    async def notes(self, request: web.Request) -> web.Response:
        return web.Response(body=b"caf\xe9 closed", content_type="text/plain", charset="utf-8")

    async def slow(self, request: web.Request) -> web.Response:
        await asyncio.sleep(0.5)
        return web.json_response({"ok": True})

    async def _refresh(self, request: web.Request) -> web.Response:
        body = await request.json()
        self.refresh_bodies.append(body)
        await asyncio.sleep(self.refresh_delay)
        if self.refresh_mode == "reject":
            return web.json_response({"message": "invalid refresh token"}, status=401)
        if self.refresh_mode == "server_error":
            return web.json_response({"message": "down"}, status=503)
        if self.refresh_mode == "missing":
            return web.json_response({"refreshToken": "newR"})
        if self.refresh_mode == "nested":
            return web.json_response({"message": "ok", "data": {"accessToken": "newA"}})
        return web.json_response({"accessToken": "newA", "refreshToken": "newR"})

    async def refresh_primary(self, request: web.Request) -> web.Response:
        self.refresh_calls += 1
        if self.primary_status is not None:
            return web.json_response({"message": "no such route"}, status=self.primary_status)
        return await self._refresh(request)

    async def refresh_fallback(self, request: web.Request) -> web.Response:
        self.fallback_calls += 1
        return await self._refresh(request)

    async def login(self, request: web.Request) -> web.Response:
        return web.json_response(self.login_payload)

    async def logout_primary(self, request: web.Request) -> web.Response:
        self.logout_calls.append(("primary", await request.json()))
        return web.json_response({"message": "bye"}, status=self.logout_status)

    async def logout_fallback(self, request: web.Request) -> web.Response:
        self.logout_calls.append(("fallback", await request.json()))
        return web.json_response({"message": "bye"})

    async def me_primary(self, request: web.Request) -> web.Response:
        if self.me_status != 200:
            return web.json_response({"message": "nope"}, status=self.me_status)
        return await self._me(request)

    async def me_fallback(self, request: web.Request) -> web.Response:
        return await self._me(request)

    async def _me(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.json_response({"message": "unauthorized"}, status=401)
        return web.json_response({"id": 7, "email": "kim@example.com", "route": request.path})


@pytest_asyncio.fixture
async def backend():
    fake = FakeBackend()
    server = TestServer(fake.app)
    await server.start_server()
    fake.base_url = f"http://{server.host}:{server.port}"
    yield fake
    await server.close()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def token_store(storage):
    return TokenStore(storage)


@pytest_asyncio.fixture
async def client(backend, token_store):
    await token_store.set_tokens(TokenPair(access_token="oldA", refresh_token="ref1"))
    config = AppConfig(base_url=backend.base_url)
    async with HttpClient(config, token_store) as http:
        yield http
