"""Tests for RemoteLogMiddleware on a bare Starlette app."""

import httpx
import pytest
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route

from snaplink_shared import LogClient, LogValidationError, RemoteLogMiddleware


async def ok(request):
    return JSONResponse({"ok": True})


async def boom(request):
    raise RuntimeError("database exploded")


def build_app(client: LogClient, **kwargs) -> Starlette:
    app = Starlette(routes=[Route("/ok", ok), Route("/boom", boom)])
    app.add_middleware(RemoteLogMiddleware, client=client, **kwargs)
    return app


async def test_logs_one_line_per_request():
    log_client = LogClient()
    transport = httpx.ASGITransport(app=build_app(log_client))

    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        response = await http.get("/ok", params={"q": "1"})

    assert response.status_code == 200
    [entry] = log_client.entries
    assert entry.stack == "backend"
    assert entry.package == "route"
    assert entry.level == "info"
    assert entry.message.startswith("GET /ok?q=1 -> 200 (")
    assert entry.message.endswith("ms)")


async def test_logs_not_found_requests():
    log_client = LogClient()
    transport = httpx.ASGITransport(app=build_app(log_client))

    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        await http.get("/missing")

    assert log_client.entries[0].message.startswith("GET /missing -> 404")


async def test_logs_and_reraises_errors():
    log_client = LogClient()
    transport = httpx.ASGITransport(app=build_app(log_client), raise_app_exceptions=True)

    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        with pytest.raises(RuntimeError, match="database exploded"):
            await http.get("/boom")

    [entry] = log_client.entries
    assert entry.package == "handler"
    assert entry.level == "error"
    assert entry.message == "database exploded"


async def test_delivery_failure_does_not_break_response():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    log_client = LogClient(
        endpoint="http://logs.test/logs",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    transport = httpx.ASGITransport(app=build_app(log_client))

    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        response = await http.get("/ok")

    assert response.status_code == 200
    assert log_client.stats["failed"] == 1


async def test_custom_stack_and_package():
    log_client = LogClient()
    transport = httpx.ASGITransport(
        app=build_app(
            log_client,
            stack="frontend",
            package="api",
            level="debug",
            error_package="utils",
        )
    )

    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        await http.get("/ok")

    assert (log_client.entries[0].stack, log_client.entries[0].package) == ("frontend", "api")


async def test_bad_package_fails_at_startup():
    log_client = LogClient()
    app = build_app(log_client, package="not-a-package")
    transport = httpx.ASGITransport(app=app)

    with pytest.raises(LogValidationError):
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
            await http.get("/ok")
