"""
Tests for the request id and request logging middlewares.
"""
import logging
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from liberty_api.api import dependencies
from liberty_api.domain.models import Account
from liberty_api.main import app
from liberty_api.middlewares import RequestIdMiddleware, RequestLoggerMiddleware


def build_app() -> FastAPI:
    small_app = FastAPI()
    small_app.add_middleware(RequestLoggerMiddleware)
    small_app.add_middleware(RequestIdMiddleware)

    @small_app.get("/ok")
    async def ok():
        return {"ok": True}

    @small_app.get("/boom")
    async def boom():
        raise RuntimeError("boom")

    return small_app


@pytest.fixture
async def small_client():
    transport = ASGITransport(app=build_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def error_records(caplog, request_id):
    return [
        record for record in caplog.records
        if record.levelno >= logging.ERROR and request_id in record.getMessage()
    ]


@pytest.mark.asyncio
async def test_request_id_is_reused_or_generated(small_client):
    given = await small_client.get("/ok", headers={"X-Request-ID": "abc123"})
    generated = await small_client.get("/ok")

    assert given.headers["X-Request-ID"] == "abc123"
    assert len(generated.headers["X-Request-ID"]) == 32


@pytest.mark.asyncio
async def test_completed_requests_are_logged(small_client, caplog):
    caplog.set_level(logging.INFO, logger="liberty_api.middlewares")

    await small_client.get("/ok", headers={"X-Request-ID": "req-ok"})

    messages = [r.getMessage() for r in caplog.records]
    assert any(m.startswith("GET /ok 200") and "request_id=req-ok" in m for m in messages)


@pytest.mark.asyncio
async def test_unhandled_exception_is_logged_with_request_id(small_client, caplog):
    """Test a crashing route still leaves a 500 line carrying the request id."""
    caplog.set_level(logging.INFO, logger="liberty_api.middlewares")

    response = await small_client.get("/boom", headers={"X-Request-ID": "req-42"})

    assert response.status_code == 500
    failures = error_records(caplog, "req-42")
    access_lines = [r for r in failures if r.getMessage().startswith("GET /boom 500")]
    assert len(access_lines) == 1
    assert access_lines[0].exc_info is not None


@pytest.mark.asyncio
async def test_repository_failure_returns_internal_error(caplog):
    """Test the real app answers 500 internal_error and logs the request id."""
    broken_repo = AsyncMock()
    broken_repo.list_for_user.side_effect = RuntimeError("connection reset")
    app.dependency_overrides[dependencies.get_current_account] = lambda: Account(id=1, email="viewer@example.com")
    app.dependency_overrides[dependencies.get_group_repository] = lambda: broken_repo
    caplog.set_level(logging.INFO, logger="liberty_api.middlewares")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/groups", headers={"X-Request-ID": "req-500"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {
        "error": "internal_error",
        "detail": "An unexpected error occurred",
        "success": False,
    }
    assert any(r.getMessage().startswith("GET /groups 500") for r in error_records(caplog, "req-500"))