import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.timeout import RequestTimeoutMiddleware
from app.main import create_app


@pytest.fixture()
def slow_app():
    app = create_app()
    finished = []

    @app.get("/slow")
    async def slow(seconds: float = 1.0):
        await asyncio.sleep(seconds)
        finished.append(seconds)
        return {"done": True}

    app.state.finished = finished
    return app


@pytest.mark.asyncio
async def test_request_over_deadline_gets_504(slow_app) -> None:
    async with AsyncClient(transport=ASGITransport(app=slow_app), base_url="http://test") as ac:
        response = await ac.get("/slow", params={"seconds": 2}, headers={"X-Request-Timeout": "0.05"})
    assert response.status_code == 504
    assert response.json() == {"detail": "Request timed out"}
    assert slow_app.state.finished == []


@pytest.mark.asyncio
async def test_request_within_deadline(slow_app) -> None:
    async with AsyncClient(transport=ASGITransport(app=slow_app), base_url="http://test") as ac:
        response = await ac.get("/slow", params={"seconds": 0.01}, headers={"X-Request-Timeout": "5"})
    assert response.status_code == 200


def test_requested_timeout_is_clamped() -> None:
    middleware = RequestTimeoutMiddleware(app=None, default_timeout=15, max_timeout=60)
    assert middleware.timeout_for({"headers": [(b"x-request-timeout", b"600")]}) == 60
    assert middleware.timeout_for({"headers": [(b"x-request-timeout", b"2.5")]}) == 2.5
    assert middleware.timeout_for({"headers": [(b"x-request-timeout", b"soon")]}) == 15
    assert middleware.timeout_for({"headers": []}) == 15
