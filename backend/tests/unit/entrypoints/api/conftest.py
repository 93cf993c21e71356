"""Fixtures for exercising the HTTP API against the in-memory context."""

from collections.abc import AsyncIterator, Awaitable, Callable

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from okrhub.core.context import Context
from okrhub.entrypoints.api.deps import get_context
from okrhub.entrypoints.api.routes import api_router

PASSWORD = "correct-horse-battery"


@pytest.fixture
def app(context: Context) -> FastAPI:
    """Create test app with the API routes and no lifespan."""
    app = FastAPI(redirect_slashes=False)
    app.include_router(api_router, prefix="/api/v1")
    app.dependency_overrides[get_context] = lambda: context
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Create async test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def login(client: AsyncClient) -> Callable[..., Awaitable[dict[str, str]]]:
    """Register an account, log in and return bearer headers."""

    async def _login(email: str, name: str = "Test User") -> dict[str, str]:
        response = await client.post(
            "/api/v1/auth/register", json={"email": email, "name": name, "password": PASSWORD}
        )
        assert response.status_code == 201
        response = await client.post(
            "/api/v1/auth/login", json={"email": email, "password": PASSWORD}
        )
        assert response.status_code == 200
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _login
