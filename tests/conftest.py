"""
Shared fixtures: the FastAPI app wired to in-memory repositories.
"""
import itertools
import os

# Cheap hashing and a fixed key; must be set before settings are loaded.
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from httpx import ASGITransport, AsyncClient

from liberty_api.api import dependencies
from liberty_api.main import app
from tests.fakes import (
    FakeAccountRepository,
    FakeConnectionRepository,
    FakeGroupRepository,
    FakePostRepository,
    InMemoryStore,
)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
async def client(store):
    app.dependency_overrides[dependencies.get_account_repository] = lambda: FakeAccountRepository(store)
    app.dependency_overrides[dependencies.get_post_repository] = lambda: FakePostRepository(store)
    app.dependency_overrides[dependencies.get_group_repository] = lambda: FakeGroupRepository(store)
    app.dependency_overrides[dependencies.get_connection_repository] = lambda: FakeConnectionRepository(store)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def create_account(client):
    """Sign up and log in a fresh account; returns (account json, auth headers)"""
    counter = itertools.count(1)

    async def _create(email=None, password="correct-horse", **profile):
        email = email or f"member{next(counter)}@example.com"
        response = await client.post("/signup", json={"email": email, "password": password, **profile})
        assert response.status_code == 201, response.text

        login = await client.post("/login", json={"email": email, "password": password})
        assert login.status_code == 200, login.text
        token = login.json()["accessToken"]
        return response.json(), {"Authorization": f"Bearer {token}"}

    return _create
