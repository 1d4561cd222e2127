"""
Shared fixtures: in-memory SQLite (aiosqlite) store and an ASGI client.
"""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from config.settings import Settings, config
from database.session import build_engine, build_session_factory, get_db_session, init_models
from main import create_app
from services.categories import CategoryRepository
from services.expenses import ExpenseRepository
from services.users import CredentialStore

TEST_SECRET = "test-secret"


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    monkeypatch.setattr(config, "bcrypt_rounds", 4)


@pytest_asyncio.fixture
async def engine():
    test_engine = build_engine("sqlite+aiosqlite://")
    await init_models(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as db:
        yield db
        await db.rollback()


@pytest.fixture
def users(session):
    return CredentialStore(session)


@pytest.fixture
def categories(session):
    return CategoryRepository(session)


@pytest.fixture
def expenses(session):
    return ExpenseRepository(session)


@pytest_asyncio.fixture
async def app(session_factory):
    application = create_app(Settings(jwt_secret=TEST_SECRET, auto_create_tables=False))

    async def override_get_db_session():
        async with session_factory() as db:
            try:
                yield db
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_get_db_session
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest.fixture
def make_user(client):
    """Sign up through the API; returns ``{"token", "user", "headers"}``."""

    async def _make_user(name: str, email: str, password: str = "Secret123") -> dict:
        resp = await client.post("/auth/signup", json={"name": name, "email": email, "password": password})
        assert resp.status_code == 201, resp.text
        data = resp.json()["data"]
        data["headers"] = {"Authorization": f"Bearer {data['token']}"}
        return data

    return _make_user
