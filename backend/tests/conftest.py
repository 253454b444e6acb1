"""Pytest fixtures for the feed backend."""

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from pathlib import Path
from typing import Any
from uuid import uuid4

from alembic import command
from alembic.config import Config
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from api.deps import get_credentials, get_db
from app import create_app
from core import CredentialService
from core.config import settings

TEST_JWT_SECRET = "test-secret"


def _run_alembic_migrations(database_url: str) -> None:
    """Apply Alembic migrations to the given database URL."""
    backend_dir = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(backend_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(backend_dir / "alembic"))
    alembic_cfg.attributes["configure_logger"] = False

    original_database_url = settings.database_url
    try:
        settings.database_url = database_url
        command.upgrade(alembic_cfg, "head")
    finally:
        settings.database_url = original_database_url


@pytest.fixture(scope="session")
def test_database_url(tmp_path_factory) -> str:
    """Create and migrate a file-backed SQLite database for tests."""
    db_dir = tmp_path_factory.mktemp("sqlite")
    db_path = db_dir / "feed-test.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"
    _run_alembic_migrations(database_url)
    return database_url


@pytest.fixture(scope="session")
def test_engine(test_database_url: str) -> AsyncEngine:
    """Create an async engine bound to the migrated SQLite test database.

    NullPool keeps connections from outliving the event loop of the test
    that opened them. The busy timeout lets concurrent writers queue on
    SQLite's database lock instead of failing.
    """
    return create_async_engine(
        test_database_url,
        connect_args={"check_same_thread": False, "timeout": 30},
        poolclass=NullPool,
    )


@pytest.fixture(scope="session")
def session_maker(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to the test engine."""
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest.fixture(scope="session")
def credentials() -> CredentialService:
    """Credential service with a fixed secret and cheap bcrypt rounds."""
    return CredentialService(TEST_JWT_SECRET, bcrypt_rounds=4)


@pytest.fixture(scope="session")
def app(session_maker, credentials: CredentialService) -> Iterator[FastAPI]:
    """Create the FastAPI app with test database and credential overrides."""
    application = create_app()

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_credentials] = lambda: credentials
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Return an HTTPX async client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture(autouse=True)
async def clean_database(session_maker) -> AsyncIterator[None]:
    """Clear tables before each test to guarantee isolation."""
    async with session_maker() as session:
        for table in reversed(SQLModel.metadata.sorted_tables):
            await session.execute(table.delete())
        await session.commit()
    yield


@pytest_asyncio.fixture()
async def db_session(session_maker) -> AsyncIterator[AsyncSession]:
    """Provide a raw database session to tests."""
    async with session_maker() as session:
        yield session


def make_user_payload(prefix: str) -> dict[str, str]:
    suffix = uuid4().hex[:8]
    return {
        "name": f"{prefix.title()} {suffix}",
        "email": f"{prefix}_{suffix}@example.com",
        "password": "Sup3rSecret!",
    }


RegisterUser = Callable[[str], Awaitable[dict[str, Any]]]


@pytest_asyncio.fixture()
async def register_user(async_client: AsyncClient) -> RegisterUser:
    """Register a fresh account; returns its user payload, token and headers."""

    async def _register(prefix: str = "user") -> dict[str, Any]:
        payload = make_user_payload(prefix)
        response = await async_client.post("/api/auth/register", json=payload)
        assert response.status_code == 201, response.text
        body = response.json()
        return {
            "user": body["user"],
            "token": body["token"],
            "headers": {"Authorization": f"Bearer {body['token']}"},
            "password": payload["password"],
        }

    return _register


@pytest_asyncio.fixture()
async def create_post(async_client: AsyncClient) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Create a post as the given account and return the post payload."""

    async def _create(account: dict[str, Any], content: str = "hello world", **extra: Any) -> dict[str, Any]:
        response = await async_client.post(
            "/api/posts",
            json={"content": content, **extra},
            headers=account["headers"],
        )
        assert response.status_code == 201, response.text
        return response.json()["post"]

    return _create
