"""
Pytest configuration and fixtures for file token gateway tests.

Provides common fixtures for:
- In-memory token store database
- Settings pointing at temporary storage roots
- Async HTTP client against the ASGI app
- Sample file contents
"""

import os

# Must be set before the application modules build their engine
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from filetoken.core.config import Settings, get_settings  # noqa: E402
from filetoken.db.session import Base, get_db  # noqa: E402
from filetoken.main import app  # noqa: E402
from filetoken.models import FileToken  # noqa: E402
from filetoken.services.path_resolver import FilePathResolver  # noqa: E402
from filetoken.store import SQLAlchemyTokenStore  # noqa: E402

# =============================================================================
# Database Fixtures
# =============================================================================


# Use SQLite for tests (faster, no external dependencies)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def async_engine():
    """Create async test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests."""
    async_session = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def token_store(db_session) -> SQLAlchemyTokenStore:
    return SQLAlchemyTokenStore(db_session, timeout=5.0)


# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
def private_root(tmp_path):
    root = tmp_path / "private"
    root.mkdir()
    return root


@pytest.fixture
def public_root(tmp_path):
    root = tmp_path / "public"
    root.mkdir()
    return root


@pytest.fixture
def test_settings(private_root, public_root) -> Settings:
    """Settings with storage roots under the test's temporary directory."""
    return Settings(
        DATABASE_URL=TEST_DATABASE_URL,
        ENVIRONMENT="test",
        SITE_BASE_URL="http://files.example.org",
        PRIVATE_FILES_ROOT=str(private_root),
        PUBLIC_FILES_ROOT=str(public_root),
        STREAM_CHUNK_SIZE=16,
    )


@pytest.fixture
def resolver(test_settings) -> FilePathResolver:
    return FilePathResolver.from_settings(test_settings)


@pytest.fixture
def png_bytes() -> bytes:
    """Simple 1x1 transparent PNG."""
    return bytes([
        0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A,
        0x00, 0x00, 0x00, 0x0D, 0x49, 0x48, 0x44, 0x52,
        0x00, 0x00, 0x00, 0x01, 0x00, 0x00, 0x00, 0x01,
        0x08, 0x06, 0x00, 0x00, 0x00, 0x1F, 0x15, 0xC4,
        0x89, 0x00, 0x00, 0x00, 0x0A, 0x49, 0x44, 0x41,
        0x54, 0x78, 0x9C, 0x63, 0x00, 0x01, 0x00, 0x00,
        0x05, 0x00, 0x01, 0x0D, 0x0A, 0x2D, 0xB4, 0x00,
        0x00, 0x00, 0x00, 0x49, 0x45, 0x4E, 0x44, 0xAE,
        0x42, 0x60, 0x82,
    ])


@pytest.fixture
def make_token(db_session):
    """Insert a token row directly, bypassing the issuer."""

    async def _make(token: str, image_url: str, exp_timestamp: int, entity_id: int = 1) -> FileToken:
        record = FileToken(
            token=token,
            entity_id=entity_id,
            image_url=image_url,
            exp_timestamp=exp_timestamp,
            request_timestamp=exp_timestamp - 3600,
        )
        db_session.add(record)
        await db_session.commit()
        return record

    return _make


# =============================================================================
# Test Client Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def client(db_session, test_settings) -> AsyncGenerator[AsyncClient, None]:
    """Async client with database and settings overrides.

    The app lifespan is not run, so no connection to the configured
    database is attempted.
    """

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
