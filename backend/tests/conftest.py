"""
StoreFinder Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── engine: async SQLite engine on a per-test file, tables created
    ├── session_factory / db_session: sessions bound to that engine
    ├── make_user / make_store: committed rows for tests to act on
    ├── mock_db_session: Mock session for pure unit tests
    ├── temp_uploads / png_bytes: photo pipeline inputs
    └── test_client: HTTPX AsyncClient against a fresh app on the test engine
"""

import io
import os
import tempfile
from typing import AsyncGenerator, List, Optional
from unittest.mock import AsyncMock, MagicMock

# Override settings BEFORE any storefinder import: settings, the engine and
# the photo service singleton are built at import time.
_test_root = tempfile.mkdtemp(prefix="storefinder_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_test_root}/app.db"
os.environ["UPLOADS_DIR"] = os.path.join(_test_root, "uploads")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from PIL import Image  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from storefinder.database import Base, get_db_session  # noqa: E402
from storefinder.models import Review, Store, User  # noqa: E402
from storefinder.services.store_repository import store_repository  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    """
    A file-backed SQLite engine per test.

    File-backed (not :memory:) so sibling sessions opened by the services
    see the same database.
    """
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(db_session):
    """
    Factory for committed users.

    Usage:
        user = await make_user("Wes")
    """
    async def _make(name: str = "Wes", email: Optional[str] = None) -> User:
        user = User(name=name, email=email or f"{name.lower().replace(' ', '.')}@example.com")
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_store(db_session):
    """
    Factory for committed stores, saved through the repository so the
    slug is derived the same way the app derives it.
    """
    async def _make(
        author: User,
        name: str = "Coffee Corner",
        description: Optional[str] = "Fresh coffee and pastries",
        tags: Optional[List[str]] = None,
        lng: float = -79.38,
        lat: float = 43.65,
        address: str = "1 Main St",
    ) -> Store:
        store = Store(
            name=name,
            description=description,
            longitude=lng,
            latitude=lat,
            address=address,
            author_id=author.id,
        )
        store.tags = tags or []
        await store_repository.save(db_session, store, name_changed=True)
        await db_session.commit()
        return store

    return _make


@pytest.fixture
def add_reviews(db_session):
    async def _add(store: Store, author: User, *ratings: int) -> None:
        for rating in ratings:
            db_session.add(Review(store_id=store.id, author_id=author.id, rating=rating, text="Nice"))
        await db_session.commit()

    return _add


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior, for tests that
    should never reach a database.
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.scalar = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Photos
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_uploads(tmp_path):
    uploads_dir = tmp_path / "uploads"
    uploads_dir.mkdir()
    return str(uploads_dir)


@pytest.fixture
def png_bytes():
    """Factory for real PNG images of a given size."""
    def _make(width: int = 1600, height: int = 1200) -> bytes:
        output = io.BytesIO()
        Image.new("RGB", (width, height), color=(200, 80, 40)).save(output, format="PNG")
        return output.getvalue()

    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to a fresh app whose sessions come from the
    test engine.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from storefinder.main import create_app

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db_session] = override_get_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
