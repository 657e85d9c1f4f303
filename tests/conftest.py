"""
GrantIQ Test Configuration and Fixtures
Shared pytest fixtures for all test modules.
"""
import os

os.environ.setdefault("ASYNC_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-at-least-32-characters")

import tempfile
import uuid
from typing import Any, AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from backend.api.deps import create_access_token
from backend.database import get_db
from backend.main import app
from backend.models import Base, User


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def async_engine():
    """Create an async SQLite engine for testing."""
    # Use a unique temp file for each test to ensure complete isolation
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        connect_args={"check_same_thread": False},
        echo=False,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()

    try:
        os.unlink(db_path)
    except OSError:
        pass


@pytest_asyncio.fixture(scope="function")
async def session_maker(async_engine):
    return async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def async_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create an async session for testing."""
    async with session_maker() as session:
        yield session
        await session.rollback()


# =============================================================================
# User & Auth Fixtures
# =============================================================================


@pytest.fixture
def sample_user_data() -> dict[str, Any]:
    return {
        "id": uuid.uuid4(),
        "email": "pi@example.edu",
        "name": "Dr. Jane Smith",
        # Tests that log in register their own account; this hash is never verified
        "password_hash": "not-a-real-hash",
    }


@pytest_asyncio.fixture
async def db_user(async_session: AsyncSession, sample_user_data) -> User:
    """Create a test user in the database."""
    user = User(**sample_user_data)
    async_session.add(user)
    await async_session.commit()
    await async_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def other_user(async_session: AsyncSession) -> User:
    """A second account, for ownership checks."""
    user = User(id=uuid.uuid4(), email="other@example.edu", name="Other PI", password_hash="x")
    async_session.add(user)
    await async_session.commit()
    return user


@pytest_asyncio.fixture
async def admin_user(async_session: AsyncSession) -> User:
    user = User(id=uuid.uuid4(), email="admin@example.edu", name="Admin", password_hash="x", role="admin")
    async_session.add(user)
    await async_session.commit()
    return user


def headers_for(user: User) -> dict[str, str]:
    token = create_access_token({"sub": str(user.id), "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(db_user: User) -> dict[str, str]:
    """Create authorization headers for API requests."""
    return headers_for(db_user)


@pytest.fixture
def other_headers(other_user: User) -> dict[str, str]:
    return headers_for(other_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return headers_for(admin_user)


# =============================================================================
# HTTP Client
# =============================================================================


@pytest_asyncio.fixture
async def async_client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """API client whose requests run against the test database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# =============================================================================
# LLM Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_llm_client(monkeypatch):
    """Replace the shared LLM client with an AsyncMock-backed double."""
    client = MagicMock()
    client.complete_json = AsyncMock(return_value={})
    client.complete_text = AsyncMock(return_value="")

    for module in (
        "backend.services.ai_writing",
        "backend.services.application_analysis",
        "backend.services.grant_builder",
        "backend.services.letters",
        "backend.services.resubmission",
    ):
        monkeypatch.setattr(f"{module}.get_llm_client", lambda: client)

    return client


# =============================================================================
# Domain Sample Data
# =============================================================================


@pytest.fixture
def sample_architecture() -> dict[str, Any]:
    """A complete, well-formed two-aim architecture."""
    return {
        "central_hypothesis": "Loss of TREM2 signaling in microglia accelerates amyloid plaque toxicity in early Alzheimer's disease",
        "innovation_statement": "First in vivo test of TREM2 agonism as a disease-modifying therapy",
        "aims": [
            {
                "id": "aim-1",
                "title": "Define TREM2 signaling defects in patient-derived microglia",
                "hypothesis": "TREM2 variants reduce SYK phosphorylation by at least 40%",
                "is_falsifiable": True,
                "endpoints": ["SYK phosphorylation", "Phagocytic index"],
                "rationale": "Patient variants are linked to risk",
            },
            {
                "id": "aim-2",
                "title": "Test TREM2 agonist antibody in 5xFAD mice",
                "hypothesis": "Agonist treatment reduces plaque burden by 30%",
                "is_falsifiable": True,
                "endpoints": ["Plaque burden", "Morris water maze latency"],
                "rationale": "Target engagement shown in pilot",
            },
        ],
    }
