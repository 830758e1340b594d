"""
BookBrief Backend — Test Configuration (conftest.py)
======================================================

What:  Shared fixtures: an in-memory database, users, a sample PDF, fakes
       for the extractor/provider, and an HTTP client bound to the app.
How:   Environment variables are set BEFORE anything under `app` is
       imported, because app.config reads them once at import time.

Fixture Hierarchy (all function-scoped):
    db_engine ── session_factory ──┬── db_session ── user / other_user
                                   └── test_client (get_db_session overridden)
    temp_storage, blank_pdf_bytes, fake_provider
"""

import io
import os
import tempfile

# ── Environment Setup (must precede app imports) ─────────────────────────
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["GEMINI_API_KEY"] = ""
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="bookbrief_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-not-for-production"

from typing import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from pypdf import PdfWriter  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.database import Base, get_db_session  # noqa: E402
from app.models import User  # noqa: E402
from app.security import hash_password  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    Fresh in-memory SQLite per test.

    StaticPool keeps the single connection alive; without it every new
    connection would see an empty database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


async def _create_user(session: AsyncSession, email: str, name: str) -> User:
    user = User(email=email, name=name, password_hash=hash_password("secret123"))
    session.add(user)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def user(db_session) -> User:
    return await _create_user(db_session, "reader@example.com", "Reader")


@pytest_asyncio.fixture
async def other_user(db_session) -> User:
    return await _create_user(db_session, "someone.else@example.com", "Someone Else")


# ══════════════════════════════════════════════════════════════════════════
# Files
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def blank_pdf_bytes() -> bytes:
    """A structurally valid one-page PDF with no text on it."""
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


# ══════════════════════════════════════════════════════════════════════════
# Fakes
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_provider():
    """A configured SummaryProvider whose reply each test sets."""
    provider = MagicMock()
    provider.is_configured = True
    provider.generate_summary = AsyncMock(return_value="A concise provider summary.")
    return provider


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the app in-process.

    get_db_session is overridden to use the per-test database; the
    lifespan does not run under ASGITransport.
    """
    from app.main import app

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
