"""
Taskboard API: Test Configuration (conftest.py)
================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a fresh in-memory SQLite database (aiosqlite) with
       the full schema, so services run against real SQL, not mocks.

Fixture Hierarchy (all function-scoped):
    db_engine ─┬─ db_session ── make_user / make_board
               └─ client (httpx AsyncClient over ASGITransport)
                    ├── get_db_session    → session per request on db_engine
                    ├── get_mail_service  → FakeMailService (fake_mailer)
                    └── get_upload_service→ UploadService on tmp_path
"""

import base64
import os
import tempfile
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

# Override settings for testing BEFORE any taskboard imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="taskboard_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["ACCESS_TOKEN_SECRET"] = "test-access-secret-0123456789abcdef0123"
os.environ["REFRESH_TOKEN_SECRET"] = "test-refresh-secret-0123456789abcdef012"
os.environ["SMTP_HOST"] = ""
os.environ["UPLOAD_BACKEND"] = "local"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["LOGIN_RATE_LIMIT_REQUESTS"] = "1000"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from taskboard.database import Base, get_db_session
from taskboard.models.board import Board
from taskboard.models.note import Note  # noqa: F401
from taskboard.models.user import User
from taskboard.schemas.board import BoardCreateRequest
from taskboard.services.board_service import board_service
from taskboard.services.mail_service import MailService, get_mail_service
from taskboard.services.security import hash_password
from taskboard.services.upload_service import UploadService, get_upload_service

DEFAULT_PASSWORD = "secret123"


class FakeMailService(MailService):
    """Records messages instead of sending them."""

    def __init__(self):
        self.sent: List[dict] = []

    async def send(self, to: str, subject: str, html: str) -> None:
        self.sent.append({"to": to, "subject": subject, "html": html})


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """Fresh in-memory database per test; StaticPool keeps one connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession for tests that only need to script query results.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = None
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Factories
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(db_session):
    async def _make(
        username: Optional[str] = None,
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        name = username or f"user{uuid4().hex[:8]}"
        user = User(
            username=name,
            email=email or f"{name.lower()}@example.com",
            password_hash=hash_password(password),
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


@pytest.fixture
def make_board(db_session):
    async def _make(
        creator: User,
        title: Optional[str] = None,
        password: Optional[str] = None,
        description: str = "Team board",
    ) -> Board:
        request = BoardCreateRequest(
            title=title or f"Board {uuid4().hex[:6]}",
            description=description,
            password=password,
        )
        return await board_service.create_board(db_session, creator.id, request)

    return _make


# ══════════════════════════════════════════════════════════════════════════
# Services and HTTP client
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_mailer():
    return FakeMailService()


@pytest.fixture
def upload_service(tmp_path):
    return UploadService(storage_root=str(tmp_path / "storage"), backend="local")


@pytest.fixture
def sample_image_bytes():
    """A complete 1x1 PNG, so libmagic reports image/png."""
    return base64.b64decode(
        "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
    )


@pytest.fixture
def sample_gif_bytes():
    """A complete 1x1 GIF89a."""
    return base64.b64decode("R0lGODlhAQABAIAAAP///wAAACH5BAEAAAAALAAAAAABAAEAAAICRAEAOw==")


@pytest_asyncio.fixture
async def client(db_engine, fake_mailer, upload_service):
    """
    HTTPX AsyncClient talking to the app in-process.

    base_url is https so the Secure refresh cookie is stored and sent back.
    """
    from taskboard.main import app

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db_session():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_mail_service] = lambda: fake_mailer
    app.dependency_overrides[get_upload_service] = lambda: upload_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="https://test") as http_client:
        yield http_client

    app.dependency_overrides.clear()
