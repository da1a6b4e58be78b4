"""
Blog Backend - Test Configuration (conftest.py)
=================================================

Shared pytest fixtures.

Fixture Overview:
    Database:
    ├── session_factory: fresh in-memory SQLite database per test
    └── db_session: one AsyncSession on that database

    Services:
    ├── image_store / post_service / comment_service: real services,
    │   images written to the test's tmp_path
    └── mock_post_service / mock_comment_service: AsyncMock doubles

    HTTP clients (httpx AsyncClient over ASGITransport):
    ├── api_client: real services + SQLite, end to end
    └── mock_client: mocked services, for status-code mapping tests
"""

import os
import tempfile

# Must be set before any app module is imported (settings load at import)
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="blog_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"

from datetime import datetime, timezone  # noqa: E402
from types import SimpleNamespace  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.exc import OperationalError  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import app.models  # noqa: E402,F401
from app.database import Base, get_db_session  # noqa: E402
from app.main import create_app  # noqa: E402
from app.schemas.comment import CommentResponse  # noqa: E402
from app.schemas.post import PostResponse  # noqa: E402
from app.services.comment_service import CommentService, get_comment_service  # noqa: E402
from app.services.image_store import ImageStore  # noqa: E402
from app.services.post_service import PostService, get_post_service  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def session_factory():
    """
    In-memory SQLite database with all tables created.

    StaticPool keeps the single connection alive so every session of the
    test sees the same database.
    """
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession for tests that only need to simulate database failures.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Service Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def image_store(tmp_path):
    return ImageStore(storage_root=str(tmp_path / "images"), max_size=1024)


@pytest.fixture
def post_service(image_store):
    return PostService(images=image_store)


@pytest.fixture
def comment_service():
    return CommentService()


@pytest.fixture
def mock_post_service():
    service = MagicMock(spec=PostService)
    for name in (
        "get_all_posts",
        "get_post_by_id",
        "create_post",
        "update_post",
        "delete_post",
        "increment_likes",
        "decrement_likes",
        "get_post_image",
        "get_image_content_type",
        "save_image",
        "get_total_count",
    ):
        setattr(service, name, AsyncMock())
    service.get_all_posts.return_value = []
    service.get_total_count.return_value = 0
    service.delete_post.return_value = None
    service.increment_likes.return_value = None
    service.decrement_likes.return_value = None
    service.save_image.return_value = None
    return service


@pytest.fixture
def mock_comment_service():
    service = MagicMock(spec=CommentService)
    for name in (
        "get_comments_by_post_id",
        "get_comment_by_id",
        "create_comment",
        "update_comment",
        "delete_comment",
    ):
        setattr(service, name, AsyncMock())
    service.get_comments_by_post_id.return_value = []
    service.delete_comment.return_value = None
    return service


# ══════════════════════════════════════════════════════════════════════════
# Sample Data
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_post():
    """Builds PostResponse objects for mocked service return values."""

    def _make(post_id: int = 1, **overrides) -> PostResponse:
        data = {
            "id": post_id,
            "title": f"Post {post_id}",
            "content": "Body text",
            "likes": 0,
            "has_image": False,
            "image_content_type": None,
            "created_at": datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
            "updated_at": None,
        }
        data.update(overrides)
        return PostResponse(**data)

    return _make


@pytest.fixture
def make_comment():
    def _make(comment_id: int = 1, post_id: int = 1, text: str = "Nice post") -> CommentResponse:
        return CommentResponse(
            id=comment_id,
            post_id=post_id,
            text=text,
            created_at=datetime(2024, 1, 15, 13, 0, tzinfo=timezone.utc),
        )

    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP Clients
# ══════════════════════════════════════════════════════════════════════════

def _client(application) -> AsyncClient:
    # raise_app_exceptions=False: unexpected errors are still answered with
    # 500 by the catch-all handler and the test sees that response
    transport = ASGITransport(app=application, raise_app_exceptions=False)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest.fixture
def commit_failures():
    """
    Switch for api_client: while `enabled` is True every commit raises.

    Usage:
        commit_failures.enabled = True
    """
    return SimpleNamespace(enabled=False)


@pytest_asyncio.fixture
async def api_client(session_factory, post_service, comment_service, commit_failures):
    """
    Full stack over SQLite: real routes, services and middleware.

    Each request gets its own session, committed on success, exactly like
    app.database.get_db_session.
    """
    application = create_app()

    async def _session():
        async with session_factory() as session:
            if commit_failures.enabled:
                session.commit = AsyncMock(
                    side_effect=OperationalError("COMMIT", {}, Exception("disk I/O error"))
                )
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = _session
    application.dependency_overrides[get_post_service] = lambda: post_service
    application.dependency_overrides[get_comment_service] = lambda: comment_service

    async with _client(application) as client:
        yield client


@pytest_asyncio.fixture
async def mock_client(mock_post_service, mock_comment_service):
    """Routes and middleware with mocked services and no database."""
    application = create_app()

    async def _session():
        yield AsyncMock()

    application.dependency_overrides[get_db_session] = _session
    application.dependency_overrides[get_post_service] = lambda: mock_post_service
    application.dependency_overrides[get_comment_service] = lambda: mock_comment_service

    async with _client(application) as client:
        yield client
