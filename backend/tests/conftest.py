"""
Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup for tests
- Database, client and token fixtures
- A mocked email service so no request reaches Resend
"""

import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest


# Set test environment variables BEFORE any imports
# This must happen first to ensure settings load with test values
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test_secret_key_at_least_32_characters_long_for_jwt"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "60"
os.environ["ADMIN_EMAILS"] = '["owner@example.com"]'
os.environ["RESEND_API_KEY"] = ""
os.environ["OPENROUTER_API_KEY"] = ""
os.environ["BACKGROUND_WORKERS_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"  # Disable rate limiting for tests
os.environ["LOG_JSON"] = "false"

# Add backend directory to path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))


@pytest.fixture
def anyio_backend():
    """
    Configure anyio backend for async tests.

    Returns:
        str: Backend name ("asyncio")
    """
    return "asyncio"


@pytest.fixture
async def db(anyio_backend):
    """
    Create all tables on the shared in-memory engine, drop them afterwards.

    The in-memory queue is emptied too so jobs don't leak between tests.
    """
    from app.core.database import engine
    from app.models.base import Base
    from app import models  # noqa: F401 - registers every table
    from app.services.event_queue import event_queue

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    event_queue.clear()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def session(db):
    """Database session for repository tests; committed on exit."""
    from app.core.database import async_session_maker

    async with async_session_maker() as s:
        yield s
        await s.commit()


@pytest.fixture
def email_service():
    """
    Replace the Resend client with an AsyncMock for the test.

    Assert on ``email_service.send_order_confirmation`` etc.
    """
    from app.main import app
    from app.services.email import EmailService, get_email_service

    service = AsyncMock(spec=EmailService)
    app.dependency_overrides[get_email_service] = lambda: service
    yield service
    app.dependency_overrides.pop(get_email_service, None)


@pytest.fixture
async def client(db, email_service):
    """HTTP client bound to the app (lifespan not run, so no workers)."""
    from httpx import ASGITransport, AsyncClient
    from app.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


async def _create_user(email: str, role: str, password: str = "testpass123", banned: bool = False):
    from app.core.database import async_session_maker
    from app.core.security import get_password_hash
    from app.repositories.user import UserRepository

    async with async_session_maker() as s:
        user = await UserRepository(s).create_user(
            name=email.split("@")[0].title(),
            email=email,
            hashed_password=get_password_hash(password),
            role=role,
        )
        user.banned = banned
        await s.commit()
        return user


def _bearer(user_id: str) -> dict:
    from app.core.security import create_access_token

    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}


@pytest.fixture
async def admin_user(db):
    return await _create_user("admin@example.com", "admin")


@pytest.fixture
async def customer(db):
    return await _create_user("ama@example.com", "user")


@pytest.fixture
def admin_headers(admin_user):
    return _bearer(admin_user.id)


@pytest.fixture
def user_headers(customer):
    return _bearer(customer.id)


@pytest.fixture
async def banned_headers(db):
    user = await _create_user("kofi@example.com", "admin", banned=True)
    return _bearer(user.id)


@pytest.fixture
async def products(db):
    """Three products across two categories."""
    from app.core.database import async_session_maker
    from app.repositories.product import ProductRepository

    async with async_session_maker() as s:
        created = await ProductRepository(s).create_products([
            {
                "name": "Kente Stole",
                "category": "Accessories",
                "description": "Hand-woven gold and green kente stole",
                "price": 200.0,
                "images": ["https://cdn.example.com/kente.jpg"],
            },
            {
                "name": "Adinkra Shirt",
                "category": "Clothing",
                "description": "Cotton shirt stamped with adinkra symbols",
                "price": 150.0,
                "discount": 10.0,
            },
            {
                "name": "Batakari Smock",
                "category": "Clothing",
                "description": "Northern fugu smock",
                "price": 300.0,
                "images": [{"url": "https://cdn.example.com/smock.jpg"}],
            },
        ])
        await s.commit()
        return {p.slug: p for p in created}
