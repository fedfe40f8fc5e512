"""Shared test fixtures.

Every test that touches the store gets its own SQLite database file
built from the ORM metadata; HTTP tests drive `create_app()` through
httpx without starting a server.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from lilo.config import get_settings
from lilo.database import close_db, get_engine, get_session, init_db
from lilo.db.base import Base
from lilo.db.models import User


def _ensure_test_keys() -> None:
    """Write a throwaway RSA key pair and point settings at it."""
    if os.environ.get("LILO_JWT_PRIVATE_KEY_PATH", "").startswith(tempfile.gettempdir()):
        return

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    tmpdir = Path(tempfile.mkdtemp(prefix="lilo_test_keys_"))
    private_path = tmpdir / "jwt_private.pem"
    public_path = tmpdir / "jwt_public.pem"
    private_path.write_bytes(key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ))
    public_path.write_bytes(key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ))

    os.environ["LILO_JWT_PRIVATE_KEY_PATH"] = str(private_path)
    os.environ["LILO_JWT_PUBLIC_KEY_PATH"] = str(public_path)
    os.environ["LILO_LOG_FORMAT"] = "console"

    get_settings.cache_clear()
    from lilo.auth.jwt import reset_keys
    reset_keys()


_ensure_test_keys()


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncGenerator[str, None]:
    """Fresh SQLite database with the full schema; yields its URL."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'lilo_test.db'}"
    await init_db(url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield url
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: str) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for service calls and assertions."""
    async for session in get_session():
        yield session
        break


@pytest_asyncio.fixture
async def other_session(database: str) -> AsyncGenerator[AsyncSession, None]:
    """A second, independent session on the same database."""
    async for session in get_session():
        yield session
        break


@pytest_asyncio.fixture
async def client(database: str) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client bound to a fresh app and database."""
    from lilo.main import create_app

    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def auth_headers(user_id: str, name: str | None = None, email: str | None = None) -> dict[str, str]:
    """Bearer header for an identity-provider subject."""
    from lilo.auth.jwt import create_access_token

    token = create_access_token(user_id, email or f"{user_id}@lilo.app", name=name or user_id.title())
    return {"Authorization": f"Bearer {token}"}


async def _make_user(db: AsyncSession, user_id: str, name: str | None = None) -> User:
    user = User(id=user_id, email=f"{user_id}@lilo.app", name=name or user_id.title())
    db.add(user)
    await db.flush()
    return user


@pytest.fixture
def headers_for():
    """Build bearer headers: `headers_for("alice")`."""
    return auth_headers


@pytest.fixture
def make_user():
    """Insert a user row directly: `await make_user(db, "alice")`."""
    return _make_user
