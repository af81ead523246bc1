"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI + aiosqlite:

1. Each test gets its own in-memory SQLite engine. StaticPool keeps a single
   connection alive so every session sees the same database.
2. Tables are created from the ORM metadata, exactly as the app does at startup.
3. get_db is overridden so each request opens its own session on that engine.
4. Auth is NOT mocked — tests send real bearer tokens, so the full
   token → identity → policy pipeline runs on every request.
"""

from types import SimpleNamespace

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from taskapi.auth.identity import Role
from taskapi.auth.jwt import create_access_token
from taskapi.db.engine import build_engine, build_session_factory, get_db
from taskapi.db.models import User
from taskapi.db.seed import create_schema
from taskapi.main import app


@pytest_asyncio.fixture()
async def db_engine():
    engine = build_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_schema(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """Session for arranging data and inspecting results directly."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client with the app's get_db pointed at the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ─── Users ───────────────────────────────────────────────
# Created in a fixed order so ids are predictable: admin=1, alice=2, bob=3.
# Passwords are stored plaintext (legacy form) to keep bcrypt out of the
# hot path; verify_password accepts them.


async def _add_user(db_session, username: str, role: Role) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password=f"{username}-pass",
        role=role,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture()
async def admin(db_session) -> User:
    return await _add_user(db_session, "admin", Role.ADMIN)


@pytest_asyncio.fixture()
async def alice(db_session, admin) -> User:
    return await _add_user(db_session, "alice", Role.USER)


@pytest_asyncio.fixture()
async def bob(db_session, alice) -> User:
    return await _add_user(db_session, "bob", Role.USER)


def bearer(user_id: int, role: Role, username: str = "someone") -> dict[str, str]:
    """Authorization header for an arbitrary identity (no DB row needed)."""
    principal = SimpleNamespace(
        id=user_id, username=username, email=f"{username}@example.com", role=role
    )
    return {"Authorization": f"Bearer {create_access_token(principal)}"}


def headers_for(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}
