"""Schema creation and demo data.

Learn: There is no migration tool — tables are created straight from
Base.metadata (CREATE TABLE IF NOT EXISTS semantics), which is safe to
run on every startup.

The demo seed gives a fresh install one admin and one regular user so
the API is usable without touching the database by hand:
    admin / admin123  (Admin)
    user  / user123   (User)
Passwords are seeded in legacy plaintext form and upgraded to bcrypt on
first login. The seed only runs against an empty users table.
"""

from datetime import timedelta

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from taskapi.auth.identity import Role
from taskapi.db.models import Base, Comment, Task, User, utcnow

logger = structlog.get_logger()


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_demo_data(session: AsyncSession) -> bool:
    """Insert demo users, tasks and comments. Returns False if users exist."""
    existing = await session.scalar(select(func.count()).select_from(User))
    if existing:
        logger.info("taskapi.seed_skipped", users=existing)
        return False

    now = utcnow()
    admin = User(
        username="admin", email="admin@example.com", password="admin123", role=Role.ADMIN
    )
    user = User(
        username="user", email="user@example.com", password="user123", role=Role.USER
    )
    session.add_all([admin, user])
    await session.flush()

    docs = Task(
        title="Complete project documentation",
        description="Write all documentation for the API project",
        due_date=now + timedelta(days=7),
        assigned_to_user_id=admin.id,
    )
    auth = Task(
        title="Implement authentication",
        description="Add JWT authentication to the API",
        due_date=now + timedelta(days=3),
        assigned_to_user_id=admin.id,
    )
    tests = Task(
        title="Test API endpoints",
        description="Create and run tests for all API endpoints",
        due_date=now + timedelta(days=5),
        assigned_to_user_id=user.id,
    )
    session.add_all([docs, auth, tests])
    await session.flush()

    session.add_all([
        Comment(
            content="This needs to be done ASAP",
            created_at=now - timedelta(days=1),
            task_id=docs.id,
            user_id=admin.id,
        ),
        Comment(
            content="I'll start working on this tomorrow",
            created_at=now - timedelta(hours=12),
            task_id=docs.id,
            user_id=user.id,
        ),
        Comment(
            content="Don't forget to use JWT tokens",
            created_at=now - timedelta(hours=6),
            task_id=auth.id,
            user_id=admin.id,
        ),
    ])
    await session.commit()

    logger.info("taskapi.seeded", users=2, tasks=3, comments=3)
    return True
