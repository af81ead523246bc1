"""User service — registration and credential checks.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the database.
The create-user CLI command reuses create_user() to provision admins,
since public registration always produces plain users.
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskapi.auth.identity import Role
from taskapi.auth.password import hash_password, needs_upgrade, verify_password
from taskapi.db.models import User

logger = structlog.get_logger()


class UsernameTaken(Exception):
    """Raised when registering a username that already exists."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username '{username}' already exists")


class UserService:
    """Business logic for user accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.username == username)
        )
        return result.scalars().first()

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def authenticate(self, username: str, password: str) -> Optional[User]:
        """Return the user if the credentials match, else None.

        Learn: Unknown usernames and wrong passwords are indistinguishable
        to the caller. Legacy plaintext credentials are re-hashed here.
        """
        user = await self.get_by_username(username)
        if not user or not verify_password(password, user.password):
            logger.info("taskapi.login_failed", username=username)
            return None

        if needs_upgrade(user.password):
            user.password = hash_password(password)
            await self.db.commit()
            logger.info("taskapi.password_upgraded", user_id=user.id)

        return user

    async def register(self, username: str, email: str, password: str) -> User:
        """Create a regular user. Raises UsernameTaken on duplicates."""
        return await self.create_user(username, email, password, role=Role.USER)

    async def create_user(
        self,
        username: str,
        email: str,
        password: str,
        role: Role = Role.USER,
    ) -> User:
        if await self.get_by_username(username):
            raise UsernameTaken(username)

        user = User(
            username=username,
            email=email,
            password=hash_password(password),
            role=role,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(
            "taskapi.user_created", user_id=user.id, username=username, role=role.value
        )
        return user
