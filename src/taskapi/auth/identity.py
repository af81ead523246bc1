"""Roles and the authenticated caller identity.

Learn: Handlers never read claims off a framework-global request object.
The bearer token is decoded once into a CurrentIdentity, which is passed
explicitly into every handler and policy call.
"""

import enum
from typing import Optional


class Role(str, enum.Enum):
    """User role. Values are the strings stored in the DB and in tokens."""

    ADMIN = "Admin"
    USER = "User"


class CurrentIdentity:
    """Represents the authenticated user making the request."""

    def __init__(
        self,
        user_id: int,
        username: str,
        role: Role,
        email: Optional[str] = None,
    ):
        self.user_id = user_id
        self.username = username
        self.role = role
        self.email = email

    @property
    def is_admin(self) -> bool:
        """True for Admin, False for User. Any other role is a ValueError."""
        if self.role is Role.ADMIN:
            return True
        if self.role is Role.USER:
            return False
        raise ValueError(f"Unhandled role: {self.role!r}")

    def __repr__(self) -> str:
        return (
            f"CurrentIdentity(user_id={self.user_id!r}, "
            f"username={self.username!r}, role={self.role.value!r})"
        )
