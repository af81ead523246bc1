"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Relationships, constraints, and indexes defined here.
Tables are created from Base.metadata at startup (see main.lifespan).

Key concepts:
- Integer auto-increment primary keys (ids appear in URLs: /api/tasks/42)
- Role stored as its string value ("Admin" / "User"), mapped to the Role enum
- Timestamps stored as UTC and always read back timezone-aware
- Foreign keys declare their delete behaviour (SET NULL / CASCADE)
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    TypeDecorator,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from taskapi.auth.identity import Role


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """DateTime that always comes back timezone-aware (UTC).

    Learn: SQLite has no timezone support and returns naive datetimes.
    Values are normalized to UTC on the way in and tagged UTC on the way out,
    so API responses look the same on SQLite and PostgreSQL.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class User(Base):
    """A registered user.

    Learn: `password` holds a bcrypt hash. Rows created before hashing was
    introduced (or by the demo seed) may hold a plaintext value; those are
    re-hashed on the next successful login (see auth.password.needs_upgrade).
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(100), nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(
        Enum(
            Role,
            native_enum=False,
            length=20,
            values_callable=lambda roles: [r.value for r in roles],
        ),
        nullable=False,
        default=Role.USER,
    )

    assigned_tasks: Mapped[list["Task"]] = relationship(
        back_populates="assigned_user", passive_deletes=True
    )


class Task(Base):
    """A unit of work, optionally assigned to (owned by) one user.

    Learn: Ownership is the assigned_to_user_id column — the access policy
    compares it against the caller. Deleting the owner nulls the reference;
    deleting the task removes its comments.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        Index("idx_tasks_assigned_user", "assigned_to_user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    due_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    is_completed: Mapped[bool] = mapped_column(nullable=False, default=False)
    assigned_to_user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    assigned_user: Mapped[Optional["User"]] = relationship(
        back_populates="assigned_tasks"
    )
    comments: Mapped[list["Comment"]] = relationship(
        back_populates="task",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: [Comment.created_at, Comment.id],
    )


class Comment(Base):
    """A comment on a task. Author and task are set server-side."""

    __tablename__ = "task_comments"
    __table_args__ = (
        Index("idx_task_comments_task", "task_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )
    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    # Relationships
    task: Mapped["Task"] = relationship(back_populates="comments")
    user: Mapped["User"] = relationship()

    @property
    def username(self) -> Optional[str]:
        """Author's username. Requires `user` to be eagerly loaded."""
        return self.user.username if self.user else None
