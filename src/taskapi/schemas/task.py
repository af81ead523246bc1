"""Pydantic schemas for tasks and comments.

Learn: Separate schemas for write/read keeps the API clean.
- TaskWrite: what you POST or PUT (PUT replaces every field)
- TaskRead: what the API returns, with the owner resolved
- TaskDetail: single-task read, adds the comment thread
- CommentCreate: only `content` is honoured; task and author come from
  the URL and the token
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from taskapi.auth.identity import Role
from taskapi.schemas.base import CamelModel

# Largest id a 64-bit INTEGER primary key can hold
MAX_ID = 2**63 - 1


# ─── Users ───────────────────────────────────────────────

class UserSummary(CamelModel):
    id: int
    username: str
    email: str
    role: Role


# ─── Tasks ───────────────────────────────────────────────

class TaskWrite(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    due_date: datetime
    is_completed: bool = False
    assigned_to_user_id: Optional[int] = Field(None, ge=1, le=MAX_ID)


class TaskRead(CamelModel):
    id: int
    title: str
    description: Optional[str]
    due_date: datetime
    is_completed: bool
    assigned_to_user_id: Optional[int]
    assigned_user: Optional[UserSummary] = None


# ─── Comments ────────────────────────────────────────────

class CommentCreate(CamelModel):
    content: str = Field(..., min_length=1)
    # Accepted for compatibility with older clients; always overwritten.
    task_id: Optional[int] = None
    user_id: Optional[int] = None


class CommentRead(CamelModel):
    id: int
    content: str
    created_at: datetime
    task_id: int
    user_id: int
    username: Optional[str] = None


class TaskDetail(TaskRead):
    comments: list[CommentRead] = Field(default_factory=list)
