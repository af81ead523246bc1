"""Task service — persistence for tasks and their comments.

Learn: This layer knows nothing about callers or roles. Routes ask the
access policy first, then call in here. Every mutating method commits
exactly once, so each create/update/delete is all-or-nothing.

Reads always come back with the owner (assigned_user) loaded, and
comments with their author, so response models can serialize them
without lazy loading (which async sessions can't do implicitly).
"""

from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskapi.db.models import Comment, Task, User

logger = structlog.get_logger()


class AssigneeNotFound(Exception):
    """Raised when a task is assigned to a user that doesn't exist."""

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class AuthorNotFound(Exception):
    """Raised when a comment's author has no user row (stale token)."""

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User {user_id} no longer exists")


class TaskService:
    """Business logic for task CRUD and comments."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Read ────────────────────────────────────────────

    async def get_task(
        self, task_id: int, with_comments: bool = False
    ) -> Optional[Task]:
        options = [selectinload(Task.assigned_user)]
        if with_comments:
            options.append(selectinload(Task.comments).selectinload(Comment.user))

        result = await self.db.execute(
            select(Task)
            .where(Task.id == task_id)
            .options(*options)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def list_tasks(self) -> list[Task]:
        result = await self.db.execute(
            select(Task)
            .options(selectinload(Task.assigned_user))
            .order_by(Task.id)
        )
        return list(result.scalars().all())

    async def list_tasks_for_user(self, user_id: int) -> list[Task]:
        result = await self.db.execute(
            select(Task)
            .where(Task.assigned_to_user_id == user_id)
            .options(selectinload(Task.assigned_user))
            .order_by(Task.id)
        )
        return list(result.scalars().all())

    # ─── Create ──────────────────────────────────────────

    async def create_task(
        self,
        title: str,
        due_date: datetime,
        description: Optional[str] = None,
        is_completed: bool = False,
        assigned_to_user_id: Optional[int] = None,
    ) -> Task:
        await self._check_assignee(assigned_to_user_id)

        task = Task(
            title=title,
            description=description,
            due_date=due_date,
            is_completed=is_completed,
            assigned_to_user_id=assigned_to_user_id,
        )
        self.db.add(task)
        await self.db.commit()

        logger.info(
            "taskapi.task_created",
            task_id=task.id,
            assigned_to_user_id=assigned_to_user_id,
        )
        return await self.get_task(task.id)

    # ─── Update ──────────────────────────────────────────

    async def update_task(
        self,
        task_id: int,
        title: str,
        due_date: datetime,
        description: Optional[str] = None,
        is_completed: bool = False,
        assigned_to_user_id: Optional[int] = None,
    ) -> Optional[Task]:
        """Replace every mutable field of a task. Returns None if absent.

        Learn: This is a full replace (PUT semantics), not a patch —
        omitted optional fields are reset. Concurrent writers: last one wins.
        """
        task = await self.db.get(Task, task_id)
        if not task:
            return None
        await self._check_assignee(assigned_to_user_id)

        task.title = title
        task.description = description
        task.due_date = due_date
        task.is_completed = is_completed
        task.assigned_to_user_id = assigned_to_user_id
        await self.db.commit()

        logger.info("taskapi.task_updated", task_id=task_id)
        return await self.get_task(task_id)

    # ─── Delete ──────────────────────────────────────────

    async def delete_task(self, task_id: int) -> bool:
        """Delete a task and its comments. Returns False if absent.

        Learn: Comments are deleted explicitly in the same transaction
        rather than relying on the backend's ON DELETE CASCADE.
        """
        task = await self.db.get(Task, task_id)
        if not task:
            return False

        await self.db.execute(delete(Comment).where(Comment.task_id == task_id))
        await self.db.delete(task)
        await self.db.commit()

        logger.info("taskapi.task_deleted", task_id=task_id)
        return True

    # ─── Comments ────────────────────────────────────────

    async def list_comments(self, task_id: int) -> list[Comment]:
        result = await self.db.execute(
            select(Comment)
            .where(Comment.task_id == task_id)
            .options(selectinload(Comment.user))
            .order_by(Comment.created_at, Comment.id)
        )
        return list(result.scalars().all())

    async def add_comment(self, task_id: int, user_id: int, content: str) -> Comment:
        """Add a comment. The id and created_at timestamp are server-assigned.

        Raises AuthorNotFound if user_id has no row.
        """
        if not await self.db.get(User, user_id):
            raise AuthorNotFound(user_id)

        comment = Comment(task_id=task_id, user_id=user_id, content=content)
        self.db.add(comment)
        await self.db.commit()

        logger.info(
            "taskapi.comment_added",
            comment_id=comment.id,
            task_id=task_id,
            user_id=user_id,
        )
        result = await self.db.execute(
            select(Comment)
            .where(Comment.id == comment.id)
            .options(selectinload(Comment.user))
            .execution_options(populate_existing=True)
        )
        return result.scalars().one()

    # ─── Helpers ─────────────────────────────────────────

    async def _check_assignee(self, user_id: Optional[int]) -> None:
        if user_id is None:
            return
        if not await self.db.get(User, user_id):
            raise AssigneeNotFound(user_id)
