"""Task and Comment API routes.

Learn: Routes translate HTTP to service calls and decide access.
The order of checks is part of the contract:
1. Identity (401) — resolved by the get_current_user dependency
2. Existence (404) — for get/update/comments, before ownership
3. Policy (403) — auth.policy decides from caller + owner
Delete is the exception: it is Admin-only, so the role is checked before
the task is even looked up.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from taskapi.auth.dependencies import get_current_user
from taskapi.auth.identity import CurrentIdentity
from taskapi.auth.policy import AccessDenied, Operation, allowed, authorize
from taskapi.db.engine import get_db
from taskapi.schemas.task import (
    MAX_ID,
    CommentCreate,
    CommentRead,
    TaskDetail,
    TaskRead,
    TaskWrite,
)
from taskapi.services.task_service import (
    AssigneeNotFound,
    AuthorNotFound,
    TaskService,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/tasks")


def _task_svc(db: AsyncSession = Depends(get_db)) -> TaskService:
    return TaskService(db)


def _require(
    operation: Operation,
    caller: CurrentIdentity,
    owner_id: Optional[int] = None,
) -> None:
    try:
        authorize(operation, caller, owner_id)
    except AccessDenied as e:
        logger.info(
            "taskapi.access_denied",
            operation=operation.value,
            user_id=caller.user_id,
            owner_id=owner_id,
        )
        raise HTTPException(status_code=403, detail=str(e))


def _task_not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Task not found")


# ═══════════════════════════════════════════════════════════
# Tasks
# ═══════════════════════════════════════════════════════════


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    caller: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """Admins see every task; everyone else sees the tasks they own."""
    if allowed(Operation.LIST_ALL_TASKS, caller):
        return await svc.list_tasks()
    _require(Operation.LIST_OWN_TASKS, caller)
    return await svc.list_tasks_for_user(caller.user_id)


@router.get("/user/{user_id}", response_model=list[TaskRead])
async def list_tasks_by_user(
    user_id: int = Path(..., ge=1, le=MAX_ID),
    caller: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """Tasks owned by a given user. Admin, or that user themself."""
    _require(Operation.LIST_TASKS_BY_USER, caller, user_id)
    return await svc.list_tasks_for_user(user_id)


@router.get("/{task_id}", response_model=TaskDetail)
async def get_task(
    task_id: int = Path(..., ge=1, le=MAX_ID),
    caller: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """Get a single task with its comment thread."""
    task = await svc.get_task(task_id, with_comments=True)
    if not task:
        raise _task_not_found()
    _require(Operation.GET_TASK, caller, task.assigned_to_user_id)
    return task


@router.post("", response_model=TaskRead, status_code=201)
async def create_task(
    body: TaskWrite,
    request: Request,
    response: Response,
    caller: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """Create a task. Non-admins may only assign tasks to themselves."""
    _require(Operation.CREATE_TASK, caller, body.assigned_to_user_id)
    try:
        task = await svc.create_task(
            title=body.title,
            description=body.description,
            due_date=body.due_date,
            is_completed=body.is_completed,
            assigned_to_user_id=body.assigned_to_user_id,
        )
    except AssigneeNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    response.headers["Location"] = str(request.url_for("get_task", task_id=task.id))
    return task


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    body: TaskWrite,
    task_id: int = Path(..., ge=1, le=MAX_ID),
    caller: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """Replace all fields of a task. Admin, or the current owner."""
    existing = await svc.get_task(task_id)
    if not existing:
        raise _task_not_found()
    _require(Operation.UPDATE_TASK, caller, existing.assigned_to_user_id)

    try:
        task = await svc.update_task(
            task_id=task_id,
            title=body.title,
            description=body.description,
            due_date=body.due_date,
            is_completed=body.is_completed,
            assigned_to_user_id=body.assigned_to_user_id,
        )
    except AssigneeNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    if not task:
        raise _task_not_found()
    return task


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: int = Path(..., ge=1, le=MAX_ID),
    caller: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """Delete a task and its comments. Admin only."""
    _require(Operation.DELETE_TASK, caller)
    if not await svc.delete_task(task_id):
        raise _task_not_found()
    return Response(status_code=204)


# ═══════════════════════════════════════════════════════════
# Comments
# ═══════════════════════════════════════════════════════════


@router.get("/{task_id}/comments", response_model=list[CommentRead])
async def list_comments(
    task_id: int = Path(..., ge=1, le=MAX_ID),
    caller: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """Comments on a task. Admin, or the task owner."""
    task = await svc.get_task(task_id)
    if not task:
        raise _task_not_found()
    _require(Operation.GET_COMMENTS, caller, task.assigned_to_user_id)
    return await svc.list_comments(task_id)


@router.post("/{task_id}/comments", response_model=CommentRead)
async def add_comment(
    body: CommentCreate,
    task_id: int = Path(..., ge=1, le=MAX_ID),
    caller: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """Comment on a task.

    Learn: Any authenticated user may comment. The author is always the
    caller and the task is always the one in the URL — taskId/userId in
    the body are ignored.
    """
    task = await svc.get_task(task_id)
    if not task:
        raise _task_not_found()
    _require(Operation.ADD_COMMENT, caller, task.assigned_to_user_id)
    try:
        return await svc.add_comment(
            task_id=task_id,
            user_id=caller.user_id,
            content=body.content,
        )
    except AuthorNotFound as e:
        logger.info("taskapi.auth_rejected", reason=str(e))
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
