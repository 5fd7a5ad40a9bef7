"""Task API routes.

Routes translate HTTP to TaskService calls and map domain errors to
responses. Every id-scoped route answers 404 both for a missing task and
for someone else's task.

- POST   /tasks          create (owner = caller)
- GET    /tasks          list, scoped to the caller unless admin
- GET    /tasks/stats    counts by status for the caller's own tasks
- GET    /tasks/{id}     read
- PUT    /tasks/{id}     partial update
- DELETE /tasks/{id}     delete
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.auth.dependencies import Principal, get_current_principal
from taskhub.db.engine import get_db
from taskhub.errors import NoFieldsToUpdate, NotFoundOrUnauthorized, Unauthenticated
from taskhub.schemas.common import MAX_ID, Pagination
from taskhub.schemas.task import (
    TaskCreate,
    TaskList,
    TaskPriority,
    TaskRead,
    TaskStats,
    TaskStatus,
    TaskUpdate,
)
from taskhub.services.task_service import TaskService

router = APIRouter(prefix="/tasks")


def _task_svc(db: AsyncSession = Depends(get_db)) -> TaskService:
    return TaskService(db)


@router.post("", response_model=TaskRead, status_code=201)
async def create_task(
    body: TaskCreate,
    principal: Principal = Depends(get_current_principal),
    svc: TaskService = Depends(_task_svc),
):
    """Create a new task owned by the caller."""
    try:
        return await svc.create_task(
            principal,
            title=body.title,
            description=body.description,
            status=body.status,
            priority=body.priority,
            due_date=body.due_date,
        )
    except Unauthenticated as e:
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


@router.get("", response_model=TaskList)
async def list_tasks(
    status: Optional[TaskStatus] = Query(None, description="Filter by status"),
    priority: Optional[TaskPriority] = Query(None, description="Filter by priority"),
    user_id: Optional[int] = Query(
        None, ge=1, le=MAX_ID, description="Filter by owner (admin only)"
    ),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(get_current_principal),
    svc: TaskService = Depends(_task_svc),
):
    """List tasks. Admins see all tasks, everyone else only their own."""
    tasks, total = await svc.list_tasks(
        principal,
        status=status,
        priority=priority,
        owner_id=user_id,
        limit=limit,
        offset=offset,
    )
    return TaskList(
        tasks=[TaskRead.model_validate(t) for t in tasks],
        pagination=Pagination.of(total, limit, offset),
    )


@router.get("/stats", response_model=TaskStats)
async def task_stats(
    principal: Principal = Depends(get_current_principal),
    svc: TaskService = Depends(_task_svc),
):
    """Personal dashboard counts. Always the caller's own tasks, even for admins."""
    return await svc.task_stats(principal)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: int = Path(..., ge=1, le=MAX_ID),
    principal: Principal = Depends(get_current_principal),
    svc: TaskService = Depends(_task_svc),
):
    """Get a single task by ID."""
    try:
        return await svc.get_task(principal, task_id)
    except NotFoundOrUnauthorized as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    body: TaskUpdate,
    task_id: int = Path(..., ge=1, le=MAX_ID),
    principal: Principal = Depends(get_current_principal),
    svc: TaskService = Depends(_task_svc),
):
    """Partially update a task (title, description, status, priority, due date)."""
    try:
        return await svc.update_task(principal, task_id, body.to_changes())
    except NoFieldsToUpdate as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundOrUnauthorized as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{task_id}")
async def delete_task(
    task_id: int = Path(..., ge=1, le=MAX_ID),
    principal: Principal = Depends(get_current_principal),
    svc: TaskService = Depends(_task_svc),
):
    """Delete a task."""
    try:
        await svc.delete_task(principal, task_id)
    except NotFoundOrUnauthorized as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"deleted": True}
