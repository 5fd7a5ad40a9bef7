"""Task service: ownership-checked CRUD for tasks.

Every operation on a specific task id follows the same shape:
1. load the row
2. ask the policy (admin OR owner)
3. only then read or write

A refused request and a missing row raise the same NotFoundOrUnauthorized,
so task ids belonging to other users cannot be probed. Writes are single
UPDATE/DELETE statements keyed on the id; if the row disappeared after the
check, rowcount is 0 and the caller gets that same error.

List queries carry the ownership filter in the WHERE clause itself.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Optional, Union

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.auth.dependencies import Principal
from taskhub.auth.policy import Operation, check_task_access, task_owner_scope
from taskhub.db.models import TASK_STATUSES, Task
from taskhub.errors import NoFieldsToUpdate, NotFoundOrUnauthorized, Unauthenticated

logger = structlog.get_logger()


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


@dataclass(frozen=True)
class TaskChanges:
    """Fields a task update may touch.

    UNSET means "leave as is". None is a real value: it clears the
    nullable columns (description, due_date).
    """

    title: Union[str, _Unset] = UNSET
    description: Union[str, None, _Unset] = UNSET
    status: Union[str, _Unset] = UNSET
    priority: Union[str, _Unset] = UNSET
    due_date: Union[datetime, None, _Unset] = UNSET

    def values(self) -> dict:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }


class TaskService:
    """Business logic for task CRUD and statistics."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Create ──────────────────────────────────────────

    async def create_task(
        self,
        principal: Principal,
        title: str,
        description: Optional[str] = None,
        status: str = "pending",
        priority: str = "medium",
        due_date: Optional[datetime] = None,
    ) -> Task:
        """Create a task owned by the caller. Ownership is never client-supplied.

        Tokens stay valid until they expire, so the caller's account may be
        gone by now. The owner foreign key then rejects the insert and the
        caller is treated as unauthenticated.
        """
        task = Task(
            title=title,
            description=description,
            status=status,
            priority=priority,
            due_date=due_date,
            owner_id=principal.id,
        )
        self.db.add(task)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info("task.create_rejected", owner_id=principal.id, reason="owner_missing")
            raise Unauthenticated()
        logger.info("task.created", task_id=task.id, owner_id=principal.id)
        return task

    # ─── Read ────────────────────────────────────────────

    async def get_task(self, principal: Principal, task_id: int) -> Task:
        return await self._authorize(principal, task_id, Operation.READ)

    async def list_tasks(
        self,
        principal: Principal,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        owner_id: Optional[int] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Task], int]:
        """List tasks visible to the caller, plus the total matching count.

        Non-admins are pinned to their own tasks; owner_id is an admin-only
        filter and is ignored for everyone else.
        """
        scope = task_owner_scope(principal)
        filters = []
        if scope is not None:
            filters.append(Task.owner_id == scope)
        elif owner_id is not None:
            filters.append(Task.owner_id == owner_id)
        if status:
            filters.append(Task.status == status)
        if priority:
            filters.append(Task.priority == priority)

        query = (
            select(Task)
            .where(*filters)
            .order_by(Task.created_at.desc(), Task.id.desc())
            .limit(limit)
            .offset(offset)
        )
        tasks = list((await self.db.execute(query)).scalars().all())

        total = (
            await self.db.execute(select(func.count()).select_from(Task).where(*filters))
        ).scalar_one()
        return tasks, total

    async def task_stats(self, principal: Principal) -> dict[str, int]:
        """Counts by status for the caller's own tasks. No admin override."""
        result = await self.db.execute(
            select(Task.status, func.count())
            .where(Task.owner_id == principal.id)
            .group_by(Task.status)
        )
        stats = {status: 0 for status in TASK_STATUSES}
        for status, count in result.all():
            stats[status] = count
        stats["total"] = sum(stats.values())
        return stats

    # ─── Update ──────────────────────────────────────────

    async def update_task(
        self, principal: Principal, task_id: int, changes: TaskChanges
    ) -> Task:
        values = changes.values()
        if not values:
            raise NoFieldsToUpdate()

        task = await self._authorize(principal, task_id, Operation.UPDATE)

        result = await self.db.execute(
            update(Task).where(Task.id == task_id).values(**values)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFoundOrUnauthorized("task", task_id, "vanished")
        await self.db.commit()
        await self.db.refresh(task)

        logger.info(
            "task.updated",
            task_id=task_id,
            user_id=principal.id,
            fields=sorted(values),
        )
        return task

    # ─── Delete ──────────────────────────────────────────

    async def delete_task(self, principal: Principal, task_id: int) -> None:
        await self._authorize(principal, task_id, Operation.DELETE)

        result = await self.db.execute(delete(Task).where(Task.id == task_id))
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFoundOrUnauthorized("task", task_id, "vanished")
        await self.db.commit()
        logger.info("task.deleted", task_id=task_id, user_id=principal.id)

    # ─── Helpers ─────────────────────────────────────────

    async def _authorize(
        self, principal: Principal, task_id: int, operation: Operation
    ) -> Task:
        task = await self.db.get(Task, task_id, populate_existing=True)
        decision = check_task_access(principal, task, operation)
        if not decision.allowed:
            logger.info(
                "task.access_denied",
                task_id=task_id,
                user_id=principal.id,
                operation=operation.value,
                reason=decision.value,
            )
            raise NotFoundOrUnauthorized("task", task_id, decision.value)
        return task
