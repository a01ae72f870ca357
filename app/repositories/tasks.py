import uuid
from datetime import datetime

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.models.category import Category
from app.models.tasks import TaskPriority, TaskStatus, TodoTask
from app.repositories.base import active
from app.utils.clock import utcnow

# Enums sort by declared order, not alphabetically
_priority_rank = case(*[(TodoTask.priority == p, i) for i, p in enumerate(TaskPriority)])
_status_rank = case(*[(TodoTask.status == s, i) for i, s in enumerate(TaskStatus)])

SORT_COLUMNS = {
    "title": TodoTask.title,
    "duedate": TodoTask.due_date,
    "priority": _priority_rank,
    "status": _status_rank,
    "createdat": TodoTask.created_at,
}


def _filters(user_id: uuid.UUID, status: TaskStatus | None, category_id: uuid.UUID | None) -> list:
    clauses = [TodoTask.user_id == user_id, active(TodoTask)]
    if status is not None:
        clauses.append(TodoTask.status == status)
    if category_id is not None:
        clauses.append(TodoTask.category_id == category_id)
    return clauses


def _with_category(stmt):
    # A soft-deleted category is not loaded, so its name is not reported
    return stmt.options(joinedload(TodoTask.category.and_(active(Category))))


class TodoTaskRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, task_id: uuid.UUID, user_id: uuid.UUID) -> TodoTask | None:
        stmt = _with_category(select(TodoTask)).where(
            TodoTask.id == task_id, TodoTask.user_id == user_id, active(TodoTask)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_by_user(
        self,
        user_id: uuid.UUID,
        status: TaskStatus | None = None,
        category_id: uuid.UUID | None = None,
    ) -> list[TodoTask]:
        stmt = (
            _with_category(select(TodoTask))
            .where(*_filters(user_id, status, category_id))
            .order_by(TodoTask.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_paged(
        self,
        user_id: uuid.UUID,
        page_number: int,
        page_size: int,
        status: TaskStatus | None = None,
        category_id: uuid.UUID | None = None,
        sort_by: str | None = None,
        sort_descending: bool = False,
    ) -> tuple[list[TodoTask], int]:
        clauses = _filters(user_id, status, category_id)

        count_result = await self.db.execute(select(func.count(TodoTask.id)).where(*clauses))
        total_count = count_result.scalar_one()

        column = SORT_COLUMNS.get((sort_by or "").lower())
        if column is None:
            order = TodoTask.created_at.desc()
        else:
            # Tasks without a due date go last in either direction
            order = (column.desc() if sort_descending else column.asc()).nulls_last()

        stmt = (
            _with_category(select(TodoTask))
            .where(*clauses)
            .order_by(order, TodoTask.id)
            .offset((page_number - 1) * page_size)
            .limit(page_size)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total_count

    async def count_overdue(self, user_id: uuid.UUID, today_start: datetime) -> int:
        # Only Completed is excluded here; Cancelled tasks still count
        stmt = select(func.count(TodoTask.id)).where(
            TodoTask.user_id == user_id,
            active(TodoTask),
            TodoTask.status != TaskStatus.COMPLETED,
            TodoTask.due_date.is_not(None),
            TodoTask.due_date < today_start,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def add(self, task: TodoTask) -> TodoTask:
        self.db.add(task)
        await self.db.flush()
        return task

    async def save(self, task: TodoTask) -> TodoTask:
        await self.db.flush()
        return task

    async def soft_delete(self, task_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        task = await self.get_by_id(task_id, user_id)
        if task is None:
            return False
        task.is_deleted = True
        task.deleted_at = utcnow()
        await self.db.flush()
        return True
