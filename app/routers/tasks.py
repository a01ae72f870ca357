import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_current_user, get_db, get_task_service
from app.exceptions import NotFoundError
from app.models.tasks import TaskStatus
from app.schemas.common import PagedResult
from app.schemas.task import OverdueCount, TaskCreate, TaskResponse, TaskUpdate
from app.services.tasks import TodoTaskService
from app.utils.security import TokenData

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    task_status: TaskStatus | None = Query(None, alias="status"),
    category_id: uuid.UUID | None = Query(None, alias="categoryId"),
    current_user: TokenData = Depends(get_current_user),
    task_service: TodoTaskService = Depends(get_task_service),
):
    return await task_service.list_all(current_user.user_id, task_status, category_id)


@router.get("/paged", response_model=PagedResult[TaskResponse])
async def list_tasks_paged(
    page_number: int = Query(1, alias="pageNumber"),
    page_size: int = Query(10, alias="pageSize"),
    task_status: TaskStatus | None = Query(None, alias="status"),
    category_id: uuid.UUID | None = Query(None, alias="categoryId"),
    sort_by: str | None = Query(None, alias="sortBy", description="title, dueDate, priority, status or createdAt"),
    sort_descending: bool = Query(False, alias="sortDescending"),
    current_user: TokenData = Depends(get_current_user),
    task_service: TodoTaskService = Depends(get_task_service),
):
    return await task_service.list_paged(
        current_user.user_id,
        page_number,
        page_size,
        status=task_status,
        category_id=category_id,
        sort_by=sort_by,
        sort_descending=sort_descending,
    )


@router.get("/overdue/count", response_model=OverdueCount)
async def get_overdue_count(
    current_user: TokenData = Depends(get_current_user),
    task_service: TodoTaskService = Depends(get_task_service),
):
    return OverdueCount(count=await task_service.get_overdue_count(current_user.user_id))


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: uuid.UUID,
    current_user: TokenData = Depends(get_current_user),
    task_service: TodoTaskService = Depends(get_task_service),
):
    task = await task_service.get_by_id(task_id, current_user.user_id)
    if task is None:
        raise NotFoundError("Task", task_id)
    return task


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    data: TaskCreate,
    db: AsyncSession = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
    task_service: TodoTaskService = Depends(get_task_service),
):
    task = await task_service.create(data, current_user.user_id)
    await db.commit()
    return task


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: uuid.UUID,
    data: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
    task_service: TodoTaskService = Depends(get_task_service),
):
    task = await task_service.update(task_id, data, current_user.user_id)
    await db.commit()
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
    task_service: TodoTaskService = Depends(get_task_service),
):
    await task_service.delete(task_id, current_user.user_id)
    await db.commit()
    return None
