import logging
import math
import uuid

from app.exceptions import NotFoundError, ValidationError
from app.models.category import Category
from app.models.tasks import TaskStatus, TodoTask
from app.repositories.categories import CategoryRepository
from app.repositories.tasks import TodoTaskRepository
from app.schemas.common import PagedResult
from app.schemas.task import TaskCreate, TaskResponse, TaskUpdate
from app.utils.clock import start_of_today_utc, utcnow

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def to_task_response(task: TodoTask) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        title=task.title,
        description=task.description,
        status=task.status,
        priority=task.priority,
        due_date=task.due_date,
        completed_at=task.completed_at,
        category_id=task.category_id,
        category_name=task.category.name if task.category is not None else None,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def apply_status_transition(task: TodoTask, previous_status: TaskStatus) -> None:
    """Keep ``completed_at`` set exactly when the task is Completed.

    Entering Completed stamps the time; staying Completed keeps the original
    stamp; any other status clears it.
    """
    if previous_status != TaskStatus.COMPLETED and task.status == TaskStatus.COMPLETED:
        task.completed_at = utcnow()
    elif task.status != TaskStatus.COMPLETED:
        task.completed_at = None


def validate_paging(page_number: int, page_size: int) -> None:
    errors = []
    if page_number < 1:
        errors.append({"field": "pageNumber", "message": "Page number must be at least 1"})
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        errors.append({"field": "pageSize", "message": f"Page size must be between 1 and {MAX_PAGE_SIZE}"})
    if errors:
        raise ValidationError("Invalid paging parameters", errors=errors)


class TodoTaskService:
    def __init__(self, tasks: TodoTaskRepository, categories: CategoryRepository):
        self.tasks = tasks
        self.categories = categories

    async def _owned_category(self, category_id: uuid.UUID | None, user_id: uuid.UUID) -> Category | None:
        if category_id is None:
            return None
        category = await self.categories.get_by_id(category_id, user_id)
        if category is None:
            raise NotFoundError("Category", category_id)
        return category

    async def get_by_id(self, task_id: uuid.UUID, user_id: uuid.UUID) -> TaskResponse | None:
        task = await self.tasks.get_by_id(task_id, user_id)
        return to_task_response(task) if task is not None else None

    async def list_all(
        self,
        user_id: uuid.UUID,
        status: TaskStatus | None = None,
        category_id: uuid.UUID | None = None,
    ) -> list[TaskResponse]:
        tasks = await self.tasks.list_by_user(user_id, status, category_id)
        return [to_task_response(t) for t in tasks]

    async def list_paged(
        self,
        user_id: uuid.UUID,
        page_number: int,
        page_size: int,
        status: TaskStatus | None = None,
        category_id: uuid.UUID | None = None,
        sort_by: str | None = None,
        sort_descending: bool = False,
    ) -> PagedResult[TaskResponse]:
        """
        Raises:
            ValidationError: page number below 1 or page size outside 1..100.
        """
        validate_paging(page_number, page_size)

        tasks, total_count = await self.tasks.list_paged(
            user_id, page_number, page_size, status, category_id, sort_by, sort_descending
        )
        return PagedResult[TaskResponse](
            items=[to_task_response(t) for t in tasks],
            total_count=total_count,
            page_number=page_number,
            page_size=page_size,
            total_pages=math.ceil(total_count / page_size),
        )

    async def create(self, data: TaskCreate, user_id: uuid.UUID) -> TaskResponse:
        """
        Raises:
            NotFoundError: ``category_id`` is not one of the caller's categories.
        """
        category = await self._owned_category(data.category_id, user_id)

        task = TodoTask(
            id=uuid.uuid4(),
            title=data.title,
            description=data.description,
            priority=data.priority,
            due_date=data.due_date,
            category_id=category.id if category is not None else None,
            category=category,
            user_id=user_id,
            status=TaskStatus.PENDING,
            created_at=utcnow(),
            is_deleted=False,
        )
        await self.tasks.add(task)
        logger.info("Created task %s for user %s", task.id, user_id)
        return to_task_response(task)

    async def update(self, task_id: uuid.UUID, data: TaskUpdate, user_id: uuid.UUID) -> TaskResponse:
        """Overwrite every editable field of the task.

        Raises:
            NotFoundError: the task, or the requested category, is not the caller's.
        """
        task = await self.tasks.get_by_id(task_id, user_id)
        if task is None:
            raise NotFoundError("Task", task_id)

        category = await self._owned_category(data.category_id, user_id)
        previous_status = task.status

        task.title = data.title
        task.description = data.description
        task.status = data.status
        task.priority = data.priority
        task.due_date = data.due_date
        task.category = category
        task.category_id = category.id if category is not None else None
        task.updated_at = utcnow()
        apply_status_transition(task, previous_status)

        await self.tasks.save(task)
        if previous_status != task.status:
            logger.info("Task %s status %s -> %s", task.id, previous_status.value, task.status.value)
        return to_task_response(task)

    async def delete(self, task_id: uuid.UUID, user_id: uuid.UUID) -> None:
        if await self.tasks.soft_delete(task_id, user_id):
            logger.info("Soft-deleted task %s for user %s", task_id, user_id)

    async def get_overdue_count(self, user_id: uuid.UUID) -> int:
        return await self.tasks.count_overdue(user_id, start_of_today_utc())
