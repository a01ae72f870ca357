import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from app.exceptions import NotFoundError, ValidationError
from app.models.tasks import TaskPriority, TaskStatus, TodoTask
from app.repositories.categories import CategoryRepository
from app.repositories.tasks import TodoTaskRepository
from app.schemas.task import TaskCreate, TaskUpdate
from app.services.tasks import TodoTaskService
from app.utils.clock import start_of_today_utc, utcnow

from conftest import make_category, make_task


@pytest.fixture
def task_service(db):
    return TodoTaskService(TodoTaskRepository(db), CategoryRepository(db))


def update_for(task, **changes):
    fields = {
        "title": task.title,
        "description": task.description,
        "priority": task.priority,
        "due_date": task.due_date,
        "category_id": task.category_id,
        "status": task.status,
    }
    fields.update(changes)
    return TaskUpdate(**fields)


async def test_create_starts_pending_with_category_name(task_service, db, owner):
    category = await make_category(db, owner, "Work")
    due = utcnow() + timedelta(days=2)

    task = await task_service.create(
        TaskCreate(title="Write report", priority=TaskPriority.HIGH, due_date=due, category_id=category.id),
        owner.id,
    )

    assert task.status == TaskStatus.PENDING
    assert task.completed_at is None
    assert task.category_name == "Work"
    assert task.priority == TaskPriority.HIGH


async def test_create_with_foreign_category_writes_nothing(task_service, db, owner, stranger):
    foreign = await make_category(db, stranger, "Theirs")

    with pytest.raises(NotFoundError) as exc_info:
        await task_service.create(TaskCreate(title="Sneaky", category_id=foreign.id), owner.id)
    assert exc_info.value.resource == "Category"

    count = (await db.execute(select(func.count(TodoTask.id)))).scalar_one()
    assert count == 0


def test_due_date_in_the_past_is_rejected_on_create():
    with pytest.raises(ValueError):
        TaskCreate(title="Late", due_date=utcnow() - timedelta(days=1))
    # Update accepts any due date
    TaskUpdate(title="Late", due_date=utcnow() - timedelta(days=1))


def test_due_date_with_offset_is_stored_as_utc():
    task = TaskCreate(title="Call Delhi office", due_date="2099-01-01T01:00:00+05:00")

    assert task.due_date.utcoffset() == timedelta(0)
    assert task.due_date == datetime(2098, 12, 31, 20, 0, tzinfo=timezone.utc)
    assert task.due_date.hour == 20


async def test_completed_at_follows_status(task_service, db, owner):
    task = await make_task(db, owner, "Laundry")

    before = utcnow()
    completed = await task_service.update(task.id, update_for(task, status=TaskStatus.COMPLETED), owner.id)
    assert before <= completed.completed_at <= utcnow()
    first_stamp = completed.completed_at

    again = await task_service.update(task.id, update_for(task, title="Laundry, folded"), owner.id)
    assert again.status == TaskStatus.COMPLETED
    assert again.completed_at == first_stamp

    reopened = await task_service.update(task.id, update_for(task, status=TaskStatus.IN_PROGRESS), owner.id)
    assert reopened.completed_at is None


async def test_update_status_defaults_to_pending(task_service, db, owner):
    task = await make_task(db, owner, "Dishes", status=TaskStatus.IN_PROGRESS)

    updated = await task_service.update(task.id, TaskUpdate(title="Dishes"), owner.id)

    assert updated.status == TaskStatus.PENDING
    assert updated.priority == TaskPriority.MEDIUM
    assert updated.updated_at is not None


async def test_update_with_foreign_category_leaves_task_unchanged(task_service, db, owner, stranger):
    task = await make_task(db, owner, "Mine")
    foreign = await make_category(db, stranger, "Theirs")

    with pytest.raises(NotFoundError):
        await task_service.update(task.id, update_for(task, title="Changed", category_id=foreign.id), owner.id)

    assert task.title == "Mine"
    assert task.category_id is None


async def test_update_or_read_of_other_users_task(task_service, db, owner, stranger):
    task = await make_task(db, owner, "Mine")

    assert await task_service.get_by_id(task.id, stranger.id) is None
    with pytest.raises(NotFoundError):
        await task_service.update(task.id, update_for(task), stranger.id)


async def test_deleted_category_name_is_not_reported(task_service, db, owner):
    category = await make_category(db, owner, "Old", is_deleted=True)
    task = await make_task(db, owner, "Orphan", category_id=category.id)

    response = await task_service.get_by_id(task.id, owner.id)

    assert response.category_id == category.id
    assert response.category_name is None


async def test_list_all_filters_and_orders_newest_first(task_service, db, owner, stranger):
    home = await make_category(db, owner, "Home")
    await make_task(db, owner, "Oldest", created_offset=timedelta(minutes=-3), category_id=home.id)
    await make_task(db, owner, "Middle", created_offset=timedelta(minutes=-2), status=TaskStatus.COMPLETED)
    await make_task(db, owner, "Newest", created_offset=timedelta(minutes=-1), category_id=home.id)
    await make_task(db, owner, "Deleted", is_deleted=True)
    await make_task(db, stranger, "Not mine")

    assert [t.title for t in await task_service.list_all(owner.id)] == ["Newest", "Middle", "Oldest"]
    assert [t.title for t in await task_service.list_all(owner.id, status=TaskStatus.COMPLETED)] == ["Middle"]
    assert [t.title for t in await task_service.list_all(owner.id, category_id=home.id)] == ["Newest", "Oldest"]


async def test_paging_counts_and_slices(task_service, db, owner):
    for i in range(25):
        await make_task(db, owner, f"Task {i:02d}", created_offset=timedelta(minutes=i))

    first = await task_service.list_paged(owner.id, page_number=1, page_size=10)
    assert first.total_pages == 3
    assert len(first.items) == 10

    page = await task_service.list_paged(owner.id, page_number=3, page_size=10)

    assert page.total_count == 25
    assert page.total_pages == 3
    assert page.page_number == 3
    assert len(page.items) == 5
    # Default order is newest first
    assert [t.title for t in page.items] == ["Task 04", "Task 03", "Task 02", "Task 01", "Task 00"]


async def test_paging_empty_result(task_service, owner):
    page = await task_service.list_paged(owner.id, page_number=1, page_size=10)
    assert page.items == []
    assert page.total_count == 0
    assert page.total_pages == 0


@pytest.mark.parametrize("page_number,page_size", [(0, 10), (1, 0), (1, 101), (-1, -1)])
async def test_paging_rejects_out_of_range_values(task_service, owner, page_number, page_size):
    with pytest.raises(ValidationError):
        await task_service.list_paged(owner.id, page_number=page_number, page_size=page_size)


async def test_sorting_by_priority_uses_declared_order(task_service, db, owner):
    for priority in (TaskPriority.URGENT, TaskPriority.LOW, TaskPriority.HIGH, TaskPriority.MEDIUM):
        await make_task(db, owner, priority.value, priority=priority)

    ascending = await task_service.list_paged(owner.id, 1, 10, sort_by="PRIORITY")
    descending = await task_service.list_paged(owner.id, 1, 10, sort_by="priority", sort_descending=True)

    assert [t.title for t in ascending.items] == ["Low", "Medium", "High", "Urgent"]
    assert [t.title for t in descending.items] == ["Urgent", "High", "Medium", "Low"]


async def test_sort_keys_are_case_insensitive(task_service, db, owner):
    await make_task(db, owner, "Banana", created_offset=timedelta(minutes=-1))
    await make_task(db, owner, "Apple", created_offset=timedelta(minutes=-2))
    await make_task(db, owner, "Cherry", created_offset=timedelta(minutes=-3))

    for sort_by in ("title", "Title", "TITLE"):
        page = await task_service.list_paged(owner.id, 1, 10, sort_by=sort_by)
        assert [t.title for t in page.items] == ["Apple", "Banana", "Cherry"]


async def test_sorting_by_status_uses_declared_order(task_service, db, owner):
    for status in (TaskStatus.COMPLETED, TaskStatus.PENDING, TaskStatus.CANCELLED, TaskStatus.IN_PROGRESS):
        await make_task(db, owner, status.value, status=status)

    ascending = await task_service.list_paged(owner.id, 1, 10, sort_by="Status")
    descending = await task_service.list_paged(owner.id, 1, 10, sort_by="status", sort_descending=True)

    assert [t.title for t in ascending.items] == ["Pending", "InProgress", "Completed", "Cancelled"]
    assert [t.title for t in descending.items] == ["Cancelled", "Completed", "InProgress", "Pending"]


async def test_sorting_by_due_date_puts_undated_tasks_last(task_service, db, owner):
    await make_task(db, owner, "Someday", created_offset=timedelta(minutes=-1))
    await make_task(db, owner, "Later", created_offset=timedelta(minutes=-2), due_date=utcnow() + timedelta(days=3))
    await make_task(db, owner, "Sooner", created_offset=timedelta(minutes=-3), due_date=utcnow() + timedelta(days=1))

    ascending = await task_service.list_paged(owner.id, 1, 10, sort_by="dueDate")
    descending = await task_service.list_paged(owner.id, 1, 10, sort_by="DueDate", sort_descending=True)

    assert [t.title for t in ascending.items] == ["Sooner", "Later", "Someday"]
    assert [t.title for t in descending.items] == ["Later", "Sooner", "Someday"]


async def test_sorting_by_created_at_ascending_gives_oldest_first(task_service, db, owner):
    await make_task(db, owner, "Middle", created_offset=timedelta(minutes=-2))
    await make_task(db, owner, "Newest", created_offset=timedelta(minutes=-1))
    await make_task(db, owner, "Oldest", created_offset=timedelta(minutes=-3))

    ascending = await task_service.list_paged(owner.id, 1, 10, sort_by="createdAt", sort_descending=False)

    assert [t.title for t in ascending.items] == ["Oldest", "Middle", "Newest"]


async def test_unknown_sort_key_falls_back_to_newest_first(task_service, db, owner):
    await make_task(db, owner, "First", created_offset=timedelta(minutes=-2))
    await make_task(db, owner, "Second", created_offset=timedelta(minutes=-1))

    page = await task_service.list_paged(owner.id, 1, 10, sort_by="bogus")

    assert [t.title for t in page.items] == ["Second", "First"]


async def test_overdue_count_excludes_only_completed(task_service, db, owner, stranger):
    yesterday = utcnow() - timedelta(days=1)
    await make_task(db, owner, "Late pending", due_date=yesterday)
    await make_task(db, owner, "Late in progress", due_date=yesterday, status=TaskStatus.IN_PROGRESS)
    await make_task(db, owner, "Late cancelled", due_date=yesterday, status=TaskStatus.CANCELLED)
    await make_task(db, owner, "Late completed", due_date=yesterday, status=TaskStatus.COMPLETED)
    await make_task(db, owner, "Late deleted", due_date=yesterday, is_deleted=True)
    await make_task(db, owner, "Due today", due_date=start_of_today_utc() + timedelta(minutes=1))
    await make_task(db, owner, "No due date")
    await make_task(db, stranger, "Someone else's", due_date=yesterday)

    assert await task_service.get_overdue_count(owner.id) == 3


async def test_delete_hides_task_and_is_idempotent(task_service, db, owner):
    task = await make_task(db, owner, "Bye")

    await task_service.delete(task.id, owner.id)
    await task_service.delete(task.id, owner.id)
    await task_service.delete(uuid.uuid4(), owner.id)

    assert await task_service.get_by_id(task.id, owner.id) is None
    assert task.is_deleted is True
