"""
Demo data for local development.

Creates two users with a handful of categories and tasks (a few of them
overdue) when the users table is empty. Run with:

    python -m app.scripts.seed_data
"""
import asyncio
import logging
import uuid
from datetime import timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.category import Category
from app.models.tasks import TaskPriority, TaskStatus, TodoTask
from app.models.user import User, UserRole
from app.utils.clock import utcnow
from app.utils.security import get_password_hash

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "Password123!"

DEMO_USERS = {
    "john.doe@example.com": [
        ("Work", "Work-related tasks", "#FF5733"),
        ("Personal", "Personal errands and activities", "#33C3FF"),
        ("Shopping", "Shopping list", "#75FF33"),
    ],
    "jane.smith@example.com": [
        ("Projects", "Project tasks", "#FF33F5"),
        ("Health", "Fitness and appointments", "#33FF9E"),
    ],
}

# (title, description, category index, status, priority, due in days)
DEMO_TASKS = [
    ("Prepare quarterly report", "Collect numbers from every team", 0, TaskStatus.IN_PROGRESS, TaskPriority.HIGH, 3),
    ("Reply to client emails", None, 0, TaskStatus.PENDING, TaskPriority.URGENT, -2),
    ("Book dentist appointment", "Ask for a morning slot", 1, TaskStatus.PENDING, TaskPriority.MEDIUM, 7),
    ("Renew passport", None, 1, TaskStatus.COMPLETED, TaskPriority.LOW, -10),
    ("Buy groceries", "Milk, eggs, coffee", 2, TaskStatus.PENDING, TaskPriority.MEDIUM, 1),
    ("Plan weekend trip", None, None, TaskStatus.CANCELLED, TaskPriority.LOW, -1),
]


async def seed_demo_data(db: AsyncSession) -> bool:
    """Insert the demo data unless there are users already. Returns True if seeded."""
    result = await db.execute(select(func.count(User.id)))
    if result.scalar_one() > 0:
        logger.info("Users already present; skipping demo data")
        return False

    now = utcnow()
    password_hash = get_password_hash(DEMO_PASSWORD)

    for email, categories_data in DEMO_USERS.items():
        user = User(id=uuid.uuid4(), email=email, password_hash=password_hash, role=UserRole.USER, created_at=now)
        db.add(user)

        categories = []
        for name, description, color in categories_data:
            category = Category(
                id=uuid.uuid4(),
                name=name,
                description=description,
                color=color,
                user_id=user.id,
                created_at=now,
            )
            db.add(category)
            categories.append(category)

        for title, description, category_index, status, priority, due_in_days in DEMO_TASKS:
            category = None
            if category_index is not None and category_index < len(categories):
                category = categories[category_index]
            db.add(TodoTask(
                id=uuid.uuid4(),
                title=title,
                description=description,
                status=status,
                priority=priority,
                due_date=now + timedelta(days=due_in_days),
                completed_at=now if status == TaskStatus.COMPLETED else None,
                user_id=user.id,
                category_id=category.id if category else None,
                created_at=now,
            ))

    await db.commit()
    logger.info("Seeded %d demo users (password: %s)", len(DEMO_USERS), DEMO_PASSWORD)
    return True


async def main():
    from app.config import get_settings
    from app.database import AsyncSessionLocal, create_tables, dispose_engine
    from app.logging_config import setup_logging

    setup_logging(get_settings().LOG_LEVEL)
    try:
        await create_tables()
        async with AsyncSessionLocal() as db:
            await seed_demo_data(db)
    finally:
        await dispose_engine()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
