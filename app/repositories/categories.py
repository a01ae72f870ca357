import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.category import Category
from app.models.tasks import TodoTask
from app.repositories.base import active
from app.utils.clock import utcnow


class CategoryRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _owned(self, user_id: uuid.UUID):
        return select(Category).where(Category.user_id == user_id, active(Category))

    async def get_by_id(self, category_id: uuid.UUID, user_id: uuid.UUID) -> Category | None:
        result = await self.db.execute(self._owned(user_id).where(Category.id == category_id))
        return result.scalars().first()

    async def list_by_user(self, user_id: uuid.UUID) -> list[Category]:
        result = await self.db.execute(self._owned(user_id).order_by(Category.name))
        return list(result.scalars().all())

    async def count_tasks(self, category_ids: list[uuid.UUID]) -> dict[uuid.UUID, int]:
        """Number of live tasks per category, for the ids given."""
        if not category_ids:
            return {}
        stmt = (
            select(TodoTask.category_id, func.count(TodoTask.id))
            .where(TodoTask.category_id.in_(category_ids), active(TodoTask))
            .group_by(TodoTask.category_id)
        )
        result = await self.db.execute(stmt)
        counts = {category_id: count for category_id, count in result.all()}
        return {category_id: counts.get(category_id, 0) for category_id in category_ids}

    async def add(self, category: Category) -> Category:
        self.db.add(category)
        await self.db.flush()
        return category

    async def save(self, category: Category) -> Category:
        await self.db.flush()
        return category

    async def soft_delete(self, category_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        category = await self.get_by_id(category_id, user_id)
        if category is None:
            return False
        category.is_deleted = True
        category.deleted_at = utcnow()
        await self.db.flush()
        return True
