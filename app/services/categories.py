import logging
import uuid

from app.exceptions import NotFoundError
from app.models.category import Category
from app.repositories.categories import CategoryRepository
from app.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)


def to_category_response(category: Category, task_count: int = 0) -> CategoryResponse:
    return CategoryResponse(
        id=category.id,
        name=category.name,
        description=category.description,
        color=category.color,
        task_count=task_count,
        created_at=category.created_at,
    )


class CategoryService:
    def __init__(self, categories: CategoryRepository):
        self.categories = categories

    async def get_by_id(self, category_id: uuid.UUID, user_id: uuid.UUID) -> CategoryResponse | None:
        category = await self.categories.get_by_id(category_id, user_id)
        if category is None:
            return None
        counts = await self.categories.count_tasks([category.id])
        return to_category_response(category, counts[category.id])

    async def list_all(self, user_id: uuid.UUID) -> list[CategoryResponse]:
        categories = await self.categories.list_by_user(user_id)
        counts = await self.categories.count_tasks([c.id for c in categories])
        return [to_category_response(c, counts[c.id]) for c in categories]

    async def create(self, data: CategoryCreate, user_id: uuid.UUID) -> CategoryResponse:
        category = Category(
            id=uuid.uuid4(),
            name=data.name,
            description=data.description,
            color=data.color,
            user_id=user_id,
            created_at=utcnow(),
            is_deleted=False,
        )
        await self.categories.add(category)
        logger.info("Created category %s for user %s", category.id, user_id)
        return to_category_response(category, 0)

    async def update(self, category_id: uuid.UUID, data: CategoryUpdate, user_id: uuid.UUID) -> CategoryResponse:
        """Replace name, description and color.

        Raises:
            NotFoundError: no such category for this user.
        """
        category = await self.categories.get_by_id(category_id, user_id)
        if category is None:
            raise NotFoundError("Category", category_id)

        category.name = data.name
        category.description = data.description
        category.color = data.color
        category.updated_at = utcnow()
        await self.categories.save(category)

        counts = await self.categories.count_tasks([category.id])
        return to_category_response(category, counts[category.id])

    async def delete(self, category_id: uuid.UUID, user_id: uuid.UUID) -> None:
        # Missing categories are ignored so the call is idempotent
        if await self.categories.soft_delete(category_id, user_id):
            logger.info("Soft-deleted category %s for user %s", category_id, user_id)
