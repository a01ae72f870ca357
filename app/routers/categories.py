import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_category_service, get_current_user, get_db
from app.exceptions import NotFoundError
from app.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from app.services.categories import CategoryService
from app.utils.security import TokenData

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    current_user: TokenData = Depends(get_current_user),
    category_service: CategoryService = Depends(get_category_service),
):
    return await category_service.list_all(current_user.user_id)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: uuid.UUID,
    current_user: TokenData = Depends(get_current_user),
    category_service: CategoryService = Depends(get_category_service),
):
    category = await category_service.get_by_id(category_id, current_user.user_id)
    if category is None:
        raise NotFoundError("Category", category_id)
    return category


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
    category_service: CategoryService = Depends(get_category_service),
):
    category = await category_service.create(data, current_user.user_id)
    await db.commit()
    return category


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: uuid.UUID,
    data: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
    category_service: CategoryService = Depends(get_category_service),
):
    category = await category_service.update(category_id, data, current_user.user_id)
    await db.commit()
    return category


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
    category_service: CategoryService = Depends(get_category_service),
):
    await category_service.delete(category_id, current_user.user_id)
    await db.commit()
    return None
