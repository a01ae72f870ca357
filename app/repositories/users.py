import uuid

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.base import active


class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: uuid.UUID) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id, active(User)))
        return result.scalars().first()

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email.lower(), active(User)))
        return result.scalars().first()

    async def email_exists(self, email: str) -> bool:
        result = await self.db.execute(select(exists().where(User.email == email.lower(), active(User))))
        return bool(result.scalar())

    async def add(self, user: User) -> User:
        user.email = user.email.lower()
        self.db.add(user)
        await self.db.flush()
        return user
