from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.config import Settings, get_settings
from app.database import get_db as db_session
from app.exceptions import ServiceUnavailableError, UnauthenticatedError
from app.repositories.categories import CategoryRepository
from app.repositories.tasks import TodoTaskRepository
from app.repositories.users import UserRepository
from app.services.auth import AuthService
from app.services.categories import CategoryService
from app.services.tasks import TodoTaskService
from app.utils.security import TokenData, TokenService

bearer_scheme = HTTPBearer(auto_error=False)


def get_db(db: AsyncSession = Depends(db_session)):
    return db


def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(settings)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> TokenData:
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError("Not authenticated")
    return tokens.decode_token(credentials.credentials)


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(UserRepository(db), tokens)


def get_category_service(db: AsyncSession = Depends(get_db)) -> CategoryService:
    return CategoryService(CategoryRepository(db))


def get_task_service(db: AsyncSession = Depends(get_db)) -> TodoTaskService:
    return TodoTaskService(TodoTaskRepository(db), CategoryRepository(db))


def get_scheduler(request: Request) -> AsyncIOScheduler:
    # None when ENABLE_SCHEDULER is off
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise ServiceUnavailableError("Background jobs are disabled")
    return scheduler
