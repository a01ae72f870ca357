import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_auth_service, get_current_user, get_db
from app.exceptions import NotFoundError
from app.schemas.user import AuthResponse, LoginRequest, RegisterRequest, UserProfile
from app.services.auth import AuthService
from app.utils.security import TokenData

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    logger.info("User registration attempt for email: %s", data.email)
    response = await auth_service.register(data)
    await db.commit()
    logger.info("User registered successfully: %s", data.email)
    return response


@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    logger.info("User login attempt for email: %s", data.email)
    response = await auth_service.login(data)
    logger.info("User logged in successfully: %s", data.email)
    return response


@router.get("/profile", response_model=UserProfile)
async def get_profile(
    current_user: TokenData = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    profile = await auth_service.get_profile(current_user.user_id)
    if profile is None:
        raise NotFoundError("User", current_user.user_id)
    return profile
