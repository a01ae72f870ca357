import logging
import uuid

from sqlalchemy.exc import IntegrityError

from app.exceptions import DuplicateEmailError, InvalidCredentialsError
from app.models.user import User, UserRole
from app.repositories.users import UserRepository
from app.schemas.user import AuthResponse, LoginRequest, RegisterRequest, UserProfile
from app.utils.clock import utcnow
from app.utils.security import TokenService, get_password_hash, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, users: UserRepository, tokens: TokenService):
        self.users = users
        self.tokens = tokens

    async def register(self, data: RegisterRequest) -> AuthResponse:
        """Create an account and sign it in.

        Raises:
            DuplicateEmailError: a live user already has this email.
        """
        email = data.email.lower()
        if await self.users.email_exists(email):
            raise DuplicateEmailError(email)

        user = User(
            id=uuid.uuid4(),
            email=email,
            password_hash=get_password_hash(data.password),
            role=UserRole.USER,
            created_at=utcnow(),
            is_deleted=False,
        )
        try:
            await self.users.add(user)
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            raise DuplicateEmailError(email)

        logger.info("Registered user %s", user.id)
        return self._auth_response(user)

    async def login(self, data: LoginRequest) -> AuthResponse:
        """
        Raises:
            InvalidCredentialsError: unknown/deleted user or wrong password.
        """
        user = await self.users.get_by_email(data.email)
        if user is None or user.is_deleted:
            raise InvalidCredentialsError()
        if not verify_password(data.password, user.password_hash):
            raise InvalidCredentialsError()
        return self._auth_response(user)

    async def get_profile(self, user_id: uuid.UUID) -> UserProfile | None:
        user = await self.users.get_by_id(user_id)
        if user is None or user.is_deleted:
            return None
        return UserProfile(id=user.id, email=user.email, role=user.role.value, created_at=user.created_at)

    def _auth_response(self, user: User) -> AuthResponse:
        token, expires_at = self.tokens.create_access_token(user.id, user.email, user.role.value)
        return AuthResponse(token=token, email=user.email, role=user.role.value, expires_at=expires_at)
