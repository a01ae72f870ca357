import uuid
from datetime import datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from app.config import Settings
from app.exceptions import UnauthenticatedError
from app.utils.clock import utcnow

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


class TokenData(BaseModel):
    """Identity claims carried by an access token."""

    user_id: uuid.UUID
    email: str
    role: str


class TokenService:
    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def expires_delta(self) -> timedelta:
        return timedelta(minutes=self.settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    def create_access_token(self, user_id: uuid.UUID, email: str, role: str) -> tuple[str, datetime]:
        issued_at = utcnow()
        expires_at = issued_at + self.expires_delta
        claims = {
            "sub": str(user_id),
            "email": email,
            "role": role,
            "jti": str(uuid.uuid4()),
            "iss": self.settings.JWT_ISSUER,
            "aud": self.settings.JWT_AUDIENCE,
            "iat": issued_at,
            "exp": expires_at,
        }
        token = jwt.encode(claims, self.settings.SECRET_KEY, algorithm=self.settings.ALGORITHM)
        return token, expires_at

    def decode_token(self, token: str) -> TokenData:
        try:
            payload = jwt.decode(
                token,
                self.settings.SECRET_KEY,
                algorithms=[self.settings.ALGORITHM],
                audience=self.settings.JWT_AUDIENCE,
                issuer=self.settings.JWT_ISSUER,
            )
        except JWTError:
            raise UnauthenticatedError()

        subject = payload.get("sub")
        if subject is None:
            raise UnauthenticatedError()
        try:
            user_id = uuid.UUID(subject)
        except ValueError:
            raise UnauthenticatedError()

        return TokenData(user_id=user_id, email=payload.get("email", ""), role=payload.get("role", ""))
