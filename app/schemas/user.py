import uuid
from datetime import datetime

from pydantic import EmailStr, Field, ValidationInfo, field_validator
from app.schemas.common import CamelModel
from app.utils.sanitization import clean_text


class LoginRequest(CamelModel):
    # Any string; unknown or malformed emails fail as invalid credentials
    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        v = clean_text(v)
        return v.lower() if isinstance(v, str) else v


class RegisterRequest(LoginRequest):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    password_confirmation: str

    @field_validator("email")
    @classmethod
    def email_length(cls, v):
        if len(v) > 255:
            raise ValueError("Email must not exceed 255 characters")
        return v

    @field_validator("password_confirmation")
    @classmethod
    def passwords_match(cls, v, info: ValidationInfo):
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("Passwords do not match")
        return v


class AuthResponse(CamelModel):
    token: str
    email: str
    role: str
    expires_at: datetime


class UserProfile(CamelModel):
    id: uuid.UUID
    email: str
    role: str
    created_at: datetime
