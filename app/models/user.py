import enum
import uuid

from sqlalchemy import Column, String, Boolean, DateTime, Enum, Index, Uuid, text
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.clock import utcnow


class UserRole(str, enum.Enum):
    USER = "User"
    ADMIN = "Admin"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        # Email is unique among live users only; soft-deleted rows may share it
        Index(
            "ux_users_email_active",
            "email",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.USER,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    categories = relationship("Category", back_populates="user", passive_deletes=True)
    tasks = relationship("TodoTask", back_populates="user", passive_deletes=True)
