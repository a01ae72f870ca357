import uuid
from datetime import datetime

from pydantic import Field, field_validator
from app.schemas.common import CamelModel
from app.utils.sanitization import clean_text, clean_optional_text


class CategoryBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    color: str = Field("#000000", pattern=r"^#[0-9A-Fa-f]{6}$")

    @field_validator("name", mode="before")
    @classmethod
    def sanitize_name(cls, v):
        return clean_text(v)

    @field_validator("description", mode="before")
    @classmethod
    def sanitize_description(cls, v):
        return clean_optional_text(v)


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(CategoryBase):
    # Full replace: omitted description/color fall back to the defaults above
    pass


class CategoryResponse(CamelModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    color: str
    task_count: int = 0
    created_at: datetime
