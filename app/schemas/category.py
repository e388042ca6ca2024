from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field

from app.schemas.common import CamelModel


class CategoryCreate(BaseModel):
    category_name: str = Field(
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("tagName", "categoryName"),
    )


class CategoryRead(CamelModel):
    id: int
    category_name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CategoryList(CamelModel):
    success: bool = True
    count: int
    categories: list[CategoryRead]


class CategoryCreated(CamelModel):
    success: bool = True
    tag_name: str


class CategoryDeleted(CamelModel):
    success: bool = True
    tasks_updated: int
