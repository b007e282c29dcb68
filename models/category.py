# backend/models/category.py
from typing import Optional, List
from datetime import datetime
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel, Relationship

from core.config import settings
from core.utils import utcnow, storage_url

DEFAULT_CATEGORY_COLOR = "#3B82F6"


class ResourceCategory(SQLModel, table=True):
    """
    A node of the resource category tree.

    The tree is kept as rows linked by parent_id; traversal is done by
    services.category_service with id lookups, never through ORM back-references.
    resource_count is a cache written only by the recount pass.
    """
    __tablename__ = "resource_categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, index=True)
    slug: str = Field(max_length=255, unique=True, index=True)
    description: Optional[str] = None
    color: str = Field(default=DEFAULT_CATEGORY_COLOR, max_length=7)
    icon: Optional[str] = None
    featured_image: Optional[str] = None

    parent_id: Optional[int] = Field(default=None, foreign_key="resource_categories.id", index=True)

    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None

    is_active: bool = Field(default=True, index=True)
    is_featured: bool = Field(default=False)
    sort_order: int = Field(default=0)
    resource_count: int = Field(default=0)

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    deleted_at: Optional[datetime] = Field(default=None, sa_type=DateTime, index=True)

    # Reverse relationship: all resources filed under this category
    resources: List["Resource"] = Relationship(back_populates="category")

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def full_url(self) -> str:
        return f"{settings.FRONTEND_URL.rstrip('/')}/resources/category/{self.slug}"

    @property
    def featured_image_url(self) -> Optional[str]:
        return storage_url(settings.APP_URL, self.featured_image)

    def __repr__(self) -> str:
        return f"<ResourceCategory {self.id} {self.slug}>"
