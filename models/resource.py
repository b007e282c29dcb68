# backend/models/resource.py
from typing import Optional, List
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel, Relationship, Column, JSON

from core.config import settings
from core.utils import utcnow, storage_url


class ResourceStatus(str, PyEnum):
    DRAFT = "draft"
    REVIEW = "review"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class Resource(SQLModel, table=True):
    __tablename__ = "resources"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=255)
    slug: str = Field(max_length=255, unique=True, index=True)
    excerpt: str
    content: str

    # Foreign keys
    category_id: Optional[int] = Field(default=None, foreign_key="resource_categories.id", index=True)
    author_id: Optional[int] = Field(default=None, index=True)

    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # SEO fields
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None

    # Media fields (already stored paths or URLs)
    featured_image: Optional[str] = None
    gallery_images: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # Status fields
    is_featured: bool = Field(default=False, index=True)
    is_trending: bool = Field(default=False, index=True)
    is_published: bool = Field(default=False, index=True)
    published_at: Optional[datetime] = Field(default=None, sa_type=DateTime, index=True)
    status: ResourceStatus = Field(default=ResourceStatus.DRAFT)

    # Analytics fields
    view_count: int = Field(default=0)
    share_count: int = Field(default=0)
    like_count: int = Field(default=0)
    read_time: Optional[int] = None  # in minutes
    seo_score: int = Field(default=0)

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    deleted_at: Optional[datetime] = Field(default=None, sa_type=DateTime, index=True)

    # Relationships
    category: Optional["ResourceCategory"] = Relationship(back_populates="resources")

    def is_live(self, now: Optional[datetime] = None) -> bool:
        """Published and past its publication date."""
        now = now or utcnow()
        return (
            self.is_published
            and self.deleted_at is None
            and self.published_at is not None
            and self.published_at <= now
        )

    @property
    def full_url(self) -> str:
        return f"{settings.FRONTEND_URL.rstrip('/')}/resources/{self.slug}"

    @property
    def featured_image_url(self) -> Optional[str]:
        return storage_url(settings.APP_URL, self.featured_image)

    @property
    def gallery_image_urls(self) -> List[str]:
        return [storage_url(settings.APP_URL, image) for image in (self.gallery_images or []) if image]

    @property
    def reading_time_text(self) -> str:
        return f"{self.read_time or 1} min read"

    @property
    def published_date_formatted(self) -> Optional[str]:
        return self.published_at.strftime("%b %d, %Y") if self.published_at else None
