from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from models.resource import ResourceStatus
from schemas.category import ResourceCategoryRead


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _split_tags(value):
    # "a, b, c" is accepted as well as a list
    if value is None:
        return []
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    return [tag.strip() if isinstance(tag, str) else tag for tag in value]


class ResourceFields(BaseModel):
    excerpt: Optional[str] = Field(default=None, max_length=500)
    content: Optional[str] = Field(default=None, min_length=100)
    category_id: Optional[int] = None
    tags: Optional[List[str]] = Field(default=None, max_length=10)
    author_id: Optional[int] = None

    # SEO fields
    meta_title: Optional[str] = Field(default=None, max_length=60)
    meta_description: Optional[str] = Field(default=None, max_length=160)
    meta_keywords: Optional[str] = Field(default=None, max_length=255)

    # Media fields
    featured_image: Optional[str] = Field(default=None, max_length=255)
    gallery_images: Optional[List[str]] = Field(default=None, max_length=5)

    # Status fields
    is_featured: Optional[bool] = None
    is_trending: Optional[bool] = None
    is_published: Optional[bool] = None
    published_at: Optional[datetime] = None
    status: Optional[ResourceStatus] = None
    read_time: Optional[int] = Field(default=None, ge=1, le=60)

    @field_validator("slug", "meta_title", "meta_description", "meta_keywords", "featured_image",
                     mode="before", check_fields=False)
    @classmethod
    def blank_strings_are_none(cls, value):
        return _blank_to_none(value)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value):
        return _split_tags(value)

    @field_validator("tags")
    @classmethod
    def tag_length(cls, value):
        for tag in value or []:
            if len(tag) > 50:
                raise ValueError("Each tag cannot be longer than 50 characters.")
        return value


class ResourceCreate(ResourceFields):
    title: str = Field(min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=255)
    excerpt: str = Field(min_length=1, max_length=500)
    content: str = Field(min_length=100)
    category_id: int
    is_featured: bool = False
    is_trending: bool = False
    is_published: bool = False
    status: ResourceStatus = ResourceStatus.DRAFT

    @field_validator("title", "excerpt", "content", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


class ResourceUpdate(ResourceFields):
    """Partial update: only the fields actually sent are applied."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=255)


class ResourceRead(BaseModel):
    id: int
    title: str
    slug: str
    excerpt: str
    category_id: Optional[int] = None
    category: Optional[ResourceCategoryRead] = None
    tags: List[str] = []
    author_id: Optional[int] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    featured_image_url: Optional[str] = None
    gallery_image_urls: List[str] = []
    is_featured: bool
    is_trending: bool
    is_published: bool
    published_at: Optional[datetime] = None
    status: ResourceStatus
    read_time: Optional[int] = None
    reading_time_text: str
    published_date_formatted: Optional[str] = None
    view_count: int
    share_count: int
    like_count: int
    seo_score: int
    full_url: str

    class Config:
        from_attributes = True
