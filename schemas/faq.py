from pydantic import BaseModel, Field, field_validator
from typing import Literal, Optional, List
from datetime import datetime

from models.faq import FaqStatus
from schemas.category import HEX_COLOR_PATTERN, SortOrderItem


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def _blank_to_none(value):
    value = _strip(value)
    return value if value != "" else None


class FaqCategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    icon: Optional[str] = Field(default=None, max_length=255)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)
    status: FaqStatus = FaqStatus.ACTIVE
    sort_order: Optional[int] = Field(default=None, ge=0)
    meta_title: Optional[str] = Field(default=None, max_length=255)
    meta_description: Optional[str] = Field(default=None, max_length=500)
    created_by: Optional[int] = None

    @field_validator("name", "slug", "description", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _blank_to_none(value)


class FaqCategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    icon: Optional[str] = Field(default=None, max_length=255)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)
    status: Optional[FaqStatus] = None
    sort_order: Optional[int] = Field(default=None, ge=0)
    meta_title: Optional[str] = Field(default=None, max_length=255)
    meta_description: Optional[str] = Field(default=None, max_length=500)
    updated_by: Optional[int] = None

    @field_validator("name", "slug", "description", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _blank_to_none(value)


class FaqCreate(BaseModel):
    question: str = Field(min_length=10, max_length=500)
    answer: str = Field(min_length=20, max_length=5000)
    category_id: int
    status: FaqStatus = FaqStatus.ACTIVE
    sort_order: int = Field(default=0, ge=0, le=9999)
    is_featured: bool = False
    tags: List[str] = Field(default_factory=list, max_length=10)
    is_helpful_tracking: bool = True
    meta_description: Optional[str] = Field(default=None, max_length=300)
    slug: Optional[str] = Field(default=None, max_length=255)
    created_by: Optional[int] = None

    @field_validator("question", "answer", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _strip(value)

    @field_validator("sort_order", mode="before")
    @classmethod
    def empty_sort_order_is_zero(cls, value):
        return value or 0

    @field_validator("tags")
    @classmethod
    def tag_length(cls, value):
        for tag in value:
            if len(tag) > 50:
                raise ValueError("Each tag cannot exceed 50 characters.")
        return value


class FaqUpdate(BaseModel):
    question: Optional[str] = Field(default=None, min_length=10, max_length=500)
    answer: Optional[str] = Field(default=None, min_length=20, max_length=5000)
    category_id: Optional[int] = None
    status: Optional[FaqStatus] = None
    sort_order: Optional[int] = Field(default=None, ge=0, le=9999)
    is_featured: Optional[bool] = None
    tags: Optional[List[str]] = Field(default=None, max_length=10)
    is_helpful_tracking: Optional[bool] = None
    meta_description: Optional[str] = Field(default=None, max_length=300)
    slug: Optional[str] = Field(default=None, max_length=255)
    updated_by: Optional[int] = None

    @field_validator("question", "answer", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _strip(value)


class FaqRead(BaseModel):
    id: int
    question: str
    answer: str
    category_id: int
    status: FaqStatus
    sort_order: int
    is_featured: bool
    tags: List[str] = []
    view_count: int
    helpful_count: int
    not_helpful_count: int
    helpfulness_ratio: float
    slug: str
    created_at: datetime

    class Config:
        from_attributes = True


class FaqCategoryWithCount(BaseModel):
    id: int
    name: str
    slug: str
    status: FaqStatus
    sort_order: int
    faqs_count: int


class FaqStats(BaseModel):
    total: int
    active: int
    inactive: int
    featured: int
    total_views: int
    total_helpful: int
    total_not_helpful: int
    categories: dict


class FaqBulkAction(BaseModel):
    action: Literal["delete", "activate", "deactivate", "feature", "unfeature"]
    ids: List[int] = Field(min_length=1)


class FaqCategoryBulkAction(BaseModel):
    action: Literal["activate", "deactivate", "delete"]
    ids: List[int] = Field(min_length=1)


class FaqCategoryReorder(BaseModel):
    categories: List[SortOrderItem] = Field(min_length=1)
