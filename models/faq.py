# backend/models/faq.py
from typing import Optional, List
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel, Relationship, Column, JSON

from core.utils import utcnow


class FaqStatus(str, PyEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class FaqCategory(SQLModel, table=True):
    __tablename__ = "faq_categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    slug: str = Field(max_length=255, unique=True, index=True)
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = Field(default=None, max_length=7)
    status: FaqStatus = Field(default=FaqStatus.ACTIVE)
    sort_order: int = Field(default=0)
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)

    faqs: List["Faq"] = Relationship(back_populates="category")


class Faq(SQLModel, table=True):
    __tablename__ = "faqs"

    id: Optional[int] = Field(default=None, primary_key=True)
    question: str = Field(max_length=500)
    answer: str
    category_id: int = Field(foreign_key="faq_categories.id", index=True)
    status: FaqStatus = Field(default=FaqStatus.ACTIVE, index=True)
    sort_order: int = Field(default=0)
    is_featured: bool = Field(default=False, index=True)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    view_count: int = Field(default=0)
    is_helpful_tracking: bool = Field(default=True)
    helpful_count: int = Field(default=0)
    not_helpful_count: int = Field(default=0)

    meta_description: Optional[str] = None
    slug: str = Field(max_length=255, unique=True, index=True)

    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)

    category: Optional[FaqCategory] = Relationship(back_populates="faqs")

    @property
    def helpfulness_ratio(self) -> float:
        total = self.helpful_count + self.not_helpful_count
        if total == 0:
            return 0
        return round(self.helpful_count / total * 100, 1)
