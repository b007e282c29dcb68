# backend/models/contact_inquiry.py
from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel, Column, JSON

from core.config import settings
from core.utils import utcnow


class InquiryStatus(str, PyEnum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class InquiryPriority(str, PyEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ContactInquiry(SQLModel, table=True):
    __tablename__ = "contact_inquiries"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    email: str = Field(max_length=255, index=True)
    company: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    service: Optional[str] = None
    message: str

    status: InquiryStatus = Field(default=InquiryStatus.NEW, index=True)
    priority: InquiryPriority = Field(default=InquiryPriority.MEDIUM)
    source: str = Field(default="website")
    # "metadata" is reserved on declarative classes, so the attribute is renamed
    request_metadata: Dict[str, Any] = Field(default_factory=dict, sa_column=Column("metadata", JSON))

    responded_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    assigned_to: Optional[int] = Field(default=None, index=True)
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, index=True)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)

    @property
    def reference_number(self) -> str:
        return f"{settings.CONTACT_REFERENCE_PREFIX}-{self.id or 0:06d}"
