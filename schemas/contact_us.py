import re
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, Dict, Any
from datetime import datetime

from models.contact_inquiry import InquiryStatus, InquiryPriority

SERVICE_OPTIONS = (
    "ERP Implementation",
    "Process Automation",
    "Business Consulting",
    "Digital Transformation",
    "System Integration",
    "Training & Support",
    "Custom Development",
    "Other",
)

_NAME_RE = re.compile(r"^[a-zA-Z\s]+$")
_PHONE_RE = re.compile(r"^[+]?[0-9\s\-()]+$")
_PHONE_ILLEGAL_RE = re.compile(r"[^+0-9\s\-()]")


class ContactInquiryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Letters and spaces only")
    email: EmailStr
    company: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    service: Optional[str] = None
    message: str = Field(..., min_length=10, max_length=5000, description="Message (10–5000 characters)")

    @field_validator("name", "message", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("company", "service", mode="before")
    @classmethod
    def blank_is_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
        return value or None

    @field_validator("phone", mode="before")
    @classmethod
    def clean_phone(cls, value):
        if not value:
            return None
        return _PHONE_ILLEGAL_RE.sub("", str(value).strip()) or None

    @field_validator("name")
    @classmethod
    def letters_only(cls, value):
        if not _NAME_RE.match(value):
            raise ValueError("Name should only contain letters and spaces.")
        return value

    @field_validator("phone")
    @classmethod
    def valid_phone(cls, value):
        if value is not None and not _PHONE_RE.match(value):
            raise ValueError("Please provide a valid phone number.")
        return value

    @field_validator("service")
    @classmethod
    def known_service(cls, value):
        if value is not None and value not in SERVICE_OPTIONS:
            raise ValueError("Please select a valid service option.")
        return value


class ContactInquiryRead(BaseModel):
    id: int
    reference_number: str
    name: str
    email: EmailStr
    company: Optional[str] = None
    phone: Optional[str] = None
    service: Optional[str] = None
    message: str
    status: InquiryStatus
    priority: InquiryPriority
    source: str
    request_metadata: Dict[str, Any] = {}
    responded_at: Optional[datetime] = None
    assigned_to: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InquiryStats(BaseModel):
    total: int
    new: int
    in_progress: int
    resolved: int
    closed: int
    today: int
    this_week: int
    this_month: int
    avg_response_time: float
    top_services: Dict[str, int]
