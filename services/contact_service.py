# backend/services/contact_service.py
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Union

from sqlmodel import Session, select, func, or_

from core.config import settings
from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.utils import utcnow
from database import run_in_transaction
from models.contact_inquiry import ContactInquiry, InquiryStatus, InquiryPriority
from schemas import parse_payload
from schemas.contact_us import ContactInquiryCreate, InquiryStats

logger = logging.getLogger(__name__)

RESPONDED_STATUSES = (InquiryStatus.RESOLVED, InquiryStatus.CLOSED)


def _as_enum(enum_cls, value, field: str):
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError.for_field(field, f"The selected {field} is invalid. Allowed: {allowed}.") from exc


def get_inquiry(session: Session, inquiry_id: int) -> ContactInquiry:
    inquiry = session.get(ContactInquiry, inquiry_id)
    if inquiry is None:
        raise NotFoundError("Contact inquiry not found.")
    return inquiry


def submit_inquiry(
    session: Session,
    payload: Union[Dict[str, Any], ContactInquiryCreate],
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    referer: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ContactInquiry:
    """
    Stores a contact-form submission. The same e-mail and message arriving
    again inside the duplicate window is rejected with ConflictError.
    """
    now = now or utcnow()
    data = parse_payload(ContactInquiryCreate, payload)

    window_start = now - timedelta(minutes=settings.CONTACT_DUPLICATE_WINDOW_MINUTES)
    duplicate = session.exec(
        select(ContactInquiry.id)
        .where(ContactInquiry.email == data.email)
        .where(ContactInquiry.message == data.message)
        .where(ContactInquiry.created_at >= window_start)
    ).first()
    if duplicate is not None:
        logger.warning("Duplicate contact submission from %s rejected", data.email)
        raise ConflictError("A similar inquiry was recently submitted. Please wait before submitting again.")

    values = data.model_dump()
    values["request_metadata"] = {
        "ip_address": ip_address,
        "user_agent": user_agent,
        "referer": referer,
        "submitted_at": now.isoformat(),
    }
    values["source"] = "website"

    def write():
        inquiry = ContactInquiry(**values, created_at=now, updated_at=now)
        session.add(inquiry)
        session.flush()
        return inquiry

    inquiry = run_in_transaction(session, write)
    logger.info("Contact form submitted: id=%s email=%s service=%s ip=%s",
                inquiry.id, inquiry.email, inquiry.service, ip_address)
    return inquiry


def _save(session: Session, inquiry: ContactInquiry, now: datetime) -> ContactInquiry:
    def write():
        inquiry.updated_at = now
        session.add(inquiry)
        session.flush()
        return inquiry

    return run_in_transaction(session, write)


def update_inquiry_status(session: Session, inquiry_id: int, status: Union[str, InquiryStatus],
                          now: Optional[datetime] = None) -> ContactInquiry:
    """responded_at is stamped the first time the inquiry is resolved or closed."""
    now = now or utcnow()
    inquiry = get_inquiry(session, inquiry_id)
    inquiry.status = _as_enum(InquiryStatus, status, "status")
    if inquiry.status in RESPONDED_STATUSES and inquiry.responded_at is None:
        inquiry.responded_at = now
    inquiry = _save(session, inquiry, now)
    logger.info("Contact inquiry %s moved to %s", inquiry.id, inquiry.status.value)
    return inquiry


def update_inquiry_priority(session: Session, inquiry_id: int, priority: Union[str, InquiryPriority],
                            now: Optional[datetime] = None) -> ContactInquiry:
    inquiry = get_inquiry(session, inquiry_id)
    inquiry.priority = _as_enum(InquiryPriority, priority, "priority")
    return _save(session, inquiry, now or utcnow())


def assign_inquiry(session: Session, inquiry_id: int, user_id: Optional[int],
                   now: Optional[datetime] = None) -> ContactInquiry:
    inquiry = get_inquiry(session, inquiry_id)
    inquiry.assigned_to = user_id
    return _save(session, inquiry, now or utcnow())


def add_note(session: Session, inquiry_id: int, note: str, now: Optional[datetime] = None) -> ContactInquiry:
    inquiry = get_inquiry(session, inquiry_id)
    note = note.strip()
    inquiry.notes = f"{inquiry.notes}\n{note}" if inquiry.notes else note
    return _save(session, inquiry, now or utcnow())


def list_inquiries(
    session: Session,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    service: Optional[str] = None,
    search: Optional[str] = None,
) -> List[ContactInquiry]:
    statement = select(ContactInquiry).order_by(ContactInquiry.created_at.desc(), ContactInquiry.id.desc())
    if status:
        statement = statement.where(ContactInquiry.status == _as_enum(InquiryStatus, status, "status"))
    if priority:
        statement = statement.where(ContactInquiry.priority == _as_enum(InquiryPriority, priority, "priority"))
    if service:
        statement = statement.where(ContactInquiry.service == service)
    if search:
        pattern = f"%{search.strip()}%"
        statement = statement.where(or_(
            ContactInquiry.name.ilike(pattern),
            ContactInquiry.email.ilike(pattern),
            ContactInquiry.company.ilike(pattern),
            ContactInquiry.message.ilike(pattern),
        ))
    return list(session.exec(statement).all())


def inquiry_stats(session: Session, now: Optional[datetime] = None) -> InquiryStats:
    now = now or utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_start = today - timedelta(days=today.weekday())
    month_start = today.replace(day=1)

    def count(*conditions):
        statement = select(func.count(ContactInquiry.id))
        for condition in conditions:
            statement = statement.where(condition)
        return session.exec(statement).one()

    responded = session.exec(
        select(ContactInquiry.created_at, ContactInquiry.responded_at)
        .where(ContactInquiry.responded_at.is_not(None))
    ).all()
    if responded:
        hours = sum((responded_at - created_at).total_seconds() / 3600 for created_at, responded_at in responded)
        avg_response_time = round(hours / len(responded), 2)
    else:
        avg_response_time = 0.0

    services = Counter(session.exec(
        select(ContactInquiry.service).where(ContactInquiry.service.is_not(None))
    ).all())

    return InquiryStats(
        total=count(),
        new=count(ContactInquiry.status == InquiryStatus.NEW),
        in_progress=count(ContactInquiry.status == InquiryStatus.IN_PROGRESS),
        resolved=count(ContactInquiry.status == InquiryStatus.RESOLVED),
        closed=count(ContactInquiry.status == InquiryStatus.CLOSED),
        today=count(ContactInquiry.created_at >= today),
        this_week=count(ContactInquiry.created_at >= week_start),
        this_month=count(ContactInquiry.created_at >= month_start),
        avg_response_time=avg_response_time,
        top_services=dict(services.most_common(5)),
    )
