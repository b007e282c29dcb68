# backend/services/faq_service.py
import logging
from typing import Any, Dict, List, Optional, Union

from sqlmodel import Session, select, func, or_

from core.exceptions import NotFoundError, ValidationError
from core.utils import utcnow
from database import run_in_transaction
from models.faq import Faq, FaqCategory, FaqStatus
from schemas import parse_payload
from schemas.faq import (
    FaqCategoryCreate, FaqCategoryUpdate, FaqCreate, FaqUpdate,
    FaqBulkAction, FaqCategoryBulkAction, FaqCategoryReorder,
    FaqCategoryWithCount, FaqStats,
)
from services.slug_service import assign_slug, slugify

logger = logging.getLogger(__name__)

Payload = Union[Dict[str, Any], FaqCategoryCreate, FaqCategoryUpdate, FaqCreate, FaqUpdate]


# --- FAQ categories ---

def get_faq_category(session: Session, category_id: int) -> FaqCategory:
    category = session.get(FaqCategory, category_id)
    if category is None:
        raise NotFoundError("FAQ category not found.")
    return category


def create_faq_category(session: Session, payload: Payload) -> FaqCategory:
    data = parse_payload(FaqCategoryCreate, payload)
    values = data.model_dump(exclude_none=True)
    values["slug"] = assign_slug(session, FaqCategory, values.pop("slug", None), fallback=data.name)
    if not values.get("sort_order"):
        highest = session.exec(select(func.max(FaqCategory.sort_order))).one()
        values["sort_order"] = (highest or 0) + 1

    def write():
        category = FaqCategory(**values)
        session.add(category)
        session.flush()
        return category

    category = run_in_transaction(session, write)
    logger.info("Created FAQ category %s (%s)", category.id, category.slug)
    return category


def update_faq_category(session: Session, category_id: int, payload: Payload) -> FaqCategory:
    category = get_faq_category(session, category_id)
    data = parse_payload(FaqCategoryUpdate, payload)
    changes = data.model_dump(exclude_unset=True)

    for key in ("name", "status", "sort_order"):
        if key in changes and changes[key] is None:
            changes.pop(key)

    # The slug is regenerated from the name only when it was cleared
    if "slug" in changes:
        requested = changes.pop("slug")
        if requested is None:
            changes["slug"] = assign_slug(session, FaqCategory, None, current_id=category.id,
                                          fallback=changes.get("name") or category.name)
        elif slugify(requested) != category.slug:
            changes["slug"] = assign_slug(session, FaqCategory, requested, current_id=category.id)

    def write():
        for key, value in changes.items():
            setattr(category, key, value)
        category.updated_at = utcnow()
        session.add(category)
        session.flush()
        return category

    category = run_in_transaction(session, write)
    logger.info("Updated FAQ category %s: %s", category.id, sorted(changes))
    return category


def delete_faq_category(session: Session, category_id: int) -> None:
    category = get_faq_category(session, category_id)
    faq_count = session.exec(select(func.count(Faq.id)).where(Faq.category_id == category.id)).one()
    if faq_count:
        logger.warning("Refused to delete FAQ category %s: %d FAQs attached", category.id, faq_count)
        raise ValidationError.for_field(
            "category", f"Cannot delete category with {faq_count} FAQs. Move or delete the FAQs first."
        )

    def write():
        session.delete(category)

    run_in_transaction(session, write)
    logger.info("Deleted FAQ category %s", category_id)


def _flipped(status: FaqStatus) -> FaqStatus:
    return FaqStatus.INACTIVE if status == FaqStatus.ACTIVE else FaqStatus.ACTIVE


def _fetch_all(session: Session, model, ids: List[int], field: str, message: str):
    ids = list(dict.fromkeys(ids))
    rows = list(session.exec(select(model).where(model.id.in_(ids)).order_by(model.id)).all())
    if len(rows) != len(ids):
        raise ValidationError.for_field(field, message)
    return rows


def _save_all(session: Session, rows, changes: Dict[str, Any]) -> None:
    def write():
        for row in rows:
            for key, value in changes.items():
                setattr(row, key, value)
            row.updated_at = utcnow()
            session.add(row)
        session.flush()

    run_in_transaction(session, write)


def toggle_faq_category_status(session: Session, category_id: int) -> FaqCategory:
    category = get_faq_category(session, category_id)
    _save_all(session, [category], {"status": _flipped(category.status)})
    logger.info("FAQ category %s is now %s", category.id, category.status.value)
    return category


def faq_category_bulk_action(session: Session, payload: Union[Dict[str, Any], FaqCategoryBulkAction]) -> int:
    """activate, deactivate or delete; categories that still hold FAQs are never deleted."""
    data = parse_payload(FaqCategoryBulkAction, payload)
    categories = _fetch_all(session, FaqCategory, data.ids, "ids", "The selected categories are invalid.")

    if data.action == "delete":
        in_use = session.exec(
            select(func.count(Faq.id)).where(Faq.category_id.in_([category.id for category in categories]))
        ).one()
        if in_use:
            logger.warning("Refused bulk delete of FAQ categories %s: %d FAQs attached", data.ids, in_use)
            raise ValidationError.for_field("categories", "Cannot delete categories that contain FAQs.")

        def write():
            for category in categories:
                session.delete(category)
            session.flush()

        run_in_transaction(session, write)
    else:
        status = FaqStatus.ACTIVE if data.action == "activate" else FaqStatus.INACTIVE
        _save_all(session, categories, {"status": status})

    logger.info("Bulk %s applied to FAQ categories %s", data.action, data.ids)
    return len(categories)


def reorder_faq_categories(session: Session, payload: Union[Dict[str, Any], FaqCategoryReorder]) -> None:
    data = parse_payload(FaqCategoryReorder, payload)
    orders = {item.id: item.sort_order for item in data.categories}
    categories = _fetch_all(session, FaqCategory, list(orders), "categories", "The selected categories are invalid.")

    def write():
        for category in categories:
            category.sort_order = orders[category.id]
            category.updated_at = utcnow()
            session.add(category)
        session.flush()

    run_in_transaction(session, write)
    logger.info("Reordered %d FAQ categories", len(categories))


def list_faq_categories(session: Session, active_only: bool = True) -> List[FaqCategoryWithCount]:
    statement = (
        select(FaqCategory, func.count(Faq.id))
        .join(Faq, Faq.category_id == FaqCategory.id, isouter=True)
        .group_by(FaqCategory.id)
        .order_by(FaqCategory.sort_order, FaqCategory.name)
    )
    if active_only:
        statement = statement.where(FaqCategory.status == FaqStatus.ACTIVE)
    return [
        FaqCategoryWithCount(
            id=category.id, name=category.name, slug=category.slug,
            status=category.status, sort_order=category.sort_order, faqs_count=count,
        )
        for category, count in session.exec(statement).all()
    ]


# --- FAQs ---

def get_faq(session: Session, faq_id: int) -> Faq:
    faq = session.get(Faq, faq_id)
    if faq is None:
        raise NotFoundError("FAQ not found.")
    return faq


def _ensure_faq_category(session: Session, category_id: Optional[int]) -> None:
    if category_id is None:
        raise ValidationError.for_field("category_id", "Please select a valid category.")
    if session.get(FaqCategory, category_id) is None:
        raise ValidationError.for_field("category_id", "The selected category is invalid.")


def create_faq(session: Session, payload: Payload) -> Faq:
    data = parse_payload(FaqCreate, payload)
    _ensure_faq_category(session, data.category_id)
    values = data.model_dump(exclude_none=True)
    values["slug"] = assign_slug(session, Faq, values.pop("slug", None), fallback=data.question)

    def write():
        faq = Faq(**values)
        session.add(faq)
        session.flush()
        return faq

    faq = run_in_transaction(session, write)
    logger.info("Created FAQ %s (%s)", faq.id, faq.slug)
    return faq


def update_faq(session: Session, faq_id: int, payload: Payload) -> Faq:
    faq = get_faq(session, faq_id)
    data = parse_payload(FaqUpdate, payload)
    changes = data.model_dump(exclude_unset=True)

    for key in ("question", "answer", "status", "sort_order", "is_featured", "is_helpful_tracking"):
        if key in changes and changes[key] is None:
            changes.pop(key)
    if "tags" in changes and changes["tags"] is None:
        changes["tags"] = []
    if "category_id" in changes:
        _ensure_faq_category(session, changes["category_id"])

    if "slug" in changes:
        requested = changes.pop("slug")
        if requested is None:
            changes["slug"] = assign_slug(session, Faq, None, current_id=faq.id,
                                          fallback=changes.get("question") or faq.question)
        elif slugify(requested) != faq.slug:
            changes["slug"] = assign_slug(session, Faq, requested, current_id=faq.id)

    def write():
        for key, value in changes.items():
            setattr(faq, key, value)
        faq.updated_at = utcnow()
        session.add(faq)
        session.flush()
        return faq

    faq = run_in_transaction(session, write)
    logger.info("Updated FAQ %s: %s", faq.id, sorted(changes))
    return faq


def delete_faq(session: Session, faq_id: int) -> None:
    faq = get_faq(session, faq_id)

    def write():
        session.delete(faq)

    run_in_transaction(session, write)
    logger.info("Deleted FAQ %s", faq_id)


def toggle_faq_status(session: Session, faq_id: int) -> Faq:
    faq = get_faq(session, faq_id)
    _save_all(session, [faq], {"status": _flipped(faq.status)})
    logger.info("FAQ %s is now %s", faq.id, faq.status.value)
    return faq


def toggle_faq_featured(session: Session, faq_id: int) -> Faq:
    faq = get_faq(session, faq_id)
    _save_all(session, [faq], {"is_featured": not faq.is_featured})
    return faq


def faq_bulk_action(session: Session, payload: Union[Dict[str, Any], FaqBulkAction]) -> int:
    data = parse_payload(FaqBulkAction, payload)
    faqs = _fetch_all(session, Faq, data.ids, "ids", "The selected FAQs are invalid.")

    if data.action == "delete":
        def write():
            for faq in faqs:
                session.delete(faq)
            session.flush()

        run_in_transaction(session, write)
    else:
        changes = {
            "activate": {"status": FaqStatus.ACTIVE},
            "deactivate": {"status": FaqStatus.INACTIVE},
            "feature": {"is_featured": True},
            "unfeature": {"is_featured": False},
        }[data.action]
        _save_all(session, faqs, changes)

    logger.info("Bulk %s applied to %d FAQs", data.action, len(faqs))
    return len(faqs)


def get_faq_by_slug(session: Session, slug: str, count_view: bool = True) -> Faq:
    """Active FAQ by slug; each lookup counts as a view."""
    faq = session.exec(
        select(Faq).where(Faq.slug == slug).where(Faq.status == FaqStatus.ACTIVE)
    ).first()
    if faq is None:
        raise NotFoundError("FAQ not found.")
    if count_view:
        faq.view_count += 1
        session.add(faq)
        session.commit()
        session.refresh(faq)
    return faq


def _vote(session: Session, slug: str, field: str) -> Faq:
    faq = get_faq_by_slug(session, slug, count_view=False)
    if faq.is_helpful_tracking:
        setattr(faq, field, getattr(faq, field) + 1)
        session.add(faq)
        session.commit()
        session.refresh(faq)
    return faq


def mark_helpful(session: Session, slug: str) -> Faq:
    return _vote(session, slug, "helpful_count")


def mark_not_helpful(session: Session, slug: str) -> Faq:
    return _vote(session, slug, "not_helpful_count")


def list_faqs(
    session: Session,
    category_id: Optional[int] = None,
    search: Optional[str] = None,
    featured: Optional[bool] = None,
    active_only: bool = True,
) -> List[Faq]:
    statement = select(Faq)
    if active_only:
        statement = statement.where(Faq.status == FaqStatus.ACTIVE)
    if category_id is not None:
        statement = statement.where(Faq.category_id == category_id)
    if featured:
        statement = statement.where(Faq.is_featured == True)  # noqa: E712
    if search:
        pattern = f"%{search.strip()}%"
        statement = statement.where(or_(Faq.question.ilike(pattern), Faq.answer.ilike(pattern)))
    statement = statement.order_by(Faq.sort_order, Faq.created_at.desc())
    return list(session.exec(statement).all())


def faq_stats(session: Session) -> FaqStats:
    def count(*conditions):
        statement = select(func.count(Faq.id))
        for condition in conditions:
            statement = statement.where(condition)
        return session.exec(statement).one()

    def total(column):
        return session.exec(select(func.coalesce(func.sum(column), 0))).one()

    per_category = session.exec(
        select(FaqCategory.name, func.count(Faq.id))
        .join(Faq, Faq.category_id == FaqCategory.id)
        .group_by(FaqCategory.name)
    ).all()

    return FaqStats(
        total=count(),
        active=count(Faq.status == FaqStatus.ACTIVE),
        inactive=count(Faq.status == FaqStatus.INACTIVE),
        featured=count(Faq.is_featured == True),  # noqa: E712
        total_views=total(Faq.view_count),
        total_helpful=total(Faq.helpful_count),
        total_not_helpful=total(Faq.not_helpful_count),
        categories={name: faqs for name, faqs in per_category},
    )
