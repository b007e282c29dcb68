"""
Record store for resource categories.

Thin query/write helpers over a SQLModel session. Normal reads hide
soft-deleted rows; the tree service never touches the session for categories
except through these functions.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select, func

from core.exceptions import NotFoundError
from core.utils import utcnow
from models.category import ResourceCategory
from models.resource import Resource
from database import run_in_transaction  # noqa: F401
from services.slug_service import count_slug_prefix as _count_slug_prefix


def find(session: Session, category_id: int, include_deleted: bool = False) -> Optional[ResourceCategory]:
    category = session.get(ResourceCategory, category_id)
    if category is None or (category.deleted_at is not None and not include_deleted):
        return None
    return category


def find_or_fail(session: Session, category_id: int, message: str = "Category not found.") -> ResourceCategory:
    category = find(session, category_id)
    if category is None:
        raise NotFoundError(message)
    return category


def find_by_slug(session: Session, slug: str) -> Optional[ResourceCategory]:
    return session.exec(
        select(ResourceCategory)
        .where(ResourceCategory.slug == slug)
        .where(ResourceCategory.deleted_at.is_(None))
    ).first()


def count_slug_prefix(session: Session, prefix: str, exclude_id: Optional[int] = None) -> int:
    return _count_slug_prefix(session, ResourceCategory, prefix, exclude_id=exclude_id)


def name_taken(session: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    statement = (
        select(ResourceCategory.id)
        .where(func.lower(ResourceCategory.name) == name.lower())
        .where(ResourceCategory.deleted_at.is_(None))
    )
    if exclude_id is not None:
        statement = statement.where(ResourceCategory.id != exclude_id)
    return session.exec(statement).first() is not None


def children_of(session: Session, category_id: int, active_only: bool = False) -> List[ResourceCategory]:
    statement = (
        select(ResourceCategory)
        .where(ResourceCategory.parent_id == category_id)
        .where(ResourceCategory.deleted_at.is_(None))
    )
    if active_only:
        statement = statement.where(ResourceCategory.is_active == True)  # noqa: E712
    statement = statement.order_by(ResourceCategory.sort_order, ResourceCategory.name)
    return list(session.exec(statement).all())


def all_categories(session: Session, active_only: bool = True) -> List[ResourceCategory]:
    statement = select(ResourceCategory).where(ResourceCategory.deleted_at.is_(None))
    if active_only:
        statement = statement.where(ResourceCategory.is_active == True)  # noqa: E712
    statement = statement.order_by(ResourceCategory.sort_order, ResourceCategory.name)
    return list(session.exec(statement).all())


def max_sort_order(session: Session) -> int:
    value = session.exec(
        select(func.max(ResourceCategory.sort_order)).where(ResourceCategory.deleted_at.is_(None))
    ).one()
    return value or 0


def count_published_resources(session: Session, category_id: int, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    return session.exec(
        select(func.count(Resource.id))
        .where(Resource.category_id == category_id)
        .where(Resource.is_published == True)  # noqa: E712
        .where(Resource.published_at.is_not(None))
        .where(Resource.published_at <= now)
        .where(Resource.deleted_at.is_(None))
    ).one()


def count_resources(session: Session, category_id: int) -> int:
    return session.exec(
        select(func.count(Resource.id))
        .where(Resource.category_id == category_id)
        .where(Resource.deleted_at.is_(None))
    ).one()


def create(session: Session, fields: Dict[str, Any]) -> ResourceCategory:
    category = ResourceCategory(**fields)
    session.add(category)
    session.flush()
    return category


def update(session: Session, category: ResourceCategory, fields: Dict[str, Any]) -> ResourceCategory:
    for key, value in fields.items():
        setattr(category, key, value)
    category.updated_at = utcnow()
    session.add(category)
    session.flush()
    return category


def set_resource_count(session: Session, category: ResourceCategory, count: int) -> None:
    if category.resource_count != count:
        category.resource_count = count
        session.add(category)


def reparent_children(session: Session, category_id: int, new_parent_id: Optional[int]) -> int:
    children = children_of(session, category_id)
    for child in children:
        child.parent_id = new_parent_id
        child.updated_at = utcnow()
        session.add(child)
    session.flush()
    return len(children)


def detach_resources(session: Session, category_id: int) -> int:
    # Soft-deleted resources are detached as well, nothing may point at the removed row
    resources = session.exec(select(Resource).where(Resource.category_id == category_id)).all()
    for resource in resources:
        resource.category_id = None
        session.add(resource)
    session.flush()
    return len(resources)


def soft_delete(session: Session, category: ResourceCategory) -> None:
    category.deleted_at = utcnow()
    session.add(category)
    session.flush()



def find_many(session: Session, category_ids: List[int]) -> List[ResourceCategory]:
    return list(session.exec(
        select(ResourceCategory)
        .where(ResourceCategory.id.in_(category_ids))
        .where(ResourceCategory.deleted_at.is_(None))
        .order_by(ResourceCategory.id)
    ).all())


def latest_published_resources(session: Session, category_id: int, limit: int,
                               now: Optional[datetime] = None) -> List[Resource]:
    now = now or utcnow()
    return list(session.exec(
        select(Resource)
        .where(Resource.category_id == category_id)
        .where(Resource.is_published == True)  # noqa: E712
        .where(Resource.published_at.is_not(None))
        .where(Resource.published_at <= now)
        .where(Resource.deleted_at.is_(None))
        .order_by(Resource.published_at.desc())
        .limit(limit)
    ).all())
