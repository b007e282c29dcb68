# backend/services/resource_service.py
import logging
import math
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlmodel import Session, select, or_

from core.config import settings
from core.exceptions import NotFoundError, ValidationError
from core.utils import utcnow, strip_tags, word_count, str_limit
from models.category import ResourceCategory
from models.resource import Resource, ResourceStatus
from schemas import parse_payload
from schemas.resource import ResourceCreate, ResourceUpdate
from services import category_store
from services.category_service import recount_many
from services.slug_service import assign_free_slug, slugify

logger = logging.getLogger(__name__)

Payload = Union[Dict[str, Any], ResourceCreate, ResourceUpdate]

CATEGORY_MISSING_MESSAGE = "The selected category does not exist."


def calculate_read_time(content: Optional[str]) -> int:
    words = word_count(strip_tags(content))
    return max(1, math.ceil(words / settings.WORDS_PER_MINUTE))


def generate_seo_score(resource: Resource) -> int:
    """Additive 0-100 score from title, meta description, content length, media, tags, category, excerpt and slug."""
    score = 0

    # Title (0-25)
    if resource.title:
        length = len(resource.title)
        if 30 <= length <= 60:
            score += 25
        elif 20 <= length <= 70:
            score += 15
        else:
            score += 10

    # Meta description (0-20)
    if resource.meta_description:
        length = len(resource.meta_description)
        if 120 <= length <= 160:
            score += 20
        elif 100 <= length <= 180:
            score += 15
        else:
            score += 10

    # Content length (0-15)
    if resource.content:
        words = word_count(strip_tags(resource.content))
        if words >= 1000:
            score += 15
        elif words >= 500:
            score += 10
        elif words >= 300:
            score += 5

    if resource.featured_image:
        score += 10

    tags = resource.tags or []
    if len(tags) >= 3:
        score += 10
    elif len(tags) >= 1:
        score += 5

    if resource.category_id:
        score += 5

    if resource.excerpt:
        score += 10

    if resource.slug and len(resource.slug) <= 75:
        score += 5

    return score


def _apply_publication_defaults(values: Dict[str, Any], now: datetime) -> None:
    if values.get("is_published"):
        if not values.get("published_at"):
            values["published_at"] = now
        if values.get("status", ResourceStatus.DRAFT) == ResourceStatus.DRAFT:
            values["status"] = ResourceStatus.PUBLISHED


def _publication_errors(values: Dict[str, Any]) -> Dict[str, List[str]]:
    errors = {}
    published = bool(values.get("is_published"))
    if values.get("is_featured") and not published:
        errors["is_featured"] = ["Featured resources must be published."]
    if values.get("is_trending") and not published:
        errors["is_trending"] = ["Trending resources must be published."]
    if published and not values.get("published_at"):
        errors["published_at"] = ["Publication date is required when resource is published."]
    return errors


def _ensure_category(session: Session, category_id: Optional[int]) -> None:
    if category_id is None:
        raise ValidationError.for_field("category_id", "Please select a category for this resource.")
    category_store.find_or_fail(session, category_id, CATEGORY_MISSING_MESSAGE)


def get_resource(session: Session, resource_id: int) -> Resource:
    resource = session.get(Resource, resource_id)
    if resource is None or resource.deleted_at is not None:
        raise NotFoundError("Resource not found.")
    return resource


def get_published_by_slug(session: Session, slug: str, now: Optional[datetime] = None) -> Resource:
    resource = session.exec(select(Resource).where(Resource.slug == slug)).first()
    if resource is None or not resource.is_live(now):
        raise NotFoundError("Resource not found.")
    return resource


def create_resource(session: Session, payload: Payload, now: Optional[datetime] = None) -> Resource:
    now = now or utcnow()
    data = parse_payload(ResourceCreate, payload)
    _ensure_category(session, data.category_id)

    values = data.model_dump(exclude_none=True)
    _apply_publication_defaults(values, now)
    errors = _publication_errors(values)
    if errors:
        logger.warning("Rejected resource %r: %s", data.title, errors)
        raise ValidationError(errors)

    values["slug"] = assign_free_slug(session, Resource, values.pop("slug", None), fallback=values["title"])
    values.setdefault("meta_title", str_limit(values["title"], 57))
    values.setdefault("meta_description", str_limit(values["excerpt"], 155))
    values.setdefault("read_time", calculate_read_time(values["content"]))

    def write():
        resource = Resource(**values)
        resource.seo_score = generate_seo_score(resource)
        session.add(resource)
        session.flush()
        recount_many(session, [resource.category_id], now=now)
        return resource

    resource = category_store.run_in_transaction(session, write)
    logger.info("Created resource %s (%s), seo score %s", resource.id, resource.slug, resource.seo_score)
    return resource


def update_resource(session: Session, resource_id: int, payload: Payload, now: Optional[datetime] = None) -> Resource:
    now = now or utcnow()
    resource = get_resource(session, resource_id)
    data = parse_payload(ResourceUpdate, payload)
    changes = data.model_dump(exclude_unset=True)

    for key in ("title", "excerpt", "content", "is_featured", "is_trending", "is_published", "status"):
        if key in changes and changes[key] is None:
            changes.pop(key)
    if "category_id" in changes:
        _ensure_category(session, changes["category_id"])

    merged = {
        key: getattr(resource, key)
        for key in ("is_featured", "is_trending", "is_published", "published_at", "status")
    }
    merged.update({key: value for key, value in changes.items() if key in merged})
    if changes.get("is_published") and not resource.is_published:
        _apply_publication_defaults(merged, now)
    errors = _publication_errors(merged)
    if errors:
        logger.warning("Rejected update of resource %s: %s", resource.id, errors)
        raise ValidationError(errors)
    changes.update(merged)

    if "slug" in changes:
        requested = changes.pop("slug")
        if requested is None or slugify(requested) != resource.slug:
            changes["slug"] = assign_free_slug(session, Resource, requested, current_id=resource.id,
                                               fallback=changes.get("title") or resource.title)
    if "content" in changes and "read_time" not in changes:
        changes["read_time"] = calculate_read_time(changes["content"])

    old_category_id = resource.category_id

    def write():
        for key, value in changes.items():
            setattr(resource, key, value)
        resource.seo_score = generate_seo_score(resource)
        resource.updated_at = now
        session.add(resource)
        session.flush()
        recount_many(session, [old_category_id, resource.category_id], now=now)
        return resource

    resource = category_store.run_in_transaction(session, write)
    logger.info("Updated resource %s (%s): %s", resource.id, resource.slug, sorted(changes))
    return resource


def publish_resource(session: Session, resource_id: int, published_at: Optional[datetime] = None,
                     now: Optional[datetime] = None) -> Resource:
    changes = {"is_published": True}
    if published_at is not None:
        changes["published_at"] = published_at
    return update_resource(session, resource_id, changes, now=now)


def unpublish_resource(session: Session, resource_id: int, now: Optional[datetime] = None) -> Resource:
    resource = get_resource(session, resource_id)
    changes = {"is_published": False, "is_featured": False, "is_trending": False}
    if resource.status == ResourceStatus.PUBLISHED:
        changes["status"] = ResourceStatus.DRAFT
    return update_resource(session, resource_id, changes, now=now)


def delete_resource(session: Session, resource_id: int, now: Optional[datetime] = None) -> Resource:
    now = now or utcnow()
    resource = get_resource(session, resource_id)

    def write():
        resource.deleted_at = now
        session.add(resource)
        session.flush()
        recount_many(session, [resource.category_id], now=now)
        return resource

    resource = category_store.run_in_transaction(session, write)
    logger.info("Deleted resource %s (%s)", resource.id, resource.slug)
    return resource


def _increment(session: Session, resource_id: int, field: str) -> int:
    resource = get_resource(session, resource_id)
    setattr(resource, field, getattr(resource, field) + 1)
    session.add(resource)
    session.commit()
    session.refresh(resource)
    return getattr(resource, field)


def increment_view_count(session: Session, resource_id: int) -> int:
    return _increment(session, resource_id, "view_count")


def increment_share_count(session: Session, resource_id: int) -> int:
    return _increment(session, resource_id, "share_count")


def increment_like_count(session: Session, resource_id: int) -> int:
    return _increment(session, resource_id, "like_count")


def _published_query(now: datetime):
    return (
        select(Resource)
        .where(Resource.deleted_at.is_(None))
        .where(Resource.is_published == True)  # noqa: E712
        .where(Resource.published_at.is_not(None))
        .where(Resource.published_at <= now)
    )


def _in_category(statement, category: Union[int, str]):
    if isinstance(category, int) or str(category).isdigit():
        return statement.where(Resource.category_id == int(category))
    # Lookup by category slug or name
    return statement.join(ResourceCategory, Resource.category_id == ResourceCategory.id).where(
        or_(ResourceCategory.slug == category, ResourceCategory.name == category)
    )


def _matches(resource: Resource, term: str) -> bool:
    return (
        term in resource.title.lower()
        or term in (resource.excerpt or "").lower()
        or term in (resource.content or "").lower()
        or any(term == tag.lower() for tag in resource.tags or [])
        or (resource.category is not None and term in resource.category.name.lower())
    )


def list_published(
    session: Session,
    category: Optional[Union[int, str]] = None,
    search: Optional[str] = None,
    featured: Optional[bool] = None,
    trending: Optional[bool] = None,
    limit: Optional[int] = None,
    sort: str = "latest",
    now: Optional[datetime] = None,
) -> List[Resource]:
    """Published resources, newest first, or most viewed first with sort="popular"."""
    statement = _published_query(now or utcnow())

    if category is not None:
        statement = _in_category(statement, category)
    if featured:
        statement = statement.where(Resource.is_featured == True)  # noqa: E712
    if trending:
        statement = statement.where(Resource.is_trending == True)  # noqa: E712

    if sort == "popular":
        statement = statement.order_by(Resource.view_count.desc(), Resource.published_at.desc())
    else:
        statement = statement.order_by(Resource.published_at.desc())
    resources = list(session.exec(statement).all())

    if search:
        # Tags live in a JSON column, so the text match runs in Python
        term = search.strip().lower()
        resources = [resource for resource in resources if _matches(resource, term)]
    return resources[:limit] if limit else resources


def resources_by_category(
    session: Session,
    category: Union[int, str],
    search: Optional[str] = None,
    sort: str = "latest",
    now: Optional[datetime] = None,
) -> Tuple[List[Resource], Dict[str, Any]]:
    """
    Published resources filed directly under a category (id, slug or name),
    together with totals for that category: resource count, views and the
    average read time.
    """
    resources = list_published(session, category=category, search=search, sort=sort, now=now)
    everything = list_published(session, category=category, now=now)
    read_times = [resource.read_time for resource in everything if resource.read_time]
    stats = {
        "total_resources": len(everything),
        "total_views": sum(resource.view_count for resource in everything),
        "avg_read_time": round(sum(read_times) / len(read_times), 1) if read_times else 0,
    }
    return resources, stats


def get_all_tags(session: Session, now: Optional[datetime] = None) -> List[str]:
    tags = set()
    for resource in session.exec(_published_query(now or utcnow())).all():
        tags.update(resource.tags or [])
    return sorted(tags)


def get_popular_tags(session: Session, limit: int = 20, now: Optional[datetime] = None) -> Dict[str, int]:
    counter = Counter()
    for resource in session.exec(_published_query(now or utcnow())).all():
        counter.update(resource.tags or [])
    return dict(counter.most_common(limit))
