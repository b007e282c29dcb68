# backend/services/category_service.py
"""
Resource category tree: slug assignment, cycle guard, navigation,
resource-count aggregation and deletion.

All traversal walks parent_id pointers or "children of X" queries one row at a
time through services.category_store. Nothing here is cached between calls;
callers that need many lookups should work from get_hierarchy().
"""
import logging
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlmodel import Session, select, func, or_

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.utils import utcnow
from models.category import ResourceCategory
from schemas import parse_payload
from schemas.category import (
    ResourceCategoryCreate, ResourceCategoryUpdate, CategoryBulkAction, CategoryReorder,
    CategoryNode, BreadcrumbItem, FlatCategory, CategoryStats,
)
from services import category_store as store
from services.slug_service import assign_slug, slugify

logger = logging.getLogger(__name__)

Payload = Union[Dict[str, Any], ResourceCategoryCreate, ResourceCategoryUpdate]

CYCLE_MESSAGE = "Cannot create circular reference in category hierarchy."
SELF_PARENT_MESSAGE = "A category cannot be its own parent."
PARENT_MISSING_MESSAGE = "Selected parent category does not exist."
DUPLICATE_NAME_MESSAGE = "A category with this name already exists."
UNKNOWN_CATEGORIES_MESSAGE = "One or more selected categories do not exist."
BULK_DELETE_MESSAGE = "Some categories cannot be deleted because they have resources or subcategories."

FEATURED_RESOURCES_LIMIT = 6


# --- Slug assigner ---

def assign_category_slug(session: Session, candidate: Optional[str], current_id: Optional[int] = None,
                         fallback: Optional[str] = None) -> str:
    return assign_slug(session, ResourceCategory, candidate, current_id=current_id, fallback=fallback)


# --- Tree navigator ---

def ancestors_of(session: Session, category: ResourceCategory) -> List[ResourceCategory]:
    """Root-most first, immediate parent last; empty for a root."""
    chain = []
    seen = {category.id}
    parent_id = category.parent_id
    while parent_id is not None:
        if parent_id in seen:
            raise ConflictError(f"Category hierarchy contains a cycle through id {parent_id}.")
        parent = store.find(session, parent_id, include_deleted=True)
        if parent is None:
            break
        chain.append(parent)
        seen.add(parent_id)
        parent_id = parent.parent_id
    chain.reverse()
    return chain


def descendants_of(session: Session, category: ResourceCategory) -> List[ResourceCategory]:
    """Pre-order walk of the whole subtree, siblings by sort_order then name."""
    result = []
    seen = {category.id}
    stack = list(reversed(store.children_of(session, category.id)))
    while stack:
        node = stack.pop()
        if node.id in seen:
            raise ConflictError(f"Category hierarchy contains a cycle through id {node.id}.")
        seen.add(node.id)
        result.append(node)
        stack.extend(reversed(store.children_of(session, node.id)))
    return result


def hierarchy_level(session: Session, category: ResourceCategory) -> int:
    return len(ancestors_of(session, category))


def breadcrumb(session: Session, category: ResourceCategory) -> List[BreadcrumbItem]:
    return [
        BreadcrumbItem(id=node.id, name=node.name, slug=node.slug, url=node.full_url)
        for node in ancestors_of(session, category) + [category]
    ]


def is_ancestor_of(session: Session, category: ResourceCategory, other: ResourceCategory) -> bool:
    return any(node.id == category.id for node in ancestors_of(session, other))


def is_descendant_of(session: Session, category: ResourceCategory, other: ResourceCategory) -> bool:
    return any(node.id == other.id for node in ancestors_of(session, category))


# --- Cycle guard ---

def would_create_cycle(session: Session, node_id: int, proposed_parent_id: Optional[int]) -> bool:
    if proposed_parent_id is None:
        return False
    if proposed_parent_id == node_id:
        return True
    proposed_parent = store.find(session, proposed_parent_id, include_deleted=True)
    if proposed_parent is None:
        return False
    return any(node.id == node_id for node in ancestors_of(session, proposed_parent))


# --- Resource-count aggregator ---

def _recount_subtree(session: Session, root: ResourceCategory, computed: Dict[int, int], now: datetime) -> None:
    # Iterative post-order: children are settled before their parent.
    children_cache: Dict[int, List[ResourceCategory]] = {}
    visiting = set()
    stack = [root]
    while stack:
        node = stack[-1]
        if node.id in computed:
            stack.pop()
            continue
        if node.id not in children_cache:
            visiting.add(node.id)
            children_cache[node.id] = store.children_of(session, node.id)
            for child in children_cache[node.id]:
                if child.id in visiting:
                    raise ConflictError(f"Category hierarchy contains a cycle through id {child.id}.")
                if child.id not in computed:
                    stack.append(child)
            continue
        stack.pop()
        visiting.discard(node.id)
        count = store.count_published_resources(session, node.id, now)
        count += sum(computed[child.id] for child in children_cache[node.id] if child.is_active)
        store.set_resource_count(session, node, count)
        computed[node.id] = count


def recount(session: Session, category_id: int, now: Optional[datetime] = None) -> int:
    """
    Recomputes resource_count for the category's subtree, then for every
    ancestor up to the root. Each node is computed once per call.

    count = published resources filed directly + sum of active children's counts
    """
    now = now or utcnow()
    category = store.find_or_fail(session, category_id)
    computed: Dict[int, int] = {}
    _recount_subtree(session, category, computed, now)
    for ancestor in reversed(ancestors_of(session, category)):
        if ancestor.deleted_at is None:
            _recount_subtree(session, ancestor, computed, now)
    session.flush()
    return computed[category.id]


def recount_many(session: Session, category_ids, now: Optional[datetime] = None) -> None:
    """Recount several (possibly repeated or missing) categories, e.g. old and new category of a resource."""
    for category_id in dict.fromkeys(category_ids):
        if category_id is not None and store.find(session, category_id) is not None:
            recount(session, category_id, now=now)


# --- Service API ---

def create_category(session: Session, payload: Payload) -> ResourceCategory:
    data = parse_payload(ResourceCategoryCreate, payload)

    if store.name_taken(session, data.name):
        logger.warning("Rejected category %r: duplicate name", data.name)
        raise ValidationError.for_field("name", DUPLICATE_NAME_MESSAGE)
    if data.parent_id is not None:
        store.find_or_fail(session, data.parent_id, PARENT_MISSING_MESSAGE)

    slug = assign_category_slug(session, data.slug, fallback=data.name)
    sort_order = data.sort_order if data.sort_order is not None else store.max_sort_order(session) + 1
    fields = data.model_dump(exclude={"slug", "sort_order"}, exclude_none=True)
    fields.update(slug=slug, sort_order=sort_order)

    def write():
        category = store.create(session, fields)
        recount(session, category.id)
        return category

    category = store.run_in_transaction(session, write)
    logger.info("Created category %s (%s) under parent %s", category.id, category.slug, category.parent_id)
    return category


def update_category(session: Session, category_id: int, payload: Payload) -> ResourceCategory:
    category = store.find_or_fail(session, category_id)
    data = parse_payload(ResourceCategoryUpdate, payload)
    changes = data.model_dump(exclude_unset=True)
    errors: Dict[str, List[str]] = {}

    for key in ("is_active", "is_featured", "sort_order", "color"):
        if key in changes and changes[key] is None:
            changes.pop(key)

    if "name" in changes:
        if not changes["name"]:
            errors["name"] = ["Category name is required."]
        elif store.name_taken(session, changes["name"], exclude_id=category.id):
            errors["name"] = [DUPLICATE_NAME_MESSAGE]

    parent_changed = "parent_id" in changes and changes["parent_id"] != category.parent_id
    if parent_changed:
        new_parent_id = changes["parent_id"]
        if new_parent_id == category.id:
            errors["parent_id"] = [SELF_PARENT_MESSAGE]
        elif new_parent_id is not None:
            store.find_or_fail(session, new_parent_id, PARENT_MISSING_MESSAGE)
            if would_create_cycle(session, category.id, new_parent_id):
                errors["parent_id"] = [CYCLE_MESSAGE]
    else:
        changes.pop("parent_id", None)

    if errors:
        logger.warning("Rejected update of category %s: %s", category.id, errors)
        raise ValidationError(errors)

    if "slug" in changes:
        requested = changes.pop("slug")
        name = changes.get("name") or category.name
        if requested is None or slugify(requested) != category.slug:
            changes["slug"] = assign_category_slug(session, requested, current_id=category.id, fallback=name)

    old_parent_id = category.parent_id

    def write():
        store.update(session, category, changes)
        recount(session, category.id)
        if parent_changed and old_parent_id is not None:
            recount_many(session, [old_parent_id])
        return category

    category = store.run_in_transaction(session, write)
    logger.info("Updated category %s (%s): %s", category.id, category.slug, sorted(changes))
    return category


def delete_category(session: Session, category_id: int) -> ResourceCategory:
    """
    Soft-deletes a category in one transaction: children move up to its parent
    (or become roots), its resources become uncategorized, then the former
    parent chain is recounted.
    """
    category = store.find_or_fail(session, category_id)
    parent_id = category.parent_id

    def write():
        moved, detached = _remove(session, category)
        if parent_id is not None:
            recount(session, parent_id)
        return moved, detached

    moved, detached = store.run_in_transaction(session, write)
    logger.info("Deleted category %s: %d children moved to %s, %d resources uncategorized",
                category_id, moved, parent_id, detached)
    return category


def _remove(session: Session, category: ResourceCategory) -> Tuple[int, int]:
    moved = store.reparent_children(session, category.id, category.parent_id)
    detached = store.detach_resources(session, category.id)
    store.soft_delete(session, category)
    return moved, detached


def can_delete(session: Session, category: ResourceCategory) -> bool:
    return store.count_resources(session, category.id) == 0 and not store.children_of(session, category.id)


def bulk_action(session: Session, payload: Union[Dict[str, Any], CategoryBulkAction]) -> int:
    """
    Applies activate, deactivate, feature, unfeature or delete to several
    categories at once and returns how many were touched.

    Delete is all or nothing: if any selected category still has resources or
    subcategories, nothing is removed.
    """
    data = parse_payload(CategoryBulkAction, payload)
    ids = list(dict.fromkeys(data.category_ids))
    categories = store.find_many(session, ids)
    if len(categories) != len(ids):
        raise ValidationError.for_field("category_ids", UNKNOWN_CATEGORIES_MESSAGE)

    if data.action == "delete" and not all(can_delete(session, category) for category in categories):
        logger.warning("Refused bulk delete of categories %s", ids)
        raise ValidationError.for_field("categories", BULK_DELETE_MESSAGE)

    flags = {
        "activate": {"is_active": True},
        "deactivate": {"is_active": False},
        "feature": {"is_featured": True},
        "unfeature": {"is_featured": False},
    }

    def write():
        if data.action == "delete":
            parent_ids = [category.parent_id for category in categories]
            for category in categories:
                _remove(session, category)
            recount_many(session, parent_ids)
            return
        for category in categories:
            store.update(session, category, flags[data.action])
        if data.action in ("activate", "deactivate"):
            # Parent totals only include active children
            recount_many(session, ids)

    store.run_in_transaction(session, write)
    logger.info("Bulk %s applied to categories %s", data.action, ids)
    return len(categories)


def reorder_categories(session: Session, payload: Union[Dict[str, Any], CategoryReorder]) -> None:
    data = parse_payload(CategoryReorder, payload)
    orders = {item.id: item.sort_order for item in data.categories}
    categories = store.find_many(session, list(orders))
    if len(categories) != len(orders):
        raise ValidationError.for_field("categories", UNKNOWN_CATEGORIES_MESSAGE)

    def write():
        for category in categories:
            store.update(session, category, {"sort_order": orders[category.id]})

    store.run_in_transaction(session, write)
    logger.info("Reordered %d categories", len(categories))


def get_category(session: Session, category_id: int) -> ResourceCategory:
    return store.find_or_fail(session, category_id)


def get_category_by_slug(session: Session, slug: str) -> ResourceCategory:
    category = store.find_by_slug(session, slug)
    if category is None or not category.is_active:
        raise NotFoundError("Category not found.")
    return category


def get_breadcrumb(session: Session, category_id: int) -> List[BreadcrumbItem]:
    return breadcrumb(session, store.find_or_fail(session, category_id))


def get_hierarchy(session: Session) -> List[CategoryNode]:
    """Active tree, roots and siblings ordered by sort_order then name; loaded with one query."""
    by_parent = defaultdict(list)
    for category in store.all_categories(session, active_only=True):
        by_parent[category.parent_id].append(category)

    roots = [CategoryNode.model_validate(category) for category in by_parent[None]]
    stack = list(roots)
    while stack:
        node = stack.pop()
        node.children = [CategoryNode.model_validate(child) for child in by_parent.get(node.id, [])]
        stack.extend(node.children)
    return roots


def get_flat_list(session: Session) -> List[FlatCategory]:
    """Active categories in tree order, names indented with one em dash per level."""
    by_parent = defaultdict(list)
    for category in store.all_categories(session, active_only=True):
        by_parent[category.parent_id].append(category)

    flat = []
    stack = [(category, 0) for category in reversed(by_parent[None])]
    while stack:
        category, level = stack.pop()
        flat.append(FlatCategory(id=category.id, name="— " * level + category.name,
                                 slug=category.slug, level=level))
        stack.extend((child, level + 1) for child in reversed(by_parent.get(category.id, [])))
    return flat


def get_popular(session: Session, limit: int = 10) -> List[ResourceCategory]:
    return list(session.exec(
        select(ResourceCategory)
        .where(ResourceCategory.deleted_at.is_(None))
        .where(ResourceCategory.is_active == True)  # noqa: E712
        .where(ResourceCategory.resource_count > 0)
        .order_by(ResourceCategory.resource_count.desc(), ResourceCategory.name)
        .limit(min(limit, 50))
    ).all())


def get_featured(session: Session) -> List[ResourceCategory]:
    return list(session.exec(
        select(ResourceCategory)
        .where(ResourceCategory.deleted_at.is_(None))
        .where(ResourceCategory.is_active == True)  # noqa: E712
        .where(ResourceCategory.is_featured == True)  # noqa: E712
        .order_by(ResourceCategory.sort_order)
    ).all())


def get_featured_with_resources(session: Session, now: Optional[datetime] = None):
    """Featured categories, each paired with its newest live resources."""
    return [
        (category, store.latest_published_resources(session, category.id, FEATURED_RESOURCES_LIMIT, now=now))
        for category in get_featured(session)
    ]


def related_categories(session: Session, slug: str, limit: int = 6) -> List[ResourceCategory]:
    """
    Active siblings of the category with the most resources first, then popular
    categories until limit (at most 20) is reached. Roots have no siblings.
    """
    category = get_category_by_slug(session, slug)
    limit = min(limit, 20)

    related = []
    if category.parent_id is not None:
        siblings = [
            sibling for sibling in store.children_of(session, category.parent_id, active_only=True)
            if sibling.id != category.id
        ]
        siblings.sort(key=lambda sibling: -sibling.resource_count)
        related = siblings[:limit]

    remaining = limit - len(related)
    if remaining > 0:
        chosen = {category.id} | {item.id for item in related}
        popular = [item for item in get_popular(session, remaining * 2) if item.id not in chosen]
        related.extend(popular[:remaining])
    return related


def search_categories(session: Session, term: str) -> List[ResourceCategory]:
    pattern = f"%{term.strip()}%"
    return list(session.exec(
        select(ResourceCategory)
        .where(ResourceCategory.deleted_at.is_(None))
        .where(ResourceCategory.is_active == True)  # noqa: E712
        .where(or_(ResourceCategory.name.ilike(pattern), ResourceCategory.description.ilike(pattern)))
        .order_by(ResourceCategory.sort_order, ResourceCategory.name)
    ).all())


def category_stats(session: Session) -> CategoryStats:
    def count(*conditions):
        statement = (
            select(func.count(ResourceCategory.id))
            .where(ResourceCategory.deleted_at.is_(None))
            .where(ResourceCategory.is_active == True)  # noqa: E712
        )
        for condition in conditions:
            statement = statement.where(condition)
        return session.exec(statement).one()

    return CategoryStats(
        total_categories=count(),
        root_categories=count(ResourceCategory.parent_id.is_(None)),
        featured_categories=count(ResourceCategory.is_featured == True),  # noqa: E712
        categories_with_resources=count(ResourceCategory.resource_count > 0),
    )
