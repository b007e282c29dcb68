import re
import unicodedata
from typing import Optional, Type

from sqlmodel import Session, SQLModel, select, func, or_

from core.exceptions import ValidationError

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def slugify(text: Optional[str]) -> str:
    """
    Converts text into a URL-safe slug: ASCII lowercase letters, digits and
    single hyphens, no leading or trailing hyphen.
    """
    if not text:
        return ""
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = _NON_ALNUM_RE.sub("-", text.lower())
    return text.strip("-")


def count_slug_prefix(session: Session, model: Type[SQLModel], prefix: str,
                      exclude_id: Optional[int] = None) -> int:
    """Rows whose slug equals or starts with prefix, soft-deleted rows included."""
    statement = select(func.count()).select_from(model).where(
        or_(model.slug == prefix, model.slug.like(f"{prefix}%"))
    )
    if exclude_id is not None:
        statement = statement.where(model.id != exclude_id)
    return session.exec(statement).one()


def _base_slug(candidate: Optional[str], fallback: Optional[str]) -> str:
    base = slugify(candidate)
    if not base:
        base = slugify(fallback)
    if not base:
        raise ValidationError.for_field("slug", "A slug could not be generated; provide a name or slug with letters or digits.")
    return base


def assign_slug(session: Session, model: Type[SQLModel], candidate: Optional[str],
                current_id: Optional[int] = None, fallback: Optional[str] = None) -> str:
    """
    Returns a slug for a row of model.

    The explicit candidate is normalized; when it is empty the fallback text
    (usually the name or title) is used instead. If other rows already use the
    base slug or extend it, the suffix is "-{matches + 1}", found with a single
    count query. Two concurrent writers can still pick the same suffix; the
    unique index on slug rejects the second one.
    """
    base = _base_slug(candidate, fallback)
    matches = count_slug_prefix(session, model, base, exclude_id=current_id)
    if matches:
        return f"{base}-{matches + 1}"
    return base


def assign_free_slug(session: Session, model: Type[SQLModel], candidate: Optional[str],
                     current_id: Optional[int] = None, fallback: Optional[str] = None) -> str:
    """
    Like assign_slug, but picks the first free slot: base, then base-1,
    base-2 and so on. Taken slugs are loaded with one query.
    """
    base = _base_slug(candidate, fallback)
    statement = select(model.slug).where(or_(model.slug == base, model.slug.like(f"{base}-%")))
    if current_id is not None:
        statement = statement.where(model.id != current_id)
    taken = set(session.exec(statement).all())

    slug, counter = base, 1
    while slug in taken:
        slug = f"{base}-{counter}"
        counter += 1
    return slug
