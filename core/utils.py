import re
from datetime import datetime, timezone

_TAG_RE = re.compile(r"<[^>]*>")
_WORD_RE = re.compile(r"[A-Za-z'-]+")


def utcnow() -> datetime:
    # Naive UTC, the way every timestamp column is stored.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def strip_tags(html: str | None) -> str:
    return _TAG_RE.sub(" ", html or "")


def word_count(text: str | None) -> int:
    """Counts words made of letters, apostrophes and hyphens."""
    return len(_WORD_RE.findall(text or ""))


def str_limit(text: str | None, limit: int, end: str = "...") -> str:
    text = text or ""
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + end


def storage_url(base: str, path: str | None) -> str | None:
    """Absolute URLs pass through; stored paths are served from {base}/storage/."""
    if not path:
        return None
    if path.startswith(("http://", "https://")):
        return path
    return f"{base.rstrip('/')}/storage/{path.lstrip('/')}"
