import logging

from core.config import settings


def setup_logger(level: str | int | None = None) -> None:
    """Console logging with one format for the whole project."""
    logging.basicConfig(
        level=level or settings.LOG_LEVEL,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
