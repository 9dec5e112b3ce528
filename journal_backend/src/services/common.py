from typing import Any, Mapping

from sqlalchemy.orm import Query

from src.db.models import utcnow


def apply_updates(record, changes: Mapping[str, Any]) -> list:
    """
    Copy ``changes`` onto ``record`` through the model's ``__updatable__`` fields.

    Keys the model does not list are dropped silently. Returns the names that
    were written.
    """
    allowed = getattr(type(record), "__updatable__", ())
    written = []
    for field, value in changes.items():
        if field in allowed:
            setattr(record, field, value)
            written.append(field)
    if hasattr(record, "updated_at"):
        record.updated_at = utcnow()
    return written


def paginate(query: Query, page: int, page_size: int) -> list:
    """Zero-based page of ``query``."""
    return query.offset(page * page_size).limit(page_size).all()
