import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from src.api.core import get_current_user
from src.api.schemas import (
    JournalEntryCreate, JournalEntryRead, JournalEntryUpdate, MoodStats, WeeklySummary, to_naive_utc,
)
from src.db.db import get_db
from src.db.models import User
from src.services import journal

router = APIRouter(prefix="/api/journal", tags=["journal"], dependencies=[Depends(get_current_user)])


# keeps page * pageSize inside a 64-bit OFFSET
MAX_PAGE = 1_000_000


class PageParams:
    """Zero-based ``page`` and ``pageSize`` query parameters."""

    def __init__(self, page: int = Query(0, ge=0, le=MAX_PAGE),
                 page_size: int = Query(10, ge=1, le=100, alias="pageSize")):
        self.page = page
        self.page_size = page_size


# PUBLIC_INTERFACE
@router.get("", response_model=List[JournalEntryRead], summary="List my entries")
def list_entries(paging: PageParams = Depends(), db: Session = Depends(get_db),
                 current_user: User = Depends(get_current_user)):
    """Newest first, including locked time capsules."""
    return journal.list_entries(db, current_user, paging.page, paging.page_size)


# PUBLIC_INTERFACE
@router.post("", response_model=JournalEntryRead, status_code=status.HTTP_201_CREATED, summary="Create an entry")
def create_entry(payload: JournalEntryCreate, db: Session = Depends(get_db),
                 current_user: User = Depends(get_current_user)):
    return journal.create_entry(db, current_user, payload)


# PUBLIC_INTERFACE
@router.get("/unlocked", response_model=List[JournalEntryRead], summary="Opened time capsules")
@router.get("/unlocked/all", response_model=List[JournalEntryRead], include_in_schema=False)
def list_unlocked(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Entries whose unlock time has passed, earliest unlock first."""
    return journal.list_unlocked(db, current_user)


# PUBLIC_INTERFACE
@router.get("/stats/mood", response_model=MoodStats, summary="Mood counts")
def mood_stats(
    start_date: Optional[datetime.datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime.datetime] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Count per mood for entries created in the range; all time when no range is given."""
    return journal.mood_stats(db, current_user, to_naive_utc(start_date), to_naive_utc(end_date))


# PUBLIC_INTERFACE
@router.get("/stats/weekly", response_model=WeeklySummary, summary="Last seven days")
def weekly_summary(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return journal.weekly_summary(db, current_user)


# PUBLIC_INTERFACE
@router.get("/{entry_id}", response_model=JournalEntryRead, summary="Get one entry")
def get_entry(entry_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Get a single entry by ID (must be owned by the current user)."""
    return journal.get_entry(db, current_user, entry_id)


# PUBLIC_INTERFACE
@router.put("/{entry_id}", response_model=JournalEntryRead, summary="Update an entry")
def update_entry(entry_id: str, payload: JournalEntryUpdate, db: Session = Depends(get_db),
                 current_user: User = Depends(get_current_user)):
    """Partial update; unknown fields are ignored."""
    return journal.update_entry(db, current_user, entry_id, payload)


# PUBLIC_INTERFACE
@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an entry")
def delete_entry(entry_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    journal.delete_entry(db, current_user, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
