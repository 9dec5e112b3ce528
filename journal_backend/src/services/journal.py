import datetime
import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from src.api.errors import NotFound
from src.api.schemas import JournalEntryCreate, JournalEntryUpdate
from src.db.models import MOODS, JournalEntry, User, utcnow
from src.services.common import apply_updates, paginate

logger = logging.getLogger(__name__)

WEEKLY_WINDOW = datetime.timedelta(days=7)


def _owned(db: Session, user: User):
    return db.query(JournalEntry).filter(JournalEntry.user_id == user.id)


# PUBLIC_INTERFACE
def create_entry(db: Session, user: User, data: JournalEntryCreate) -> JournalEntry:
    """Create an entry for the authenticated user."""
    entry = JournalEntry(
        user_id=user.id,
        content=data.content,
        mood=data.mood,
        reflection=data.reflection,
        suggestions=list(data.suggestions),
        color_hint=data.color_hint,
        is_reframed=data.is_reframed,
        unlock_at=data.unlock_at,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.debug("User %s created entry %s", user.id, entry.id)
    return entry

# PUBLIC_INTERFACE
def list_entries(db: Session, user: User, page: int = 0, page_size: int = 10) -> List[JournalEntry]:
    """Newest first, time capsules included."""
    query = _owned(db, user).order_by(JournalEntry.created_at.desc(), JournalEntry.id)
    return paginate(query, page, page_size)

# PUBLIC_INTERFACE
def get_entry(db: Session, user: User, entry_id: str) -> JournalEntry:
    """Get a single entry owned by user, NotFound if missing or someone else's."""
    entry = _owned(db, user).filter(JournalEntry.id == entry_id).first()
    if entry is None:
        raise NotFound("Entry not found")
    return entry

# PUBLIC_INTERFACE
def update_entry(db: Session, user: User, entry_id: str, changes: JournalEntryUpdate) -> JournalEntry:
    """Apply the fields the client sent; anything outside the whitelist is ignored."""
    entry = get_entry(db, user, entry_id)
    apply_updates(entry, changes.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(entry)
    return entry

# PUBLIC_INTERFACE
def delete_entry(db: Session, user: User, entry_id: str) -> None:
    entry = get_entry(db, user, entry_id)
    db.delete(entry)
    db.commit()
    logger.debug("User %s deleted entry %s", user.id, entry_id)

# PUBLIC_INTERFACE
def list_unlocked(db: Session, user: User, now: Optional[datetime.datetime] = None) -> List[JournalEntry]:
    """Time capsules whose unlock instant has passed, earliest unlock first."""
    now = now or utcnow()
    return (
        _owned(db, user)
        .filter(JournalEntry.unlock_at.isnot(None), JournalEntry.unlock_at <= now)
        .order_by(JournalEntry.unlock_at.asc(), JournalEntry.id)
        .all()
    )


def count_moods(moods) -> Dict[str, int]:
    """Zero-filled count per mood, keyed in the fixed mood order."""
    counts = {mood: 0 for mood in MOODS}
    for mood in moods:
        if mood in counts:
            counts[mood] += 1
    return counts


def dominant_mood(counts: Dict[str, int]) -> str:
    # max() keeps the first maximum it meets, so ties go to the earlier mood in MOODS
    return max(MOODS, key=lambda mood: counts.get(mood, 0))


def _moods_between(db: Session, user: User, start: Optional[datetime.datetime], end: datetime.datetime):
    query = db.query(JournalEntry.mood).filter(JournalEntry.user_id == user.id, JournalEntry.created_at <= end)
    if start is not None:
        query = query.filter(JournalEntry.created_at >= start)
    return [row.mood for row in query]

# PUBLIC_INTERFACE
def mood_stats(db: Session, user: User, start: Optional[datetime.datetime] = None,
               end: Optional[datetime.datetime] = None) -> Dict[str, int]:
    """Per-mood counts for entries created in [start, end]; all time by default."""
    return count_moods(_moods_between(db, user, start, end or utcnow()))

# PUBLIC_INTERFACE
def weekly_summary(db: Session, user: User, now: Optional[datetime.datetime] = None) -> dict:
    """Mood breakdown over the trailing seven days."""
    week_end = now or utcnow()
    week_start = week_end - WEEKLY_WINDOW
    moods = _moods_between(db, user, week_start, week_end)
    counts = count_moods(moods)
    return {
        "total_entries": len(moods),
        "mood_distribution": counts,
        "dominant_mood": dominant_mood(counts),
        "week_start": week_start,
        "week_end": week_end,
    }

# PUBLIC_INTERFACE
def entries_between(db: Session, user: User, start: datetime.datetime, end: datetime.datetime) -> List[JournalEntry]:
    """Owned entries created in [start, end], oldest first."""
    return (
        _owned(db, user)
        .filter(JournalEntry.created_at >= start, JournalEntry.created_at <= end)
        .order_by(JournalEntry.created_at.asc())
        .all()
    )
