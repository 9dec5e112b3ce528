import datetime
import logging
from typing import List

from sqlalchemy.orm import Session

from src.api.errors import InvalidInput, NotFound
from src.db.models import User, WeeklyLetter
from src.services.analysis import AnalysisClient
from src.services.common import paginate
from src.services.journal import entries_between

logger = logging.getLogger(__name__)


def _owned(db: Session, user: User):
    return db.query(WeeklyLetter).filter(WeeklyLetter.user_id == user.id)

# PUBLIC_INTERFACE
def list_letters(db: Session, user: User, page: int = 0, page_size: int = 10) -> List[WeeklyLetter]:
    """Most recent week first."""
    query = _owned(db, user).order_by(WeeklyLetter.week_start.desc(), WeeklyLetter.created_at.desc())
    return paginate(query, page, page_size)

# PUBLIC_INTERFACE
def get_letter(db: Session, user: User, letter_id: str) -> WeeklyLetter:
    letter = _owned(db, user).filter(WeeklyLetter.id == letter_id).first()
    if letter is None:
        raise NotFound("Letter not found")
    return letter

# PUBLIC_INTERFACE
def get_letter_for_week(db: Session, user: User, week_start: datetime.date, week_end: datetime.date) -> WeeklyLetter:
    """Latest letter written for exactly this week."""
    letter = (
        _owned(db, user)
        .filter(WeeklyLetter.week_start == week_start, WeeklyLetter.week_end == week_end)
        .order_by(WeeklyLetter.created_at.desc())
        .first()
    )
    if letter is None:
        raise NotFound("Letter not found")
    return letter

# PUBLIC_INTERFACE
def delete_letter(db: Session, user: User, letter_id: str) -> None:
    letter = get_letter(db, user, letter_id)
    db.delete(letter)
    db.commit()

# PUBLIC_INTERFACE
def generate_letter(db: Session, user: User, client: AnalysisClient,
                    week_start: datetime.datetime, week_end: datetime.datetime) -> WeeklyLetter:
    """
    Write and store a letter covering entries created in [week_start, week_end].

    A week with no entries is NotFound. The letter row is only added once the
    collaborator has answered, so a failed call leaves nothing behind.
    """
    if week_start > week_end:
        raise InvalidInput("weekStart must not be after weekEnd")

    entries = entries_between(db, user, week_start, week_end)
    if not entries:
        raise NotFound("No entries found for this week")

    content = client.write_weekly_letter(entries)

    letter = WeeklyLetter(
        user_id=user.id,
        content=content,
        week_start=week_start.date(),
        week_end=week_end.date(),
    )
    db.add(letter)
    db.commit()
    db.refresh(letter)
    logger.info("Wrote weekly letter %s for user %s from %d entries", letter.id, user.id, len(entries))
    return letter
