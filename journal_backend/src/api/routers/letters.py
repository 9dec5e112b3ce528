import datetime
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from src.api.core import get_current_user
from src.api.routers.journal import PageParams
from src.api.schemas import WeeklyLetterEnvelope, WeeklyLetterRead, WeekRange, to_naive_utc
from src.db.db import get_db
from src.db.models import User
from src.services import letters
from src.services.analysis import AnalysisClient, get_analysis_client

router = APIRouter(prefix="/api/weekly-letters", tags=["weekly letters"], dependencies=[Depends(get_current_user)])


# PUBLIC_INTERFACE
@router.get("", response_model=List[WeeklyLetterRead], summary="List my weekly letters")
def list_letters(paging: PageParams = Depends(), db: Session = Depends(get_db),
                 current_user: User = Depends(get_current_user)):
    """Most recent week first."""
    return letters.list_letters(db, current_user, paging.page, paging.page_size)


# PUBLIC_INTERFACE
@router.post("", response_model=WeeklyLetterEnvelope, summary="Write a letter for a week")
def create_letter(payload: WeekRange, db: Session = Depends(get_db),
                  current_user: User = Depends(get_current_user),
                  client: AnalysisClient = Depends(get_analysis_client)):
    """Same as ``POST /api/ai/generate-weekly-letter``."""
    letter = letters.generate_letter(db, current_user, client, payload.week_start, payload.week_end)
    return WeeklyLetterEnvelope(letter=WeeklyLetterRead.model_validate(letter))


# PUBLIC_INTERFACE
@router.get("/week", response_model=WeeklyLetterRead, summary="Letter for an exact week")
def letter_for_week(
    week_start: datetime.datetime = Query(..., alias="weekStart"),
    week_end: datetime.datetime = Query(..., alias="weekEnd"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return letters.get_letter_for_week(
        db, current_user, to_naive_utc(week_start).date(), to_naive_utc(week_end).date()
    )


# PUBLIC_INTERFACE
@router.get("/{letter_id}", response_model=WeeklyLetterRead, summary="Get one letter")
def get_letter(letter_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return letters.get_letter(db, current_user, letter_id)


# PUBLIC_INTERFACE
@router.delete("/{letter_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a letter")
def delete_letter(letter_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    letters.delete_letter(db, current_user, letter_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
