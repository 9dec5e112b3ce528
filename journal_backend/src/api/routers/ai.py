from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.api.core import get_current_user
from src.api.errors import InvalidInput
from src.api.schemas import AnalysisResult, AnalyzeRequest, WeeklyLetterEnvelope, WeeklyLetterRead, WeekRange
from src.db.db import get_db
from src.db.models import User
from src.services import letters
from src.services.analysis import AnalysisClient, get_analysis_client
from src.services.settings import get_settings

router = APIRouter(prefix="/api/ai", tags=["ai"], dependencies=[Depends(get_current_user)])


# PUBLIC_INTERFACE
@router.post("/analyze-entry", response_model=AnalysisResult, summary="Analyse an entry")
def analyze_entry(payload: AnalyzeRequest, db: Session = Depends(get_db),
                  current_user: User = Depends(get_current_user),
                  client: AnalysisClient = Depends(get_analysis_client)):
    """
    Mood, reflection, suggestions and colour hint for a piece of text.

    Nothing is stored; the client saves the result through ``POST /api/journal``.
    When ``isKindFriendMode`` is omitted the user's kind-friend setting decides.
    """
    if not payload.content.strip():
        raise InvalidInput("Content is required")
    kind_friend = payload.kind_friend_mode
    if kind_friend is None:
        kind_friend = get_settings(db, current_user).kind_friend_mode
    return client.analyze(payload.content, kind_friend=kind_friend)


# PUBLIC_INTERFACE
@router.post("/generate-weekly-letter", response_model=WeeklyLetterEnvelope, summary="Write a weekly letter")
def generate_weekly_letter(payload: WeekRange, db: Session = Depends(get_db),
                           current_user: User = Depends(get_current_user),
                           client: AnalysisClient = Depends(get_analysis_client)):
    letter = letters.generate_letter(db, current_user, client, payload.week_start, payload.week_end)
    return WeeklyLetterEnvelope(letter=WeeklyLetterRead.model_validate(letter))
