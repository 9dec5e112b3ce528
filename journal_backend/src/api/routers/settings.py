from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.api.core import get_current_user
from src.api.schemas import ProfileRead, ProfileUpdate, SettingsRead, SettingsUpdate
from src.db.db import get_db
from src.db.models import User
from src.services import settings as settings_service

router = APIRouter(prefix="/api", tags=["settings"], dependencies=[Depends(get_current_user)])


# PUBLIC_INTERFACE
@router.get("/settings", response_model=SettingsRead, summary="Get my settings")
def read_settings(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Returns the defaults, stored on the spot, if the user has none yet."""
    return settings_service.get_settings(db, current_user)


# PUBLIC_INTERFACE
@router.put("/settings", response_model=SettingsRead, summary="Update my settings")
def write_settings(payload: SettingsUpdate, db: Session = Depends(get_db),
                   current_user: User = Depends(get_current_user)):
    return settings_service.update_settings(db, current_user, payload)


# PUBLIC_INTERFACE
@router.get("/profile", response_model=ProfileRead, tags=["profile"], summary="Get my profile")
def read_profile(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return settings_service.get_profile(db, current_user)


# PUBLIC_INTERFACE
@router.put("/profile", response_model=ProfileRead, tags=["profile"], summary="Update my profile")
def write_profile(payload: ProfileUpdate, db: Session = Depends(get_db),
                  current_user: User = Depends(get_current_user)):
    return settings_service.update_profile(db, current_user, payload)
