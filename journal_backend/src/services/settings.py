"""Per-user settings and profile: one row each, created on first read."""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.api.schemas import ProfileUpdate, SettingsUpdate
from src.db.models import Profile, User, UserSettings
from src.services.common import apply_updates

logger = logging.getLogger(__name__)


def _get_or_create(db: Session, model, user: User):
    record = db.query(model).filter(model.user_id == user.id).first()
    if record is not None:
        return record
    record = model(user_id=user.id)
    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent request created it first
        db.rollback()
        return db.query(model).filter(model.user_id == user.id).one()
    db.refresh(record)
    logger.info("Created default %s for user %s", model.__tablename__, user.id)
    return record

# PUBLIC_INTERFACE
def get_settings(db: Session, user: User) -> UserSettings:
    return _get_or_create(db, UserSettings, user)

# PUBLIC_INTERFACE
def update_settings(db: Session, user: User, changes: SettingsUpdate) -> UserSettings:
    """Upsert: recognised fields that were sent overwrite, the rest keep their value."""
    settings = _get_or_create(db, UserSettings, user)
    apply_updates(settings, changes.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(settings)
    return settings

# PUBLIC_INTERFACE
def get_profile(db: Session, user: User) -> Profile:
    return _get_or_create(db, Profile, user)

# PUBLIC_INTERFACE
def update_profile(db: Session, user: User, changes: ProfileUpdate) -> Profile:
    profile = _get_or_create(db, Profile, user)
    apply_updates(profile, changes.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(profile)
    return profile
