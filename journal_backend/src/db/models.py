import datetime
import uuid

from sqlalchemy import Column, String, ForeignKey, DateTime, Date, Text, Boolean, JSON, Index
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()

# Order matters: stats are emitted in this order and weekly summary ties resolve to the earliest mood.
MOODS = ("happy", "calm", "neutral", "sad", "anxious", "stressed")
DEFAULT_MOOD = "neutral"
THEMES = ("light", "dark")


def utcnow() -> datetime.datetime:
    """Current UTC time as a naive datetime, the form every column stores."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


# PUBLIC_INTERFACE
class User(Base):
    """
    Credential record. The password hash never leaves this table.
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(320), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    display_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    profile = relationship("Profile", back_populates="owner", uselist=False, cascade="all, delete-orphan")
    settings = relationship("UserSettings", back_populates="owner", uselist=False, cascade="all, delete-orphan")
    entries = relationship("JournalEntry", back_populates="owner", cascade="all, delete-orphan")
    letters = relationship("WeeklyLetter", back_populates="owner", cascade="all, delete-orphan")


# PUBLIC_INTERFACE
class Profile(Base):
    """One profile per user, created at signup."""
    __tablename__ = "profiles"
    __updatable__ = ("full_name",)

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    full_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    owner = relationship("User", back_populates="profile")


# PUBLIC_INTERFACE
class UserSettings(Base):
    """Zero or one settings row per user; readers create the default row on demand."""
    __tablename__ = "user_settings"
    __updatable__ = ("privacy_mode", "kind_friend_mode", "theme", "notifications_enabled")

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    privacy_mode = Column(Boolean, default=False, nullable=False)
    kind_friend_mode = Column(Boolean, default=False, nullable=False)
    theme = Column(String(10), default="light", nullable=False)
    notifications_enabled = Column(Boolean, default=True, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    owner = relationship("User", back_populates="settings")


# PUBLIC_INTERFACE
class JournalEntry(Base):
    """
    Database model for a journal entry.

    ``unlock_at`` turns the entry into a time capsule: it is left out of the
    unlocked view until that instant, but stays readable by id and in the
    regular listing.
    """
    __tablename__ = "journal_entries"
    __updatable__ = ("content", "mood", "reflection", "suggestions", "color_hint", "is_reframed", "unlock_at")

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    mood = Column(String(16), nullable=False)
    reflection = Column(Text, nullable=True)
    suggestions = Column(JSON, default=list, nullable=False)
    color_hint = Column(String, nullable=True)
    is_reframed = Column(Boolean, default=False, nullable=False)
    unlock_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    owner = relationship("User", back_populates="entries")

    __table_args__ = (
        Index("ix_journal_entries_user_created", "user_id", "created_at"),
        Index("ix_journal_entries_user_unlock", "user_id", "unlock_at"),
    )


# PUBLIC_INTERFACE
class WeeklyLetter(Base):
    """Letter from the user's future self; only ever written by letter generation."""
    __tablename__ = "weekly_letters"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    week_start = Column(Date, nullable=False)
    week_end = Column(Date, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    owner = relationship("User", back_populates="letters")

    __table_args__ = (
        Index("ix_weekly_letters_user_week", "user_id", "week_start"),
    )
