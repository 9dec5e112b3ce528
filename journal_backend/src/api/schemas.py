import datetime
from typing import Annotated, Optional, List, Literal

from pydantic import (
    AfterValidator, AliasChoices, BaseModel, ConfigDict, EmailStr, Field, PlainSerializer, field_validator,
)

from src.db.models import MOODS, DEFAULT_MOOD

Mood = Literal["happy", "calm", "neutral", "sad", "anxious", "stressed"]
Theme = Literal["light", "dark"]


def to_naive_utc(value):
    if isinstance(value, datetime.datetime) and value.tzinfo is not None:
        return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return value


def _iso_utc(value: datetime.datetime) -> str:
    return value.isoformat(timespec="milliseconds") + "Z"


# Stored naive, always UTC. Aware input is shifted to UTC; output carries the Z suffix.
UTCDateTime = Annotated[
    datetime.datetime,
    AfterValidator(to_naive_utc),
    PlainSerializer(_iso_utc, return_type=str, when_used="json"),
]


def normalize_mood(value) -> str:
    """Map a collaborator-supplied mood onto the fixed set, falling back to neutral."""
    if isinstance(value, str):
        candidate = value.strip().lower()
        if candidate in MOODS:
            return candidate
    return DEFAULT_MOOD


# ==== Accounts ====

# PUBLIC_INTERFACE
class SignupRequest(BaseModel):
    """Schema for user creation (signup) input."""
    email: EmailStr
    password: str = Field(..., min_length=6)
    display_name: Optional[str] = Field(None, validation_alias=AliasChoices("display_name", "full_name"))


# PUBLIC_INTERFACE
class SigninRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


# PUBLIC_INTERFACE
class UserRead(BaseModel):
    """Public view of a user (no password hash)."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    display_name: Optional[str] = None


# PUBLIC_INTERFACE
class UserEnvelope(BaseModel):
    """Returned by /api/auth/me."""
    user: UserRead


# PUBLIC_INTERFACE
class AuthResponse(BaseModel):
    """Returned by signup and signin."""
    user: UserRead
    token: str
    token_type: str = "bearer"


# PUBLIC_INTERFACE
class ProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    full_name: Optional[str] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None


# ==== Settings ====

# PUBLIC_INTERFACE
class SettingsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    privacy_mode: bool
    kind_friend_mode: bool
    theme: Theme
    notifications_enabled: bool
    updated_at: UTCDateTime


# PUBLIC_INTERFACE
class SettingsUpdate(BaseModel):
    """Partial settings update. Unknown keys are dropped; explicit nulls are rejected."""
    privacy_mode: Optional[bool] = None
    kind_friend_mode: Optional[bool] = None
    theme: Optional[Theme] = None
    notifications_enabled: Optional[bool] = None

    @field_validator("privacy_mode", "kind_friend_mode", "theme", "notifications_enabled")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


# ==== Journal ====

# PUBLIC_INTERFACE
class JournalEntryCreate(BaseModel):
    """Input schema for creating a journal entry. Owner always comes from the token."""
    content: str = Field(..., min_length=1)
    mood: Mood
    reflection: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list)
    color_hint: Optional[str] = None
    is_reframed: bool = False
    unlock_at: Optional[UTCDateTime] = None

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content is required")
        return value

    @field_validator("suggestions", mode="before")
    @classmethod
    def suggestions_default(cls, value):
        return [] if value is None else value


# PUBLIC_INTERFACE
class JournalEntryUpdate(BaseModel):
    """Partial update. Only keys the client actually sent are applied."""
    content: Optional[str] = None
    mood: Optional[Mood] = None
    reflection: Optional[str] = None
    suggestions: Optional[List[str]] = None
    color_hint: Optional[str] = None
    is_reframed: Optional[bool] = None
    unlock_at: Optional[UTCDateTime] = None

    @field_validator("content", "mood", "suggestions", "is_reframed")
    @classmethod
    def required_not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content may not be blank")
        return value


# PUBLIC_INTERFACE
class JournalEntryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    content: str
    mood: Mood
    reflection: Optional[str] = None
    suggestions: List[str]
    color_hint: Optional[str] = None
    is_reframed: bool
    unlock_at: Optional[UTCDateTime] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime


class MoodStats(BaseModel):
    happy: int = 0
    calm: int = 0
    neutral: int = 0
    sad: int = 0
    anxious: int = 0
    stressed: int = 0


class WeeklySummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_entries: int = Field(..., alias="totalEntries")
    mood_distribution: MoodStats = Field(..., alias="moodDistribution")
    dominant_mood: Mood = Field(..., alias="dominantMood")
    week_start: UTCDateTime = Field(..., alias="weekStart")
    week_end: UTCDateTime = Field(..., alias="weekEnd")


# ==== Weekly letters ====

# PUBLIC_INTERFACE
class WeeklyLetterRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    content: str
    week_start: datetime.date
    week_end: datetime.date
    created_at: UTCDateTime


class WeeklyLetterEnvelope(BaseModel):
    letter: WeeklyLetterRead


# PUBLIC_INTERFACE
class WeekRange(BaseModel):
    """Week to write a letter for; both ends inclusive."""
    model_config = ConfigDict(populate_by_name=True)

    week_start: UTCDateTime = Field(..., alias="weekStart")
    week_end: UTCDateTime = Field(..., alias="weekEnd")


# ==== AI ====

# PUBLIC_INTERFACE
class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str
    kind_friend_mode: Optional[bool] = Field(None, alias="isKindFriendMode")


# PUBLIC_INTERFACE
class AnalysisResult(BaseModel):
    """Structured reply from the analysis collaborator."""
    model_config = ConfigDict(populate_by_name=True)

    mood: Mood
    reflection: str
    suggestions: List[str] = Field(..., min_length=3, max_length=3)
    color_hint: str = Field(..., alias="colorHint")

    @field_validator("reflection", "color_hint")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("mood", mode="before")
    @classmethod
    def known_mood(cls, value):
        return normalize_mood(value)

    @field_validator("suggestions", mode="before")
    @classmethod
    def at_most_three(cls, value):
        if isinstance(value, list):
            return value[:3]
        return value
