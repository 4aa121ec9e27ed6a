from datetime import date, datetime, time
from typing import Any, Dict, List, Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

ConfidenceNoteStyle = Literal["encouraging", "witty", "poetic"]
NotificationKind = Literal["daily_mirror", "feedback_prompt", "re_engagement"]


def validate_timezone(value: str) -> str:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"unknown timezone: {value}") from e
    return value


class NotificationPreferences(BaseModel):
    user_id: str
    preferred_time: time = time(6, 0)
    timezone: str = "UTC"
    enable_weekends: bool = True
    enable_quick_options: bool = True
    confidence_note_style: ConfidenceNoteStyle = "encouraging"

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        return validate_timezone(v)

    @field_validator("confidence_note_style", mode="before")
    @classmethod
    def _friendly_is_encouraging(cls, v: Any) -> Any:
        # older clients still send "friendly"
        return "encouraging" if v == "friendly" else v

    @classmethod
    def defaults(cls, user_id: str, timezone: str = "UTC") -> "NotificationPreferences":
        return cls(user_id=user_id, timezone=timezone)


class ScheduledNotification(BaseModel):
    id: str
    user_id: str
    kind: NotificationKind
    scheduled_time: datetime
    timezone: str
    payload: Dict[str, Any] = Field(default_factory=dict)


class EngagementHistory(BaseModel):
    user_id: Optional[str] = None
    total_days_active: int = 0
    streak_days: int = 0
    average_rating: float = 0.0
    last_active_date: Optional[date] = None
    # Raw interaction instants; entries that cannot be read as a time are skipped.
    preferred_interaction_times: List[Any] = Field(default_factory=list)
    average_open_time: Optional[Any] = None


class PreferencesIn(BaseModel):
    preferred_time: time = time(6, 0)
    timezone: str = "UTC"
    enable_weekends: bool = True
    enable_quick_options: bool = True
    confidence_note_style: ConfidenceNoteStyle = "encouraging"

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        return validate_timezone(v)

    @field_validator("confidence_note_style", mode="before")
    @classmethod
    def _friendly_is_encouraging(cls, v: Any) -> Any:
        return "encouraging" if v == "friendly" else v

    def for_user(self, user_id: str) -> NotificationPreferences:
        return NotificationPreferences(user_id=user_id, **self.model_dump())


class FeedbackPromptIn(BaseModel):
    outfit_id: str
    delay_hours: float = Field(default=1, gt=0, le=48)


class ReEngagementIn(BaseModel):
    days_since_last_use: int = Field(ge=0)


class TimezoneChangeIn(BaseModel):
    timezone: str

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        return validate_timezone(v)


class PushTokenIn(BaseModel):
    token: str = Field(min_length=1)


class NotificationOut(BaseModel):
    id: str
    kind: NotificationKind
    scheduled_time: datetime
    timezone: str
    title: Optional[str] = None
    body: Optional[str] = None


class NotificationsOut(BaseModel):
    items: List[NotificationOut]


class NotificationStatusOut(BaseModel):
    enabled: bool


class OptimalTimeOut(BaseModel):
    time: time
