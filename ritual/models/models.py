from datetime import date, datetime, time

from sqlalchemy import JSON, Boolean, Date, DateTime, String, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from ritual.core.db import Base


class DailyRecommendationRecord(Base):
    __tablename__ = "daily_recommendation"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_daily_recommendation_user_date"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    date: Mapped[date] = mapped_column(Date)
    # outfits, weather context and degraded sources as serialized by the pydantic model
    payload: Mapped[dict] = mapped_column(JSON)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class ScheduledNotificationRecord(Base):
    __tablename__ = "scheduled_notification"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    kind: Mapped[str] = mapped_column(String(32))
    scheduled_time: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    timezone: Mapped[str] = mapped_column(String(64))
    payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class NotificationPreferencesRecord(Base):
    __tablename__ = "notification_preferences"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    preferred_time: Mapped[time] = mapped_column(Time)
    timezone: Mapped[str] = mapped_column(String(64), default="UTC")
    enable_weekends: Mapped[bool] = mapped_column(Boolean, default=True)
    enable_quick_options: Mapped[bool] = mapped_column(Boolean, default=True)
    confidence_note_style: Mapped[str] = mapped_column(String(32), default="encouraging")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class PendingNotificationRecord(Base):
    """Daily-mirror requests that exhausted their retries, replayed by the daily tick."""

    __tablename__ = "pending_notification"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    preferences: Mapped[dict] = mapped_column(JSON)
    queued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
