"""PostgreSQL-backed stores. Each call opens its own session from the shared sessionmaker."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ritual.core.db import get_sessionmaker
from ritual.models.models import (
    DailyRecommendationRecord,
    NotificationPreferencesRecord,
    PendingNotificationRecord,
    ScheduledNotificationRecord,
)
from ritual.schemas.notifications import NotificationPreferences, ScheduledNotification
from ritual.schemas.recommendations import DailyRecommendations
from ritual.storage.base import with_record_id

_PAYLOAD_FIELDS = {"recommendations", "weather_context", "degraded_sources"}


class _SqlStore:
    def __init__(self, sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None) -> None:
        self._sessionmaker = sessionmaker

    def session(self) -> AsyncSession:
        return (self._sessionmaker or get_sessionmaker())()


class SqlRecommendationsStore(_SqlStore):
    @staticmethod
    def _to_model(row: DailyRecommendationRecord) -> DailyRecommendations:
        return DailyRecommendations.model_validate(
            {
                "id": row.id,
                "user_id": row.user_id,
                "date": row.date,
                "generated_at": row.generated_at,
                **(row.payload or {}),
            }
        )

    async def get_daily_recommendations(self, user_id: str, day: date) -> Optional[DailyRecommendations]:
        async with self.session() as session:
            res = await session.execute(
                select(DailyRecommendationRecord).where(
                    DailyRecommendationRecord.user_id == user_id,
                    DailyRecommendationRecord.date == day,
                )
            )
            row = res.scalar_one_or_none()
            return self._to_model(row) if row else None

    async def upsert_daily_recommendations(self, record: DailyRecommendations) -> DailyRecommendations:
        payload = record.model_dump(mode="json", include=_PAYLOAD_FIELDS)
        stmt = insert(DailyRecommendationRecord).values(
            id=record.id,
            user_id=record.user_id,
            date=record.date,
            payload=payload,
            generated_at=record.generated_at,
        )
        # the row keeps its original id; only the content is replaced
        stmt = stmt.on_conflict_do_update(
            constraint="uq_daily_recommendation_user_date",
            set_={"payload": stmt.excluded.payload, "generated_at": stmt.excluded.generated_at},
        ).returning(DailyRecommendationRecord.id)
        async with self.session() as session:
            res = await session.execute(stmt)
            stored_id = res.scalar_one()
            await session.commit()
        return with_record_id(record, stored_id)


class SqlScheduleStore(_SqlStore):
    async def list(self, user_id: str) -> List[ScheduledNotification]:
        async with self.session() as session:
            res = await session.execute(
                select(ScheduledNotificationRecord)
                .where(ScheduledNotificationRecord.user_id == user_id)
                .order_by(ScheduledNotificationRecord.scheduled_time)
            )
            return [
                ScheduledNotification(
                    id=r.id,
                    user_id=r.user_id,
                    kind=r.kind,
                    scheduled_time=r.scheduled_time,
                    timezone=r.timezone,
                    payload=r.payload or {},
                )
                for r in res.scalars().all()
            ]

    async def put(self, record: ScheduledNotification) -> None:
        values = record.model_dump(mode="json", exclude={"scheduled_time"})
        values["scheduled_time"] = record.scheduled_time
        stmt = insert(ScheduledNotificationRecord).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[ScheduledNotificationRecord.id],
            set_={k: stmt.excluded[k] for k in ("kind", "scheduled_time", "timezone", "payload")},
        )
        async with self.session() as session:
            await session.execute(stmt)
            await session.commit()

    async def remove(self, user_id: str, schedule_id: str) -> None:
        async with self.session() as session:
            await session.execute(
                delete(ScheduledNotificationRecord).where(
                    ScheduledNotificationRecord.user_id == user_id,
                    ScheduledNotificationRecord.id == schedule_id,
                )
            )
            await session.commit()

    async def clear(self, user_id: str) -> None:
        async with self.session() as session:
            await session.execute(delete(ScheduledNotificationRecord).where(ScheduledNotificationRecord.user_id == user_id))
            await session.commit()

    async def queue_pending(self, preferences: NotificationPreferences) -> None:
        blob = preferences.model_dump(mode="json")
        stmt = insert(PendingNotificationRecord).values(user_id=preferences.user_id, preferences=blob)
        stmt = stmt.on_conflict_do_update(index_elements=[PendingNotificationRecord.user_id], set_={"preferences": blob})
        async with self.session() as session:
            await session.execute(stmt)
            await session.commit()

    async def take_pending(self, user_id: str) -> Optional[NotificationPreferences]:
        async with self.session() as session:
            res = await session.execute(
                delete(PendingNotificationRecord)
                .where(PendingNotificationRecord.user_id == user_id)
                .returning(PendingNotificationRecord.preferences)
            )
            blob = res.scalar_one_or_none()
            await session.commit()
        return NotificationPreferences.model_validate(blob) if blob else None

    async def pending_user_ids(self) -> List[str]:
        async with self.session() as session:
            res = await session.execute(select(PendingNotificationRecord.user_id))
            return [r[0] for r in res.fetchall()]


class SqlPreferencesStore(_SqlStore):
    async def get(self, user_id: str) -> Optional[NotificationPreferences]:
        async with self.session() as session:
            row = await session.get(NotificationPreferencesRecord, user_id)
            if row is None:
                return None
            return NotificationPreferences(
                user_id=row.user_id,
                preferred_time=row.preferred_time,
                timezone=row.timezone,
                enable_weekends=row.enable_weekends,
                enable_quick_options=row.enable_quick_options,
                confidence_note_style=row.confidence_note_style,
            )

    async def put(self, preferences: NotificationPreferences) -> None:
        values = preferences.model_dump()
        stmt = insert(NotificationPreferencesRecord).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[NotificationPreferencesRecord.user_id],
            set_={k: v for k, v in values.items() if k != "user_id"},
        )
        async with self.session() as session:
            await session.execute(stmt)
            await session.commit()

    async def user_ids(self) -> List[str]:
        async with self.session() as session:
            res = await session.execute(select(NotificationPreferencesRecord.user_id))
            return [r[0] for r in res.fetchall()]
