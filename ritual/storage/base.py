from datetime import date
from typing import List, Optional, Protocol

from ritual.schemas.notifications import NotificationPreferences, ScheduledNotification
from ritual.schemas.recommendations import DailyRecommendations


class RecommendationsStore(Protocol):
    async def get_daily_recommendations(self, user_id: str, day: date) -> Optional[DailyRecommendations]:
        ...

    async def upsert_daily_recommendations(self, record: DailyRecommendations) -> DailyRecommendations:
        """Insert or replace the record for (user_id, date); returns what was stored."""
        ...


class ScheduleStore(Protocol):
    async def list(self, user_id: str) -> List[ScheduledNotification]:
        ...

    async def put(self, record: ScheduledNotification) -> None:
        ...

    async def remove(self, user_id: str, schedule_id: str) -> None:
        ...

    async def clear(self, user_id: str) -> None:
        ...

    async def queue_pending(self, preferences: NotificationPreferences) -> None:
        ...

    async def take_pending(self, user_id: str) -> Optional[NotificationPreferences]:
        ...

    async def pending_user_ids(self) -> List[str]:
        ...


class PreferencesStore(Protocol):
    async def get(self, user_id: str) -> Optional[NotificationPreferences]:
        ...

    async def put(self, preferences: NotificationPreferences) -> None:
        ...

    async def user_ids(self) -> List[str]:
        ...


def with_record_id(record: DailyRecommendations, record_id: str) -> DailyRecommendations:
    if record.id == record_id:
        return record
    outfits = [o.model_copy(update={"daily_recommendation_id": record_id}) for o in record.recommendations]
    return record.model_copy(update={"id": record_id, "recommendations": outfits})
