"""Process-local stores for tests and single-process runs."""

import asyncio
from datetime import date
from typing import Dict, List, Optional, Tuple

from ritual.schemas.notifications import NotificationPreferences, ScheduledNotification
from ritual.schemas.recommendations import DailyRecommendations
from ritual.storage.base import with_record_id


class InMemoryRecommendationsStore:
    def __init__(self) -> None:
        self._records: Dict[Tuple[str, date], DailyRecommendations] = {}
        self._lock = asyncio.Lock()

    async def get_daily_recommendations(self, user_id: str, day: date) -> Optional[DailyRecommendations]:
        return self._records.get((user_id, day))

    async def upsert_daily_recommendations(self, record: DailyRecommendations) -> DailyRecommendations:
        key = (record.user_id, record.date)
        async with self._lock:
            existing = self._records.get(key)
            if existing is not None:
                record = with_record_id(record, existing.id)
            self._records[key] = record
        return record

    def count(self) -> int:
        return len(self._records)


class InMemoryScheduleStore:
    def __init__(self) -> None:
        self._records: Dict[str, Dict[str, ScheduledNotification]] = {}
        self._pending: Dict[str, NotificationPreferences] = {}
        self._lock = asyncio.Lock()

    async def list(self, user_id: str) -> List[ScheduledNotification]:
        return list(self._records.get(user_id, {}).values())

    async def put(self, record: ScheduledNotification) -> None:
        async with self._lock:
            self._records.setdefault(record.user_id, {})[record.id] = record

    async def remove(self, user_id: str, schedule_id: str) -> None:
        async with self._lock:
            self._records.get(user_id, {}).pop(schedule_id, None)

    async def clear(self, user_id: str) -> None:
        async with self._lock:
            self._records.pop(user_id, None)

    async def queue_pending(self, preferences: NotificationPreferences) -> None:
        async with self._lock:
            self._pending[preferences.user_id] = preferences

    async def take_pending(self, user_id: str) -> Optional[NotificationPreferences]:
        async with self._lock:
            return self._pending.pop(user_id, None)

    async def pending_user_ids(self) -> List[str]:
        return list(self._pending)


class InMemoryPreferencesStore:
    def __init__(self, preferences: Optional[Dict[str, NotificationPreferences]] = None) -> None:
        self._prefs: Dict[str, NotificationPreferences] = dict(preferences or {})

    async def get(self, user_id: str) -> Optional[NotificationPreferences]:
        return self._prefs.get(user_id)

    async def put(self, preferences: NotificationPreferences) -> None:
        self._prefs[preferences.user_id] = preferences

    async def user_ids(self) -> List[str]:
        return list(self._prefs)
