"""Timezone-aware scheduling of ritual pushes.

Every schedule lives in two places: the push transport, which fires it, and the
schedule store, which lets us find and cancel it later. Replacing a schedule
always cancels the old registration before making the new one, so a user has at
most one live daily mirror at a time.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from datetime import datetime, time, timedelta, timezone
from typing import Awaitable, Callable, List, Optional, Tuple, TypeVar

from ritual.core.config import settings
from ritual.core.errors import NotificationSchedulingFailed, OperationContext, RetryExhausted
from ritual.core.resilience import RetryPolicy, Sleep, execute_with_retry
from ritual.notifications import messages
from ritual.notifications.providers.base import PushTransport
from ritual.notifications.timing import next_fire_time, optimal_time
from ritual.notifications.types import PushPayload
from ritual.schemas.notifications import (
    EngagementHistory,
    NotificationKind,
    NotificationPreferences,
    ScheduledNotification,
    validate_timezone,
)
from ritual.storage.base import PreferencesStore, ScheduleStore

T = TypeVar("T")

logger = logging.getLogger("ritual.notifications.scheduler")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationScheduler:
    def __init__(
        self,
        transport: PushTransport,
        schedules: ScheduleStore,
        preferences: PreferencesStore,
        *,
        clock: Callable[[], datetime] = _utcnow,
        policy: Optional[RetryPolicy] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.transport = transport
        self.schedules = schedules
        self.preferences = preferences
        self.clock = clock
        self.policy = policy or RetryPolicy.from_settings(max_retries=settings.SCHEDULE_MAX_RETRIES)
        self._sleep = sleep
        self._locks: "weakref.WeakValueDictionary[Tuple[str, str], asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock(self, user_id: str, kind: NotificationKind) -> asyncio.Lock:
        lock = self._locks.get((user_id, kind))
        if lock is None:
            lock = asyncio.Lock()
            self._locks[(user_id, kind)] = lock
        return lock

    async def _retry(self, operation: Callable[[], Awaitable[T]], name: str, user_id: str) -> T:
        context = OperationContext(service="notification", operation=name, user_id=user_id)
        try:
            return await execute_with_retry(operation, context, self.policy, sleep=self._sleep)
        except RetryExhausted as e:
            logger.error("notifications: giving up %s reason=%r", context.describe(), e.last_error)
            raise NotificationSchedulingFailed(e.context, e.last_error, e.attempts) from e.last_error

    async def _user_preferences(self, user_id: str) -> NotificationPreferences:
        try:
            prefs = await self.preferences.get(user_id)
        except Exception as e:
            logger.warning("notifications: preferences unavailable user_id=%s reason=%r", user_id, e)
            prefs = None
        return prefs or NotificationPreferences.defaults(user_id, settings.DEFAULT_TIMEZONE)

    async def _stored_preferences(self, user_id: str, name: str) -> NotificationPreferences:
        """Preferences for a flow that saves them back; a failed read raises instead of defaulting."""
        prefs = await self._retry(lambda: self.preferences.get(user_id), name, user_id)
        return prefs or NotificationPreferences.defaults(user_id, settings.DEFAULT_TIMEZONE)

    async def _register(self, payload: PushPayload, fire_at: Optional[datetime], tz: str) -> ScheduledNotification:
        schedule_id = await self.transport.schedule(payload, fire_at)
        record = ScheduledNotification(
            id=schedule_id,
            user_id=payload.user_id,
            kind=payload.kind,
            scheduled_time=fire_at or self.clock(),
            timezone=tz,
            payload=payload.to_dict(),
        )
        try:
            await self.schedules.put(record)
        except Exception:
            # an untracked registration could never be cancelled
            try:
                await self.transport.cancel(schedule_id)
            except Exception as e:
                logger.warning("notifications: rollback cancel failed id=%s reason=%r", schedule_id, e)
            raise
        return record

    async def _cancel_kind(self, user_id: str, kind: NotificationKind) -> int:
        records = [r for r in await self.schedules.list(user_id) if r.kind == kind]
        for r in records:
            await self.transport.cancel(r.id)
            await self.schedules.remove(user_id, r.id)
        return len(records)

    async def schedule_daily_mirror(self, user_id: str, preferences: NotificationPreferences) -> ScheduledNotification:
        """Replace the user's daily mirror with one at their preferred local time.

        On failure the request is queued for the next daily tick and
        :class:`NotificationSchedulingFailed` is raised.
        """
        if preferences.user_id != user_id:
            preferences = preferences.model_copy(update={"user_id": user_id})

        async def replace() -> ScheduledNotification:
            replaced = await self._cancel_kind(user_id, "daily_mirror")
            fire_at = next_fire_time(
                preferences.preferred_time, preferences.timezone, preferences.enable_weekends, self.clock()
            )
            payload = messages.daily_mirror(user_id, {"quick_options": preferences.enable_quick_options})
            record = await self._register(payload, fire_at, preferences.timezone)
            await self.preferences.put(preferences)
            logger.info(
                "notifications: daily mirror scheduled user_id=%s fire_at=%s replaced=%s",
                user_id,
                fire_at.isoformat(),
                replaced,
            )
            return record

        async with self._lock(user_id, "daily_mirror"):
            try:
                return await self._retry(replace, "schedule_daily_mirror", user_id)
            except NotificationSchedulingFailed:
                await self._queue_pending(preferences)
                raise

    async def _queue_pending(self, preferences: NotificationPreferences) -> None:
        try:
            await self.schedules.queue_pending(preferences)
        except Exception as e:
            logger.error("notifications: could not queue pending request user_id=%s reason=%r", preferences.user_id, e)

    async def schedule_feedback_prompt(self, user_id: str, outfit_id: str, delay_hours: float = 1) -> ScheduledNotification:
        prefs = await self._user_preferences(user_id)
        fire_at = self.clock() + timedelta(hours=delay_hours)
        payload = messages.feedback_prompt(user_id, outfit_id)
        record = await self._retry(lambda: self._register(payload, fire_at, prefs.timezone), "schedule_feedback_prompt", user_id)
        logger.info("notifications: feedback prompt scheduled user_id=%s outfit_id=%s fire_at=%s", user_id, outfit_id, fire_at.isoformat())
        return record

    async def send_re_engagement_message(self, user_id: str, days_since_last_use: int) -> PushPayload:
        payload = messages.re_engagement(user_id, days_since_last_use)
        await self._retry(lambda: self.transport.schedule(payload, None), "send_re_engagement_message", user_id)
        logger.info(
            "notifications: re-engagement sent user_id=%s days=%s tier=%s",
            user_id,
            days_since_last_use,
            payload.data["tier"],
        )
        return payload

    async def handle_timezone_change(self, user_id: str, new_timezone: str) -> ScheduledNotification:
        validate_timezone(new_timezone)
        prefs = await self._stored_preferences(user_id, "handle_timezone_change")
        logger.info("notifications: timezone change user_id=%s from=%s to=%s", user_id, prefs.timezone, new_timezone)
        return await self.schedule_daily_mirror(user_id, prefs.model_copy(update={"timezone": new_timezone}))

    async def cancel_scheduled_notifications(self, user_id: str) -> int:
        async def cancel_all() -> int:
            records = await self.schedules.list(user_id)
            for r in records:
                await self.transport.cancel(r.id)
            await self.schedules.clear(user_id)
            await self.schedules.take_pending(user_id)
            return len(records)

        async with self._lock(user_id, "daily_mirror"):
            count = await self._retry(cancel_all, "cancel_scheduled_notifications", user_id)
        logger.info("notifications: cancelled user_id=%s count=%s", user_id, count)
        return count

    async def are_notifications_enabled(self) -> bool:
        try:
            return bool(await self.transport.has_permission())
        except Exception as e:
            logger.warning("notifications: permission check failed reason=%r", e)
            return False

    async def optimize_notification_timing(self, user_id: str, history: Optional[EngagementHistory]) -> time:
        prefs = await self._user_preferences(user_id)
        return optimal_time(history, prefs.timezone)

    async def list_scheduled(self, user_id: str) -> List[ScheduledNotification]:
        return await self.schedules.list(user_id)

    async def retry_pending(self, user_id: str) -> Optional[ScheduledNotification]:
        """Replay a queued daily-mirror request. Re-queues and raises if it fails again."""
        prefs = await self.schedules.take_pending(user_id)
        if prefs is None:
            return None
        logger.info("notifications: replaying pending daily mirror user_id=%s", user_id)
        return await self.schedule_daily_mirror(user_id, prefs)

    async def handle_fired(self, user_id: str, schedule_id: str, kind: NotificationKind) -> Optional[ScheduledNotification]:
        """Forget a delivered push; a daily mirror rolls over to its next occurrence."""
        await self.schedules.remove(user_id, schedule_id)
        if kind != "daily_mirror":
            return None
        prefs = await self._stored_preferences(user_id, "handle_fired")
        return await self.schedule_daily_mirror(user_id, prefs)
