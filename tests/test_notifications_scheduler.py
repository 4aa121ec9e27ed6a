from datetime import datetime, time, timedelta, timezone

import pytest

from ritual.core.errors import NotificationSchedulingFailed, RetryExhausted
from ritual.notifications.providers import LogPushTransport
from ritual.schemas.notifications import EngagementHistory, NotificationPreferences
from ritual.storage.memory import InMemoryPreferencesStore, InMemoryScheduleStore

from fixtures import FAST_RETRY, FIXED_NOW, FailingStore, build_scheduler


class FlakyTransport(LogPushTransport):
    def __init__(self, failures=None):
        super().__init__()
        self.failures = failures

    async def schedule(self, payload, fire_at):
        if self.failures is None or self.failures > 0:
            if self.failures is not None:
                self.failures -= 1
            raise ConnectionError("push service unavailable")
        return await super().schedule(payload, fire_at)


class NoPermissionTransport(LogPushTransport):
    async def has_permission(self):
        raise RuntimeError("permission api crashed")


def prefs(**overrides) -> NotificationPreferences:
    values = {"user_id": "u1", "preferred_time": time(7, 0), "timezone": "Europe/London"}
    values.update(overrides)
    return NotificationPreferences(**values)


@pytest.fixture
def transport():
    return LogPushTransport()


@pytest.fixture
def schedules():
    return InMemoryScheduleStore()


@pytest.fixture
def preferences():
    return InMemoryPreferencesStore()


@pytest.fixture
def scheduler(transport, schedules, preferences, clock, sleep):
    return build_scheduler(transport=transport, schedules=schedules, preferences=preferences, clock=clock, sleep=sleep)


@pytest.mark.asyncio
async def test_daily_mirror_is_scheduled_at_local_preferred_time(scheduler, transport, schedules, preferences):
    record = await scheduler.schedule_daily_mirror("u1", prefs())
    # FIXED_NOW is 12:00 in London, so 07:00 has passed
    assert record.scheduled_time.astimezone(timezone.utc) == datetime(2026, 3, 11, 7, 0, tzinfo=timezone.utc)
    assert record.kind == "daily_mirror"
    assert record.timezone == "Europe/London"
    assert [r.id for r in await schedules.list("u1")] == [record.id]
    assert len(transport.pending_for("u1", "daily_mirror")) == 1
    assert await preferences.get("u1") == prefs()


@pytest.mark.asyncio
async def test_scheduling_twice_leaves_one_active_schedule(scheduler, transport, schedules):
    first = await scheduler.schedule_daily_mirror("u1", prefs())
    second = await scheduler.schedule_daily_mirror("u1", prefs(preferred_time=time(8, 15)))
    active = transport.pending_for("u1", "daily_mirror")
    assert [r.id for r in active] == [second.id]
    assert first.id in transport.cancelled
    assert [r.id for r in await schedules.list("u1")] == [second.id]


@pytest.mark.asyncio
async def test_concurrent_scheduling_still_leaves_one(scheduler, transport):
    import asyncio

    await asyncio.gather(*(scheduler.schedule_daily_mirror("u1", prefs()) for _ in range(5)))
    assert len(transport.pending_for("u1", "daily_mirror")) == 1


@pytest.mark.asyncio
async def test_replacing_daily_mirror_keeps_feedback_prompts(scheduler, transport):
    await scheduler.schedule_feedback_prompt("u1", "outfit-1")
    await scheduler.schedule_daily_mirror("u1", prefs())
    await scheduler.schedule_daily_mirror("u1", prefs())
    assert len(transport.pending_for("u1", "feedback_prompt")) == 1


@pytest.mark.asyncio
async def test_other_users_schedules_are_untouched(scheduler, transport):
    other = await scheduler.schedule_daily_mirror("u2", prefs(user_id="u2"))
    await scheduler.schedule_daily_mirror("u1", prefs())
    await scheduler.cancel_scheduled_notifications("u1")
    assert [r.id for r in transport.pending_for("u2")] == [other.id]


@pytest.mark.asyncio
async def test_weekend_skip(scheduler, clock):
    clock.now = datetime(2026, 3, 13, 12, 0, tzinfo=timezone.utc)  # Friday
    record = await scheduler.schedule_daily_mirror("u1", prefs(enable_weekends=False))
    assert record.scheduled_time.date().isoformat() == "2026-03-16"


@pytest.mark.asyncio
async def test_transient_transport_failure_is_retried(schedules, preferences, clock, sleep):
    transport = FlakyTransport(failures=2)
    scheduler = build_scheduler(transport=transport, schedules=schedules, preferences=preferences, clock=clock, sleep=sleep)
    record = await scheduler.schedule_daily_mirror("u1", prefs())
    assert record.id in transport.scheduled
    assert len(sleep.delays) == 2


@pytest.mark.asyncio
async def test_exhausted_scheduling_is_surfaced_and_queued(schedules, preferences, clock, sleep):
    transport = FlakyTransport()
    scheduler = build_scheduler(transport=transport, schedules=schedules, preferences=preferences, clock=clock, sleep=sleep)
    with pytest.raises(NotificationSchedulingFailed) as info:
        await scheduler.schedule_daily_mirror("u1", prefs())
    assert isinstance(info.value, RetryExhausted)
    assert info.value.attempts == FAST_RETRY.max_retries + 1
    assert info.value.context.user_id == "u1"
    assert await schedules.pending_user_ids() == ["u1"]
    assert await schedules.list("u1") == []


@pytest.mark.asyncio
async def test_pending_request_is_replayed(schedules, preferences, clock, sleep):
    transport = FlakyTransport()
    scheduler = build_scheduler(transport=transport, schedules=schedules, preferences=preferences, clock=clock, sleep=sleep)
    with pytest.raises(NotificationSchedulingFailed):
        await scheduler.schedule_daily_mirror("u1", prefs())
    transport.failures = 0
    record = await scheduler.retry_pending("u1")
    assert record is not None
    assert await schedules.pending_user_ids() == []
    assert await scheduler.retry_pending("u1") is None


@pytest.mark.asyncio
async def test_record_write_failure_rolls_back_transport_registration(transport, preferences, clock, sleep):
    schedules = FailingStore(InMemoryScheduleStore(), ["put"])
    scheduler = build_scheduler(transport=transport, schedules=schedules, preferences=preferences, clock=clock, sleep=sleep)
    with pytest.raises(NotificationSchedulingFailed):
        await scheduler.schedule_daily_mirror("u1", prefs())
    assert transport.pending_for("u1") == []
    assert len(transport.cancelled) == FAST_RETRY.max_retries + 1


@pytest.mark.asyncio
async def test_feedback_prompt_fires_after_delay(scheduler, transport, schedules):
    record = await scheduler.schedule_feedback_prompt("u1", "outfit-42", delay_hours=2)
    assert record.scheduled_time == FIXED_NOW + timedelta(hours=2)
    assert record.payload["data"]["outfit_id"] == "outfit-42"
    assert len(await schedules.list("u1")) == 1


@pytest.mark.asyncio
async def test_feedback_prompt_default_delay_is_one_hour(scheduler):
    record = await scheduler.schedule_feedback_prompt("u1", "outfit-1")
    assert record.scheduled_time == FIXED_NOW + timedelta(hours=1)


@pytest.mark.asyncio
async def test_re_engagement_is_sent_immediately(scheduler, transport, schedules):
    payload = await scheduler.send_re_engagement_message("u1", 7)
    assert transport.sent == [payload]
    assert transport.scheduled == {}
    assert await schedules.list("u1") == []


@pytest.mark.asyncio
async def test_timezone_change_reschedules_with_stored_preferences(scheduler, transport, preferences):
    await scheduler.schedule_daily_mirror("u1", prefs(preferred_time=time(6, 30)))
    record = await scheduler.handle_timezone_change("u1", "Asia/Tokyo")
    assert record.timezone == "Asia/Tokyo"
    local = record.scheduled_time
    assert (local.hour, local.minute) == (6, 30)
    assert len(transport.pending_for("u1", "daily_mirror")) == 1
    assert (await preferences.get("u1")).timezone == "Asia/Tokyo"


@pytest.mark.asyncio
async def test_timezone_change_keeps_settings_after_flaky_preferences_read(transport, schedules, clock, sleep):
    inner = InMemoryPreferencesStore()
    await inner.put(prefs(preferred_time=time(8, 15), enable_weekends=False, confidence_note_style="poetic"))
    flaky = FailingStore(inner, ["get"], failures=1)
    scheduler = build_scheduler(transport=transport, schedules=schedules, preferences=flaky, clock=clock, sleep=sleep)

    record = await scheduler.handle_timezone_change("u1", "Asia/Tokyo")
    stored = await inner.get("u1")
    assert stored.timezone == "Asia/Tokyo"
    assert stored.preferred_time == time(8, 15)
    assert stored.enable_weekends is False
    assert stored.confidence_note_style == "poetic"
    assert (record.scheduled_time.hour, record.scheduled_time.minute) == (8, 15)


@pytest.mark.asyncio
async def test_timezone_change_fails_without_overwriting_unreadable_preferences(transport, schedules, clock, sleep):
    inner = InMemoryPreferencesStore()
    await inner.put(prefs(preferred_time=time(8, 15), confidence_note_style="poetic"))
    broken = FailingStore(inner, ["get"])
    scheduler = build_scheduler(transport=transport, schedules=schedules, preferences=broken, clock=clock, sleep=sleep)

    with pytest.raises(NotificationSchedulingFailed):
        await scheduler.handle_timezone_change("u1", "Asia/Tokyo")
    stored = await inner.get("u1")
    assert stored.timezone == "Europe/London"
    assert stored.preferred_time == time(8, 15)
    assert transport.scheduled == {}


@pytest.mark.asyncio
async def test_rollover_fails_without_resetting_unreadable_preferences(transport, schedules, clock, sleep):
    inner = InMemoryPreferencesStore()
    broken = FailingStore(inner, ["get"])
    scheduler = build_scheduler(transport=transport, schedules=schedules, preferences=broken, clock=clock, sleep=sleep)
    first = await scheduler.schedule_daily_mirror("u1", prefs(preferred_time=time(9, 45)))

    with pytest.raises(NotificationSchedulingFailed):
        await scheduler.handle_fired("u1", first.id, "daily_mirror")
    assert (await inner.get("u1")).preferred_time == time(9, 45)


@pytest.mark.asyncio
async def test_timezone_change_without_preferences_uses_defaults(scheduler):
    record = await scheduler.handle_timezone_change("u1", "America/New_York")
    assert (record.scheduled_time.hour, record.scheduled_time.minute) == (6, 0)


@pytest.mark.asyncio
async def test_timezone_change_rejects_unknown_zone(scheduler, transport):
    with pytest.raises(ValueError):
        await scheduler.handle_timezone_change("u1", "Nowhere/Special")
    assert transport.scheduled == {}


@pytest.mark.asyncio
async def test_cancel_removes_every_record_and_registration(scheduler, transport, schedules):
    mirror = await scheduler.schedule_daily_mirror("u1", prefs())
    prompt = await scheduler.schedule_feedback_prompt("u1", "outfit-1")
    count = await scheduler.cancel_scheduled_notifications("u1")
    assert count == 2
    assert set(transport.cancelled) >= {mirror.id, prompt.id}
    assert await schedules.list("u1") == []
    assert transport.pending_for("u1") == []


@pytest.mark.asyncio
async def test_cancel_with_nothing_scheduled(scheduler):
    assert await scheduler.cancel_scheduled_notifications("nobody") == 0


@pytest.mark.asyncio
async def test_permission_check(scheduler, transport, schedules, preferences, clock, sleep):
    assert await scheduler.are_notifications_enabled() is True
    transport.permission = False
    assert await scheduler.are_notifications_enabled() is False
    broken = build_scheduler(transport=NoPermissionTransport(), schedules=schedules, preferences=preferences, clock=clock, sleep=sleep)
    assert await broken.are_notifications_enabled() is False


@pytest.mark.asyncio
async def test_optimize_timing(scheduler):
    history = EngagementHistory(user_id="u1", preferred_interaction_times=["07:30", "07:15", "07:45"])
    assert await scheduler.optimize_notification_timing("u1", history) == time(7, 30)
    assert await scheduler.optimize_notification_timing("u1", EngagementHistory(user_id="u1")) == time(6, 0)


@pytest.mark.asyncio
async def test_fired_daily_mirror_rolls_to_next_day(scheduler, transport, schedules, clock):
    first = await scheduler.schedule_daily_mirror("u1", prefs())
    clock.now = first.scheduled_time.astimezone(timezone.utc) + timedelta(seconds=1)
    transport.scheduled.pop(first.id)
    nxt = await scheduler.handle_fired("u1", first.id, "daily_mirror")
    assert nxt.scheduled_time - first.scheduled_time == timedelta(days=1)
    assert [r.id for r in await schedules.list("u1")] == [nxt.id]


@pytest.mark.asyncio
async def test_fired_feedback_prompt_is_forgotten(scheduler, schedules):
    prompt = await scheduler.schedule_feedback_prompt("u1", "outfit-1")
    assert await scheduler.handle_fired("u1", prompt.id, "feedback_prompt") is None
    assert await schedules.list("u1") == []
