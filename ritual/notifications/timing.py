"""Notification timing: when the daily mirror should fire.

``optimal_time`` derives a time of day from past interactions. Times of day wrap
around midnight, so they are averaged on the 24h circle: 23:50 and 00:10 average
to 00:00, not noon.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterable, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ritual.schemas.notifications import EngagementHistory

logger = logging.getLogger("ritual.notifications.timing")

DEFAULT_TIME = time(6, 0)
MINUTES_PER_DAY = 24 * 60
_DEGENERATE = 1e-6


def _parse_instant(value: Any, tz: Optional[ZoneInfo]) -> Optional[time]:
    if isinstance(value, datetime):
        if tz is not None and value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.time()
    if isinstance(value, time):
        return value
    if isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        for parse in (datetime.fromisoformat, time.fromisoformat):
            try:
                return _parse_instant(parse(raw), tz)
            except ValueError:
                continue
    return None


def _minutes(t: time) -> float:
    return t.hour * 60 + t.minute + t.second / 60


def circular_mean(times: Iterable[time]) -> Optional[time]:
    xs = ys = 0.0
    n = 0
    for t in times:
        angle = 2 * math.pi * _minutes(t) / MINUTES_PER_DAY
        xs += math.cos(angle)
        ys += math.sin(angle)
        n += 1
    if n == 0 or math.hypot(xs, ys) / n < _DEGENERATE:
        return None
    angle = math.atan2(ys, xs) % (2 * math.pi)
    minutes = round(angle * MINUTES_PER_DAY / (2 * math.pi)) % MINUTES_PER_DAY
    return time(minutes // 60, minutes % 60)


def optimal_time(history: Optional[EngagementHistory], tz: Optional[str] = None) -> time:
    """Best time of day for the daily mirror. Never raises; falls back to 06:00."""
    if history is None:
        return DEFAULT_TIME
    zone: Optional[ZoneInfo] = None
    if tz:
        try:
            zone = ZoneInfo(tz)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("timing: unknown timezone, reading instants as given tz=%s", tz)
    parsed: List[time] = []
    for raw in history.preferred_interaction_times or []:
        t = _parse_instant(raw, zone)
        if t is None:
            logger.debug("timing: skipped unreadable instant user_id=%s value=%r", history.user_id, raw)
            continue
        parsed.append(t)
    if parsed:
        mean = circular_mean(parsed)
        return mean if mean is not None else DEFAULT_TIME
    if history.average_open_time is not None:
        t = _parse_instant(history.average_open_time, zone)
        if t is not None:
            return t.replace(second=0, microsecond=0, tzinfo=None)
    return DEFAULT_TIME


def next_fire_time(
    preferred_time: time,
    tz: str,
    enable_weekends: bool = True,
    now: Optional[datetime] = None,
) -> datetime:
    """Next instant at ``preferred_time`` wall-clock in ``tz``, strictly after ``now``.

    Saturdays and Sundays are skipped when ``enable_weekends`` is off. The result is
    timezone-aware in ``tz``.
    """
    zone = ZoneInfo(tz)
    now = (now or datetime.now(timezone.utc)).astimezone(zone)
    wall = preferred_time.replace(tzinfo=None)
    day: date = now.date()
    fire = datetime.combine(day, wall, tzinfo=zone)
    if fire <= now:
        day += timedelta(days=1)
    while not enable_weekends and day.weekday() >= 5:
        day += timedelta(days=1)
    return datetime.combine(day, wall, tzinfo=zone)
