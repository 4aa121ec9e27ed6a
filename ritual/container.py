"""Builds the long-lived service objects once per process from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ritual.core.cache import TTLCache, build_cache
from ritual.core.config import settings
from ritual.notifications.providers import CeleryPushTransport, LogPushTransport, PushTransport
from ritual.notifications.tokens import PushTokenRegistry
from ritual.recs.config import RecsConfig
from ritual.services.llm import NoteWriter, build_note_provider
from ritual.services.notifications.service import NotificationScheduler
from ritual.services.recs.service import RecommendationEngine
from ritual.sources.style_profile import HttpStyleProfileStore, StyleProfileSource
from ritual.sources.wardrobe import HttpWardrobeStore, WardrobeSource
from ritual.sources.weather import OpenWeatherProvider, SeasonalWeatherProvider, WeatherProvider, WeatherSource
from ritual.storage.base import PreferencesStore, RecommendationsStore, ScheduleStore

logger = logging.getLogger("ritual.container")


@dataclass
class Services:
    cache: TTLCache
    engine: RecommendationEngine
    scheduler: NotificationScheduler
    push_tokens: PushTokenRegistry


def build_stores(
    backend: str | None = None, sessionmaker: async_sessionmaker[AsyncSession] | None = None
) -> tuple[RecommendationsStore, ScheduleStore, PreferencesStore]:
    name = (backend or settings.STORAGE_BACKEND or "memory").lower()
    if name == "sql":
        from ritual.storage.sql import SqlPreferencesStore, SqlRecommendationsStore, SqlScheduleStore

        return SqlRecommendationsStore(sessionmaker), SqlScheduleStore(sessionmaker), SqlPreferencesStore(sessionmaker)
    from ritual.storage.memory import InMemoryPreferencesStore, InMemoryRecommendationsStore, InMemoryScheduleStore

    return InMemoryRecommendationsStore(), InMemoryScheduleStore(), InMemoryPreferencesStore()


def build_transport(name: str | None = None) -> PushTransport:
    if (name or settings.PUSH_TRANSPORT or "log").lower() == "celery":
        return CeleryPushTransport()
    return LogPushTransport()


def build_weather_provider() -> WeatherProvider:
    if settings.WEATHER_API_KEY:
        return OpenWeatherProvider()
    logger.info("no WEATHER_API_KEY configured, using seasonal estimates")
    return SeasonalWeatherProvider()


def build_services(
    sessionmaker: async_sessionmaker[AsyncSession] | None = None, redis: Redis | None = None
) -> Services:
    """Process-wide services by default; pass a sessionmaker and redis client to bind them to one event loop."""
    cache = build_cache(redis=redis)
    recommendations, schedules, preferences = build_stores(sessionmaker=sessionmaker)
    engine = RecommendationEngine(
        weather=WeatherSource(build_weather_provider(), cache),
        wardrobe=WardrobeSource(HttpWardrobeStore(), cache),
        style=StyleProfileSource(HttpStyleProfileStore(), cache),
        store=recommendations,
        preferences=preferences,
        note_writer=NoteWriter(build_note_provider()),
        config=RecsConfig(),
    )
    scheduler = NotificationScheduler(build_transport(), schedules, preferences)
    logger.info(
        "services built cache=%s storage=%s push=%s",
        settings.CACHE_BACKEND,
        settings.STORAGE_BACKEND,
        settings.PUSH_TRANSPORT,
    )
    return Services(cache=cache, engine=engine, scheduler=scheduler, push_tokens=PushTokenRegistry(cache))


def get_services(request: Request) -> Services:
    return request.app.state.services
