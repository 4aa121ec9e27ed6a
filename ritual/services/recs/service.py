"""Daily outfit recommendations: gather sources, build, score, annotate, persist."""

from __future__ import annotations

import asyncio
import logging
import uuid
import weakref
from datetime import date, datetime, timezone
from typing import Callable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from ritual.core.config import settings
from ritual.core.errors import OperationContext, RecommendationGenerationFailed, RetryExhausted
from ritual.core.resilience import RetryPolicy, Sleep, execute_with_retry
from ritual.recs.candidates import CandidateBuilder, pick_quick_option
from ritual.recs.config import RecsConfig
from ritual.recs.notes import NoteContext, generate_confidence_note, generate_reasoning, top_occasion
from ritual.recs.types import Candidate, ScoringContext
from ritual.schemas.notifications import NotificationPreferences
from ritual.schemas.recommendations import DailyRecommendations, OutfitRecommendation
from ritual.schemas.weather import Location
from ritual.services.llm import NoteWriter
from ritual.services.llm.types import RewriteNoteInput
from ritual.sources.style_profile import StyleProfileSource
from ritual.sources.types import SourceResult
from ritual.sources.wardrobe import WardrobeSource
from ritual.sources.weather import WeatherSource
from ritual.storage.base import PreferencesStore, RecommendationsStore

logger = logging.getLogger("ritual.recs")

PADDED_REASON = "Filled slot to ensure minimum options"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecommendationEngine:
    def __init__(
        self,
        weather: WeatherSource,
        wardrobe: WardrobeSource,
        style: StyleProfileSource,
        store: RecommendationsStore,
        preferences: PreferencesStore,
        note_writer: Optional[NoteWriter] = None,
        config: Optional[RecsConfig] = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
        default_location: Optional[str] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.weather = weather
        self.wardrobe = wardrobe
        self.style = style
        self.store = store
        self.preferences = preferences
        self.note_writer = note_writer or NoteWriter()
        self.config = config or RecsConfig()
        self.builder = CandidateBuilder(self.config)
        self.clock = clock
        self.default_location = default_location or settings.DEFAULT_LOCATION
        self._sleep = sleep
        self._locks: "weakref.WeakValueDictionary[Tuple[str, date], asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock(self, user_id: str, day: date) -> asyncio.Lock:
        lock = self._locks.get((user_id, day))
        if lock is None:
            lock = asyncio.Lock()
            self._locks[(user_id, day)] = lock
        return lock

    async def _user_preferences(self, user_id: str) -> NotificationPreferences:
        try:
            prefs = await self.preferences.get(user_id)
        except Exception as e:
            logger.warning("recs: preferences unavailable user_id=%s reason=%r", user_id, e)
            prefs = None
        return prefs or NotificationPreferences.defaults(user_id, settings.DEFAULT_TIMEZONE)

    async def _storage(self, operation, name: str, user_id: str):
        context = OperationContext(service="storage", operation=name, user_id=user_id)
        return await execute_with_retry(operation, context, RetryPolicy.from_settings(max_retries=1), sleep=self._sleep)

    async def generate_daily_recommendations(
        self,
        user_id: str,
        *,
        location: Optional[Location] = None,
        force: bool = False,
    ) -> DailyRecommendations:
        """Today's recommendations for ``user_id``, generated once per local calendar day.

        Source failures degrade the result instead of failing it. Only the build
        step can fail the call, with :class:`RecommendationGenerationFailed`.
        """
        prefs = await self._user_preferences(user_id)
        now = self.clock()
        today = now.astimezone(ZoneInfo(prefs.timezone)).date()

        async with self._lock(user_id, today):
            if not force:
                existing = await self._existing(user_id, today)
                if existing is not None:
                    return existing

            location = location or Location(label=self.default_location)
            weather_res, wardrobe_res, style_res = await asyncio.gather(
                self.weather.fetch(location, user_id),
                self.wardrobe.fetch(user_id),
                self.style.fetch(user_id),
            )
            degraded = _degraded_sources(weather=weather_res, wardrobe=wardrobe_res, style_profile=style_res)
            approximate = weather_res.is_degraded or wardrobe_res.is_degraded

            record_id = uuid.uuid4().hex
            ctx = ScoringContext(weather=weather_res.value, profile=style_res.value, now=now, config=self.config)
            try:
                outfits = await execute_with_retry(
                    lambda: self._build(record_id, wardrobe_res.value, ctx, prefs, approximate),
                    OperationContext(service="recommendations", operation="build", user_id=user_id),
                    RetryPolicy.from_settings(max_retries=1),
                    sleep=self._sleep,
                )
            except RetryExhausted as e:
                logger.error("recs: generation failed user_id=%s reason=%r", user_id, e.last_error)
                raise RecommendationGenerationFailed(user_id, e.last_error) from e

            record = DailyRecommendations(
                id=record_id,
                user_id=user_id,
                date=today,
                recommendations=outfits,
                weather_context=weather_res.value,
                generated_at=now,
                degraded_sources=degraded,
            )
            try:
                record = await self._storage(
                    lambda: self.store.upsert_daily_recommendations(record), "upsert_daily_recommendations", user_id
                )
            except RetryExhausted as e:
                logger.warning("recs: result not persisted user_id=%s reason=%r", user_id, e.last_error)
                record = record.model_copy(update={"degraded_sources": [*record.degraded_sources, "storage"]})
            logger.info(
                "recs: generated user_id=%s date=%s outfits=%s degraded=%s",
                user_id,
                today.isoformat(),
                len(record.recommendations),
                ",".join(record.degraded_sources) or "-",
            )
            return record

    async def _existing(self, user_id: str, day: date) -> Optional[DailyRecommendations]:
        try:
            return await self._storage(
                lambda: self.store.get_daily_recommendations(user_id, day), "get_daily_recommendations", user_id
            )
        except RetryExhausted as e:
            logger.warning("recs: could not read existing record user_id=%s reason=%r", user_id, e.last_error)
            return None

    async def _build(
        self,
        record_id: str,
        items,
        ctx: ScoringContext,
        prefs: NotificationPreferences,
        approximate: bool,
    ) -> List[OutfitRecommendation]:
        candidates = self.builder.build(items, ctx)
        if not candidates:
            return []
        quick = pick_quick_option(candidates, ctx)
        note_ctx = NoteContext(
            weather=ctx.weather,
            profile=ctx.profile,
            style=prefs.confidence_note_style,
            now=ctx.now,
            approximate=approximate,
        )
        notes = await asyncio.gather(*(self._note(c, note_ctx) for c in candidates))
        return [
            OutfitRecommendation(
                id=uuid.uuid4().hex,
                daily_recommendation_id=record_id,
                item_ids=list(c.item_ids),
                items=list(c.items),
                confidence_score=c.score,
                confidence_note=note,
                reasoning=self._reasoning(c, ctx),
                is_quick_option=i == quick,
                created_at=ctx.now,
            )
            for i, (c, note) in enumerate(zip(candidates, notes))
        ]

    async def _note(self, candidate: Candidate, ctx: NoteContext) -> str:
        draft = generate_confidence_note(candidate.items, ctx)
        payload = RewriteNoteInput(
            draft=draft,
            style=ctx.style,
            weather=f"{ctx.weather.condition}, {round(ctx.weather.temperature)}C",
            colors=list(dict.fromkeys(c.lower() for i in candidate.items for c in i.colors)),
            occasion=top_occasion(candidate.items, ctx.profile),
        )
        return await self.note_writer.polish(payload)

    def _reasoning(self, candidate: Candidate, ctx: ScoringContext) -> List[str]:
        reasons = generate_reasoning(candidate.items, ctx.weather, ctx.now, self.config.cold_c, self.config.hot_c)
        if candidate.padded:
            reasons.append(PADDED_REASON)
        return reasons


def _degraded_sources(**results: SourceResult) -> List[str]:
    return [name for name, res in results.items() if res.is_degraded or res.reason == "unavailable"]
