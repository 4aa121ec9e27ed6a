"""
Builders and fakes shared by the ritual test-suite.
Nothing here touches the network or sleeps for real.
"""
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from ritual.container import Services
from ritual.core.cache import InMemoryCachePersistence, TTLCache
from ritual.core.resilience import RetryPolicy
from ritual.notifications.providers import LogPushTransport
from ritual.notifications.tokens import PushTokenRegistry
from ritual.schemas.style import StyleProfile
from ritual.schemas.wardrobe import UsageStats, WardrobeItem
from ritual.schemas.weather import Location, WeatherContext
from ritual.services.llm import NoteWriter
from ritual.services.notifications.service import NotificationScheduler
from ritual.services.recs.service import RecommendationEngine
from ritual.sources.style_profile import InMemoryStyleProfileStore, StyleProfileSource
from ritual.sources.wardrobe import InMemoryWardrobeStore, WardrobeSource
from ritual.sources.weather import WeatherSource
from ritual.storage.memory import InMemoryPreferencesStore, InMemoryRecommendationsStore, InMemoryScheduleStore

# a Tuesday
FIXED_NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
FAST_RETRY = RetryPolicy(max_retries=2, base_delay=0.01, max_delay=0.05, jitter=0.0)


class FakeClock:
    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeWeatherProvider:
    def __init__(self, temperature: float = 16.0, condition: str = "cloudy", fail: bool = False) -> None:
        self.temperature = temperature
        self.condition = condition
        self.fail = fail
        self.calls = 0

    async def fetch(self, location: Location) -> WeatherContext:
        self.calls += 1
        if self.fail:
            raise ConnectionError("weather api unreachable")
        return WeatherContext(
            temperature=self.temperature,
            condition=self.condition,
            location=location.label,
            timestamp=FIXED_NOW,
        )


class FailingStore:
    """Wraps a store; the listed methods raise until ``failures`` runs out (None = forever)."""

    def __init__(self, inner, methods: Sequence[str], failures: Optional[int] = None) -> None:
        self._inner = inner
        self._methods = set(methods)
        self.failures = failures
        self.calls = 0

    def __getattr__(self, name):
        attr = getattr(self._inner, name)
        if name not in self._methods:
            return attr

        async def failing(*args, **kwargs):
            self.calls += 1
            if self.failures is None or self.failures > 0:
                if self.failures is not None:
                    self.failures -= 1
                raise ConnectionError(f"{name} failed")
            return await attr(*args, **kwargs)

        return failing


def make_item(
    item_id: str,
    category: str,
    *,
    user_id: str = "u1",
    subcategory: Optional[str] = None,
    colors: Sequence[str] = ("navy",),
    tags: Sequence[str] = (),
    worn_days_ago: Optional[float] = None,
    total_wears: int = 0,
    rating: float = 0.0,
    compliments: int = 0,
    cost_per_wear: Optional[float] = None,
    now: datetime = FIXED_NOW,
) -> WardrobeItem:
    last_worn = now - timedelta(days=worn_days_ago) if worn_days_ago is not None else None
    return WardrobeItem(
        id=item_id,
        user_id=user_id,
        category=category,
        subcategory=subcategory,
        name=item_id.replace("-", " ").title(),
        colors=list(colors),
        tags=list(tags),
        usage_stats=UsageStats(
            total_wears=total_wears,
            last_worn=last_worn,
            average_rating=rating,
            compliments_received=compliments,
            cost_per_wear=cost_per_wear,
        ),
    )


def sample_wardrobe(user_id: str = "u1") -> List[WardrobeItem]:
    return [
        make_item("white-tee", "top", user_id=user_id, subcategory="t-shirt", colors=["white"], tags=["casual", "summer"], worn_days_ago=3, total_wears=20, rating=4.0),
        make_item("silk-blouse", "top", user_id=user_id, subcategory="blouse", colors=["cream"], tags=["work", "elegant"], worn_days_ago=45, total_wears=2, rating=4.6),
        make_item("navy-knit", "top", user_id=user_id, subcategory="sweater", colors=["navy"], tags=["knit", "warm"], worn_days_ago=10, total_wears=8),
        make_item("dark-jeans", "bottom", user_id=user_id, subcategory="jeans", colors=["indigo"], tags=["casual"], worn_days_ago=2, total_wears=40, rating=4.2, cost_per_wear=1.5),
        make_item("grey-trousers", "bottom", user_id=user_id, subcategory="trousers", colors=["grey"], tags=["work"], worn_days_ago=20, total_wears=6, cost_per_wear=8.0),
        make_item("green-dress", "dress", user_id=user_id, subcategory="midi dress", colors=["green"], tags=["weekend"], total_wears=1, cost_per_wear=60.0),
        make_item("white-sneakers", "shoes", user_id=user_id, subcategory="sneakers", colors=["white"], tags=["casual"], worn_days_ago=1, total_wears=80),
        make_item("tan-sandals", "shoes", user_id=user_id, subcategory="sandals", colors=["tan"], tags=["summer"], worn_days_ago=200, total_wears=5),
        make_item("wool-coat", "outerwear", user_id=user_id, subcategory="coat", colors=["camel"], tags=["winter", "wool"], worn_days_ago=90, total_wears=12),
        make_item("denim-jacket", "outerwear", user_id=user_id, subcategory="jacket", colors=["blue"], tags=["casual"], worn_days_ago=12, total_wears=9),
        make_item("gold-necklace", "accessory", user_id=user_id, colors=["gold"], tags=["elegant"], worn_days_ago=5, compliments=3),
    ]


def style_profile(user_id: str = "u1") -> StyleProfile:
    return StyleProfile(
        user_id=user_id,
        preferred_colors=["navy", "cream", "white"],
        preferred_styles=["casual", "elegant"],
        occasion_preferences={"work": 0.8, "weekend": 0.6},
        last_updated=FIXED_NOW,
    )


def build_engine(
    *,
    clock: Optional[FakeClock] = None,
    weather: Optional[FakeWeatherProvider] = None,
    wardrobe: Optional[dict] = None,
    profiles: Optional[dict] = None,
    store=None,
    preferences=None,
    note_writer: Optional[NoteWriter] = None,
    sleep: Optional[RecordingSleep] = None,
) -> RecommendationEngine:
    clock = clock or FakeClock()
    sleep = sleep or RecordingSleep()
    cache = TTLCache(InMemoryCachePersistence(), clock=clock)
    wardrobe_store = InMemoryWardrobeStore(wardrobe if wardrobe is not None else {"u1": sample_wardrobe()})
    profile_store = InMemoryStyleProfileStore(profiles if profiles is not None else {"u1": style_profile()})
    return RecommendationEngine(
        weather=WeatherSource(weather or FakeWeatherProvider(), cache, FAST_RETRY, sleep=sleep, clock=clock),
        wardrobe=WardrobeSource(wardrobe_store, cache, FAST_RETRY, sleep=sleep),
        style=StyleProfileSource(profile_store, cache, FAST_RETRY, sleep=sleep),
        store=store if store is not None else InMemoryRecommendationsStore(),
        preferences=preferences if preferences is not None else InMemoryPreferencesStore(),
        note_writer=note_writer,
        clock=clock,
        default_location="London",
        sleep=sleep,
    )


def build_scheduler(
    *,
    transport: Optional[LogPushTransport] = None,
    schedules=None,
    preferences=None,
    clock: Optional[FakeClock] = None,
    sleep: Optional[RecordingSleep] = None,
) -> NotificationScheduler:
    return NotificationScheduler(
        transport or LogPushTransport(),
        schedules if schedules is not None else InMemoryScheduleStore(),
        preferences if preferences is not None else InMemoryPreferencesStore(),
        clock=clock or FakeClock(),
        policy=FAST_RETRY,
        sleep=sleep or RecordingSleep(),
    )


def build_services(clock: Optional[FakeClock] = None) -> Services:
    clock = clock or FakeClock()
    preferences = InMemoryPreferencesStore()
    engine = build_engine(clock=clock, preferences=preferences)
    scheduler = build_scheduler(clock=clock, preferences=preferences)
    cache = TTLCache(InMemoryCachePersistence(), clock=clock)
    return Services(cache=cache, engine=engine, scheduler=scheduler, push_tokens=PushTokenRegistry(cache))
