from .ritual_fixtures import (
    FAST_RETRY,
    FIXED_NOW,
    FailingStore,
    FakeClock,
    FakeWeatherProvider,
    RecordingSleep,
    build_engine,
    build_scheduler,
    build_services,
    make_item,
    sample_wardrobe,
    style_profile,
)

__all__ = [
    "FAST_RETRY",
    "FIXED_NOW",
    "FailingStore",
    "FakeClock",
    "FakeWeatherProvider",
    "RecordingSleep",
    "build_engine",
    "build_scheduler",
    "build_services",
    "make_item",
    "sample_wardrobe",
    "style_profile",
]
