from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Tuple

from ritual.recs.config import RecsConfig
from ritual.schemas.style import StyleProfile
from ritual.schemas.wardrobe import WardrobeItem
from ritual.schemas.weather import WeatherContext

BASE_CATEGORIES = {"dress", "top", "bottom"}


@dataclass
class Candidate:
    items: Tuple[WardrobeItem, ...]
    score: float = 0.0
    dimensions: Dict[str, float] = field(default_factory=dict)
    padded: bool = False

    @property
    def item_ids(self) -> Tuple[str, ...]:
        return tuple(i.id for i in self.items)

    @property
    def cost_per_wear(self) -> float:
        return sum(i.usage_stats.cost_per_wear or 0.0 for i in self.items)

    @property
    def base_key(self) -> frozenset:
        base = frozenset(i.id for i in self.items if i.category in BASE_CATEGORIES)
        return base or frozenset(self.item_ids)


@dataclass(frozen=True)
class ScoringContext:
    weather: WeatherContext
    profile: StyleProfile
    now: datetime
    config: RecsConfig = field(default_factory=RecsConfig)
