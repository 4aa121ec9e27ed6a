"""Outfit candidate generation, scoring and selection."""

from __future__ import annotations

from collections import defaultdict
from datetime import timedelta
from itertools import product
from typing import Dict, Iterable, List, Optional, Sequence

from ritual.recs.config import RecsConfig
from ritual.recs.strategies import (
    ItemRatingStrategy,
    RecentWearStrategy,
    StyleAffinityStrategy,
    WeatherFitStrategy,
)
from ritual.recs.strategies.weather import is_light
from ritual.recs.types import Candidate, ScoringContext
from ritual.schemas.wardrobe import WardrobeItem
from ritual.schemas.weather import WeatherContext

HEAVY_OUTERWEAR = {"coat", "parka", "puffer", "overcoat", "down jacket", "trench"}
OPEN_SHOES = {"sandals", "flip-flops", "slides", "espadrilles"}


def is_heavy_outerwear(item: WardrobeItem) -> bool:
    if item.category != "outerwear":
        return False
    return (item.subcategory or "").lower() in HEAVY_OUTERWEAR or item.has_tag("heavy", "winter", "insulated")


def is_open_shoe(item: WardrobeItem) -> bool:
    return item.category == "shoes" and ((item.subcategory or "").lower() in OPEN_SHOES or item.has_tag("open-toe"))


def weather_appropriate(item: WardrobeItem, weather: WeatherContext, config: RecsConfig) -> bool:
    temp = weather.temperature
    if is_heavy_outerwear(item) and temp > config.heavy_outerwear_max_c:
        return False
    if is_open_shoe(item) and temp < config.open_shoes_min_c:
        return False
    if temp < config.summer_pieces_min_c and is_light(item):
        return False
    return True


class CandidateBuilder:
    def __init__(self, config: Optional[RecsConfig] = None) -> None:
        self.config = config or RecsConfig()
        self.strategies = [
            (StyleAffinityStrategy(), self.config.weight_style),
            (ItemRatingStrategy(), self.config.weight_rating),
            (RecentWearStrategy(), self.config.weight_recency),
            (WeatherFitStrategy(), self.config.weight_weather),
        ]

    def build(self, items: Sequence[WardrobeItem], ctx: ScoringContext) -> List[Candidate]:
        """Generate, score and select between ``min_results`` and ``max_results`` outfits."""
        if not items:
            return []
        pool = [i for i in items if weather_appropriate(i, ctx.weather, self.config)] or list(items)
        scored = [self.score(c, ctx) for c in self.combine(pool, ctx)]
        return self.select(scored)

    def combine(self, pool: Sequence[WardrobeItem], ctx: ScoringContext) -> Iterable[Candidate]:
        by_category: Dict[str, List[WardrobeItem]] = defaultdict(list)
        for item in pool:
            by_category[item.category].append(item)
        limit = self.config.per_category_limit
        for category, group in by_category.items():
            group.sort(key=lambda i: (-self._item_prescore(i, ctx), i.id))
            del group[limit:]

        bases: List[tuple] = [(d,) for d in by_category["dress"]]
        bases += [(t, b) for t, b in product(by_category["top"], by_category["bottom"])]
        if not bases:
            # no complete base outfit; fall back to whatever single pieces exist
            bases = [(i,) for i in (by_category["top"] or by_category["bottom"] or pool)]

        shoes = by_category["shoes"][:2] or [None]
        outer: List[Optional[WardrobeItem]] = list(by_category["outerwear"][:2])
        if ctx.weather.temperature >= self.config.cold_c or not outer:
            outer.append(None)
        accessories = [None] + by_category["accessory"][:1]

        for base, shoe, layer, accessory in product(bases, shoes, outer, accessories):
            extras = tuple(i for i in (shoe, layer, accessory) if i is not None and i not in base)
            yield Candidate(items=tuple(base) + extras)

    def score(self, candidate: Candidate, ctx: ScoringContext) -> Candidate:
        total = 0.0
        for strategy, weight in self.strategies:
            value = strategy.score(candidate, ctx)
            candidate.dimensions[strategy.name] = round(value, 3)
            total += value * weight
        candidate.score = round(max(0.0, min(1.0, total)), 3)
        return candidate

    def select(self, scored: Sequence[Candidate]) -> List[Candidate]:
        ordered = sorted(scored, key=lambda c: (-c.score, c.cost_per_wear, c.item_ids))
        picked: List[Candidate] = []
        seen_bases: set = set()
        seen_ids: set = set()
        for c in ordered:
            if c.base_key in seen_bases:
                continue
            picked.append(c)
            seen_bases.add(c.base_key)
            seen_ids.add(c.item_ids)
            if len(picked) == self.config.max_results:
                return picked
        # allow repeated bases only to reach the minimum
        for c in ordered:
            if len(picked) >= self.config.min_results:
                break
            if c.item_ids not in seen_ids:
                picked.append(c)
                seen_ids.add(c.item_ids)
        picked.sort(key=lambda c: (-c.score, c.cost_per_wear, c.item_ids))
        i = 0
        while picked and len(picked) < self.config.min_results:
            src = picked[i % len(picked)]
            picked.append(Candidate(items=src.items, score=src.score, dimensions=dict(src.dimensions), padded=True))
            i += 1
        return picked

    def _item_prescore(self, item: WardrobeItem, ctx: ScoringContext) -> float:
        single = Candidate(items=(item,))
        return sum(s.score(single, ctx) * w for s, w in self.strategies)


def pick_quick_option(candidates: Sequence[Candidate], ctx: ScoringContext) -> int:
    """Index of the best candidate built only from pieces worn recently; else the best one."""
    if not candidates:
        return -1
    window = timedelta(days=ctx.config.quick_option_days)
    best = max(range(len(candidates)), key=lambda i: (candidates[i].score, -i))
    recent = [
        i
        for i, c in enumerate(candidates)
        if all(it.usage_stats.last_worn is not None and ctx.now - it.usage_stats.last_worn <= window for it in c.items)
    ]
    if recent:
        return max(recent, key=lambda i: (candidates[i].score, -i))
    return best
