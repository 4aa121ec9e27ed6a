from ritual.recs.strategies.base import clamp, mean
from ritual.recs.types import Candidate, ScoringContext


class RecentWearStrategy:
    """Favors pieces that have not been worn lately or often."""

    name = "recency"

    def score(self, candidate: Candidate, ctx: ScoringContext) -> float:
        neglected_days = ctx.config.neglected_days
        scores = []
        for item in candidate.items:
            stats = item.usage_stats
            if stats.last_worn is None:
                staleness = 1.0
            else:
                days = (ctx.now - stats.last_worn).total_seconds() / 86400
                staleness = clamp(days / neglected_days)
            rarity = 1.0 / (1.0 + stats.total_wears / 10.0)
            scores.append(0.7 * staleness + 0.3 * rarity)
        return clamp(mean(scores))
