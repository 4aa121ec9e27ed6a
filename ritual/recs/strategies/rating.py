from ritual.recs.strategies.base import clamp, mean
from ritual.recs.types import Candidate, ScoringContext


class ItemRatingStrategy:
    name = "rating"

    def score(self, candidate: Candidate, _ctx: ScoringContext) -> float:
        ratings = []
        for item in candidate.items:
            stats = item.usage_stats
            # unrated pieces sit at the midpoint
            r = stats.average_rating / 5.0 if stats.average_rating > 0 else 0.5
            if stats.compliments_received > 0:
                r += 0.05
            ratings.append(r)
        return clamp(mean(ratings))
