from ritual.recs.strategies.base import clamp, mean
from ritual.recs.types import Candidate, ScoringContext


class StyleAffinityStrategy:
    """How well the outfit matches learned color, style and occasion preferences.

    A neutral profile scores 0.5 so it neither helps nor hurts a candidate.
    """

    name = "style"

    def score(self, candidate: Candidate, ctx: ScoringContext) -> float:
        profile = ctx.profile
        colors = {c.lower() for c in profile.preferred_colors}
        styles = {s.lower() for s in profile.preferred_styles}
        occasions = {k.lower(): v for k, v in profile.occasion_preferences.items()}

        color_score = 0.5
        if colors:
            color_score = mean(1.0 if colors & {c.lower() for c in item.colors} else 0.0 for item in candidate.items)

        style_score = 0.5
        if styles:
            style_score = mean(1.0 if styles & {t.lower() for t in item.tags} else 0.0 for item in candidate.items)

        occasion_score = 0.5
        if occasions:
            weights = []
            for item in candidate.items:
                hits = [occasions[t.lower()] for t in item.tags if t.lower() in occasions]
                if hits:
                    weights.append(max(hits))
            occasion_score = mean(weights)

        return clamp(0.4 * color_score + 0.4 * style_score + 0.2 * occasion_score)
