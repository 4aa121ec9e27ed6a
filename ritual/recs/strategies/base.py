from typing import Protocol

from ritual.recs.types import Candidate, ScoringContext


class Strategy(Protocol):
    name: str

    def score(self, candidate: Candidate, ctx: ScoringContext) -> float:
        ...


def clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def mean(values, default: float = 0.5) -> float:
    values = list(values)
    return sum(values) / len(values) if values else default
