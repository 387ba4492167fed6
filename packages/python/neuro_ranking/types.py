from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict

from neuro_user.features import ContentItem
from neuro_user.vector import ContentVector


@dataclass
class ScoredItem:
    item: ContentItem
    vector: ContentVector
    score: float = 0.0
    trace: "ScoreTrace | None" = None

    @property
    def primary_topic(self) -> str:
        top = self.vector.top_topics(1)
        return top[0][0] if top else ""


@dataclass
class ScoreTrace:
    id: str
    personality: float = 0.0  # cosine vs global vector
    context: float = 0.0  # cosine vs current time bucket
    novelty: float = 0.0
    boosts: Dict[str, float] = field(default_factory=dict)
    penalty: float = 1.0
    jitter: float = 0.0

    @property
    def total(self) -> float:
        base = 0.4 * self.personality + 0.4 * self.context + 0.2 * self.novelty
        return (base + sum(self.boosts.values())) * self.penalty + self.jitter
