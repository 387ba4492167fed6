from __future__ import annotations

import random
from datetime import datetime
from typing import Iterable

import numpy as np

from neuro_user.brain import UserBrain
from neuro_user.features import ContentItem, extract_features
from neuro_user.signals.selectors import hits_blocked
from neuro_user.vector import ContentVector

from .diversification import diversify
from .types import ScoredItem, ScoreTrace

SUBSCRIPTION_BOOST = 0.15
SERENDIPITY_BOOST = 0.10
BOREDOM_PENALTY = 0.5
BOREDOM_THRESHOLD = 0.2
COLD_START_INTERACTIONS = 50


def cosine(user: ContentVector, content: ContentVector) -> float:
    """
    Cosine similarity over topic weights.

    With no shared topics the dense duration axis is the only signal left:
    0.3 x (1 - |duration difference|).
    """
    common = sorted(set(user.topics) & set(content.topics))
    if not common:
        return (1.0 - abs(user.duration - content.duration)) * 0.3

    u = np.fromiter((user.topics[k] for k in common), dtype=np.float64)
    v = np.fromiter((content.topics[k] for k in common), dtype=np.float64)
    mag_a = float(np.linalg.norm(np.fromiter(user.topics.values(), dtype=np.float64)))
    mag_b = float(np.linalg.norm(np.fromiter(content.topics.values(), dtype=np.float64)))
    if mag_a == 0 or mag_b == 0:
        return 0.0
    return float(np.dot(u, v)) / (mag_a * mag_b)


def is_blocked(item: ContentItem, vector: ContentVector, brain: UserBrain) -> bool:
    if item.channel_id and item.channel_id in brain.blocked_channels:
        return True
    if not brain.blocked_topics:
        return False
    return hits_blocked(item.title, brain.blocked_topics) or any(
        hits_blocked(t, brain.blocked_topics) for t in vector.topics
    )


def score_item(
    item: ContentItem,
    vector: ContentVector,
    brain: UserBrain,
    context: ContentVector,
    subscriptions: set[str],
    rng: random.Random,
) -> ScoreTrace:
    personality = cosine(brain.global_vector, vector)
    ctx = cosine(context, vector)
    trace = ScoreTrace(
        id=item.id, personality=personality, context=ctx, novelty=1.0 - personality
    )

    if item.channel_id and item.channel_id in subscriptions:
        trace.boosts["subscription"] = SUBSCRIPTION_BOOST
    if trace.novelty > 0.6 and ctx > 0.5:
        trace.boosts["serendipity"] = SERENDIPITY_BOOST

    # implicit feedback: channels the user keeps skipping
    if item.channel_id in brain.channel_scores:
        if brain.channel_scores[item.channel_id] < BOREDOM_THRESHOLD:
            trace.penalty = BOREDOM_PENALTY

    spread = 0.2 if brain.total_interactions < COLD_START_INTERACTIONS else 0.02
    trace.jitter = rng.random() * spread
    return trace


def rank(
    candidates: Iterable[ContentItem],
    brain: UserBrain,
    *,
    subscriptions: Iterable[str] = (),
    now: datetime | None = None,
    rng: random.Random | None = None,
    head_size: int = 20,
) -> list[ScoredItem]:
    """Score candidates against the brain, drop blocked ones, then diversity re-rank."""
    rng = rng or random.Random()
    subs = set(subscriptions)
    context = brain.bucket_at(now or datetime.now())

    scored: list[ScoredItem] = []
    for item in candidates:
        vec = extract_features(item).as_vector()
        if is_blocked(item, vec, brain):
            continue
        trace = score_item(item, vec, brain, context, subs, rng)
        scored.append(ScoredItem(item=item, vector=vec, score=trace.total, trace=trace))

    scored.sort(key=lambda s: s.score, reverse=True)
    ordered, _ = diversify(scored, head_size=head_size)
    return ordered
