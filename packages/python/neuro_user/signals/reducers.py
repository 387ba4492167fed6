from __future__ import annotations

import heapq
from typing import Iterable, Mapping

from neuro_core.types import BrainParams, clamp01
from neuro_user.vector import ContentVector

from .decay import idle_decay


def ema(old: float, target: float, rate: float) -> float:
    """newWeight = old * (1 - rate) + target * rate, clamped to [0, 1]."""
    rate = clamp01(rate)
    return clamp01(clamp01(old) * (1.0 - rate) + clamp01(target) * rate)


def evict_to_cap(
    weights: dict[str, float],
    touched: dict[str, float],
    cap: int,
) -> list[str]:
    """
    Drop entries in place until ``len(weights) <= cap``.

    Lowest weight goes first; equal weights evict the one touched longest ago.
    Returns the evicted keys in eviction order.
    """
    over = len(weights) - max(0, cap)
    if over <= 0:
        return []
    victims = heapq.nsmallest(
        over,
        weights.items(),
        key=lambda kv: (kv[1], touched.get(kv[0], 0.0), kv[0]),
    )
    evicted = []
    for key, _ in victims:
        weights.pop(key, None)
        touched.pop(key, None)
        evicted.append(key)
    return evicted


def blend_vector(
    current: ContentVector,
    *,
    topics: Iterable[str],
    topic_target: float,
    dense: Mapping[str, float],
    scalar_rate: float,
    topic_rate: float,
    now: float,
    params: BrainParams,
) -> ContentVector:
    """
    Fold one signal into ``current`` and return the new vector.

    1. untouched topics fade by the idle time since the vector's last update
    2. touched topics move toward ``topic_target`` by EMA
    3. anything below ``prune_below`` is dropped, unless a positive signal
       just touched it
    4. the topic map is capped at ``k_topics``
    5. dense axes present in ``dense`` move toward their targets by EMA
    """
    touched_now = list(dict.fromkeys(topics))
    fade = idle_decay(current.updated_at, now, params.beta_daily)

    weights: dict[str, float] = {}
    touched_at: dict[str, float] = dict(current.touched_at)
    for key, w in current.topics.items():
        weights[key] = w if key in touched_now else w * fade

    for key in touched_now:
        weights[key] = ema(weights.get(key, 0.0), topic_target, topic_rate)
        touched_at[key] = now

    keep = set(touched_now) if topic_target > 0 else set()
    for key in [k for k, w in weights.items() if w < params.prune_below and k not in keep]:
        weights.pop(key)
        touched_at.pop(key, None)

    evict_to_cap(weights, touched_at, params.k_topics)
    touched_at = {k: v for k, v in touched_at.items() if k in weights}

    axes = {
        axis: ema(getattr(current, axis), target, scalar_rate)
        for axis, target in dense.items()
    }
    return current.with_changes(
        topics=weights, touched_at=touched_at, updated_at=now, **axes
    )


def blend_score(
    scores: Mapping[str, float],
    touched: Mapping[str, float],
    key: str,
    *,
    target: float,
    rate: float,
    default: float,
    cap: int,
    now: float,
) -> tuple[dict[str, float], dict[str, float]]:
    """EMA update of a single keyed affinity (channels), with the same cap policy as topics."""
    new_scores = dict(scores)
    new_touched = dict(touched)
    new_scores[key] = ema(new_scores.get(key, default), target, rate)
    new_touched[key] = now
    evict_to_cap(new_scores, new_touched, cap)
    return new_scores, new_touched


def seed_topics(
    current: ContentVector,
    topics: Iterable[str],
    *,
    weight: float,
    now: float,
    params: BrainParams,
) -> ContentVector:
    """Raise each topic to at least ``weight`` (explicit user choice, no EMA)."""
    weights = dict(current.topics)
    touched_at = dict(current.touched_at)
    for key in topics:
        weights[key] = max(weights.get(key, 0.0), clamp01(weight))
        touched_at[key] = now
    evict_to_cap(weights, touched_at, params.k_topics)
    return current.with_changes(topics=weights, touched_at=touched_at)


def drop_topic(current: ContentVector, topic: str) -> ContentVector:
    if topic not in current.topics:
        return current
    weights = {k: v for k, v in current.topics.items() if k != topic}
    touched_at = {k: v for k, v in current.touched_at.items() if k != topic}
    return current.with_changes(topics=weights, touched_at=touched_at)
