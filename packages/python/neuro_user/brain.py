from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from datetime import datetime
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from neuro_core.types import (
    BrainParams,
    ChannelId,
    Interaction,
    SignalKind,
    TimeBucket,
    normalize_topic,
)
from neuro_user.signals.reducers import blend_score, blend_vector, drop_topic, seed_topics
from neuro_user.signals.selectors import top_keys
from neuro_user.signals.weights import channel_target, dense_targets, learning_rates, topic_target
from neuro_user.vector import ContentVector

_BUCKET_FIELDS = {
    TimeBucket.MORNING: "morning_vector",
    TimeBucket.AFTERNOON: "afternoon_vector",
    TimeBucket.EVENING: "evening_vector",
    TimeBucket.NIGHT: "night_vector",
}


def _proxy(m: Mapping[str, float] | None) -> Mapping[str, float]:
    return MappingProxyType(dict(m or {}))


@dataclass(frozen=True)
class UserBrain:
    """
    Full personalization aggregate for one profile.

    Instances are immutable: ``BrainStore`` swaps in a new one per update, so
    a reference handed out as a snapshot never changes underneath a reader.
    """

    global_vector: ContentVector = field(default_factory=ContentVector)
    morning_vector: ContentVector = field(default_factory=ContentVector)  # 06-12
    afternoon_vector: ContentVector = field(default_factory=ContentVector)  # 12-18
    evening_vector: ContentVector = field(default_factory=ContentVector)  # 18-24
    night_vector: ContentVector = field(default_factory=ContentVector)  # 00-06
    channel_scores: Mapping[ChannelId, float] = field(default_factory=dict)
    channel_touched_at: Mapping[ChannelId, float] = field(default_factory=dict)
    blocked_topics: frozenset[str] = frozenset()
    blocked_channels: frozenset[str] = frozenset()
    total_interactions: int = 0
    consecutive_skips: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "channel_scores", _proxy(self.channel_scores))
        object.__setattr__(self, "channel_touched_at", _proxy(self.channel_touched_at))
        object.__setattr__(self, "blocked_topics", frozenset(self.blocked_topics))
        object.__setattr__(self, "blocked_channels", frozenset(self.blocked_channels))
        object.__setattr__(self, "total_interactions", max(0, int(self.total_interactions)))
        object.__setattr__(self, "consecutive_skips", max(0, int(self.consecutive_skips)))

    def bucket(self, which: TimeBucket) -> ContentVector:
        return getattr(self, _BUCKET_FIELDS[which])

    def bucket_at(self, ts: datetime) -> ContentVector:
        return self.bucket(TimeBucket.for_time(ts))

    def preferred_topics(self, n: int = 10) -> list[str]:
        """Top-n global topics, blocked ones excluded. Derived, never stored."""
        return top_keys(self.global_vector.topics, n, exclude=self.blocked_topics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "global": self.global_vector.to_dict(),
            "morning": self.morning_vector.to_dict(),
            "afternoon": self.afternoon_vector.to_dict(),
            "evening": self.evening_vector.to_dict(),
            "night": self.night_vector.to_dict(),
            "channel_scores": dict(self.channel_scores),
            "channel_touched_at": dict(self.channel_touched_at),
            "blocked_topics": sorted(self.blocked_topics),
            "blocked_channels": sorted(self.blocked_channels),
            "total_interactions": self.total_interactions,
            "consecutive_skips": self.consecutive_skips,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserBrain":
        scores = {str(k): float(v) for k, v in (data.get("channel_scores") or {}).items()}
        return cls(
            global_vector=ContentVector.from_dict(data.get("global")),
            morning_vector=ContentVector.from_dict(data.get("morning")),
            afternoon_vector=ContentVector.from_dict(data.get("afternoon")),
            evening_vector=ContentVector.from_dict(data.get("evening")),
            night_vector=ContentVector.from_dict(data.get("night")),
            channel_scores={k: min(1.0, max(0.0, v)) for k, v in scores.items()},
            channel_touched_at={
                str(k): float(v)
                for k, v in (data.get("channel_touched_at") or {}).items()
                if k in scores
            },
            blocked_topics={normalize_topic(t) for t in data.get("blocked_topics") or []},
            blocked_channels={str(c) for c in data.get("blocked_channels") or []},
            total_interactions=int(data.get("total_interactions") or 0),
            consecutive_skips=int(data.get("consecutive_skips") or 0),
        )


class BrainStore:
    """
    Canonical in-memory state plus the only code paths allowed to change it.

    Every method builds a new ``UserBrain`` and swaps it in; callers are
    expected to hold the engine lock around mutations. Reads of ``.brain``
    are always a complete, consistent value.
    """

    def __init__(self, params: BrainParams, brain: UserBrain | None = None):
        self.params = params
        self.brain = brain or UserBrain()

    # Signals
    def apply_signal(self, it: Interaction, timestamp: datetime | None = None) -> UserBrain:
        ts = timestamp or it.timestamp
        now = ts.timestamp()
        b = self.brain
        p = self.params

        target = topic_target(it)
        dense = dense_targets(it)

        g_scalar, g_topic = learning_rates(it, p)
        new_global = blend_vector(
            b.global_vector,
            topics=it.topics,
            topic_target=target,
            dense=dense,
            scalar_rate=g_scalar,
            topic_rate=g_topic,
            now=now,
            params=p,
        )

        bucket = TimeBucket.for_time(ts)
        b_scalar, b_topic = learning_rates(it, p, bucket=True)
        new_bucket = blend_vector(
            b.bucket(bucket),
            topics=it.topics,
            topic_target=target,
            dense=dense,
            scalar_rate=b_scalar,
            topic_rate=b_topic,
            now=now,
            params=p,
        )

        scores, touched = b.channel_scores, b.channel_touched_at
        if it.channel_id:
            scores, touched = blend_score(
                b.channel_scores,
                b.channel_touched_at,
                it.channel_id,
                target=channel_target(it),
                rate=p.alpha_channel,
                default=p.channel_default,
                cap=p.k_channels,
                now=now,
            )

        skips = b.consecutive_skips + 1 if it.kind == SignalKind.SKIP else 0
        self.brain = replace(
            b,
            global_vector=new_global,
            channel_scores=scores,
            channel_touched_at=touched,
            total_interactions=b.total_interactions + 1,
            consecutive_skips=skips,
            **{_BUCKET_FIELDS[bucket]: new_bucket},
        )
        return self.brain

    # Blocks
    def block_topic(self, topic: str) -> bool:
        t = normalize_topic(topic)
        if not t or t in self.brain.blocked_topics:
            return False
        self.brain = replace(self.brain, blocked_topics=self.brain.blocked_topics | {t})
        return True

    def unblock_topic(self, topic: str) -> bool:
        t = normalize_topic(topic)
        if t not in self.brain.blocked_topics:
            return False
        self.brain = replace(self.brain, blocked_topics=self.brain.blocked_topics - {t})
        return True

    def block_channel(self, channel_id: str) -> bool:
        c = str(channel_id).strip()
        if not c or c in self.brain.blocked_channels:
            return False
        self.brain = replace(self.brain, blocked_channels=self.brain.blocked_channels | {c})
        return True

    def unblock_channel(self, channel_id: str) -> bool:
        c = str(channel_id).strip()
        if c not in self.brain.blocked_channels:
            return False
        self.brain = replace(self.brain, blocked_channels=self.brain.blocked_channels - {c})
        return True

    # Explicit interests
    def seed_topics(self, topics: Iterable[str], weight: float | None = None) -> bool:
        keys = [t for t in dict.fromkeys(normalize_topic(x) for x in topics) if t]
        if not keys:
            return False
        w = self.params.seed_weight if weight is None else weight
        self.brain = replace(
            self.brain,
            global_vector=seed_topics(
                self.brain.global_vector, keys, weight=w, now=time.time(), params=self.params
            ),
        )
        return True

    def drop_topic(self, topic: str) -> bool:
        t = normalize_topic(topic)
        b = self.brain
        vectors = {
            "global_vector": b.global_vector,
            **{name: getattr(b, name) for name in _BUCKET_FIELDS.values()},
        }
        if not any(t in v.topics for v in vectors.values()):
            return False
        self.brain = replace(b, **{name: drop_topic(v, t) for name, v in vectors.items()})
        return True

    def reset(self) -> UserBrain:
        self.brain = UserBrain()
        return self.brain
