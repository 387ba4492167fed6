from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, Field, field_validator

ChannelId = str
Topic = str


def clamp01(x: float | None, default: float = 0.0) -> float:
    """Clamp into [0, 1]; None / NaN / inf collapse to ``default``."""
    if x is None:
        return default
    try:
        v = float(x)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(v):
        return default
    return max(0.0, min(1.0, v))


def normalize_topic(raw: str) -> str:
    # lower-case, collapse whitespace
    return " ".join(str(raw).lower().split())


Unit = Annotated[float, BeforeValidator(clamp01)]
OptionalUnit = Annotated[
    float | None, BeforeValidator(lambda v: None if v is None else clamp01(v))
]


class SignalKind(str, Enum):
    WATCH_COMPLETE = "watch-complete"
    WATCH_PARTIAL = "watch-partial"
    SKIP = "skip"
    LIKE = "like"
    DISLIKE = "dislike"

    @property
    def is_positive(self) -> bool:
        return self in (
            SignalKind.WATCH_COMPLETE,
            SignalKind.WATCH_PARTIAL,
            SignalKind.LIKE,
        )


class Interaction(BaseModel):
    """
    One implicit or explicit interaction event.

    Out-of-range numbers are clamped, never rejected: this is best-effort
    telemetry. Dense axes are optional; when absent only topics and the
    channel learn from the event.
    """

    kind: SignalKind
    topics: list[str] = Field(default_factory=list)
    channel_id: ChannelId | None = None
    fraction: OptionalUnit = None
    weight: Unit = 1.0
    pacing: OptionalUnit = None
    complexity: OptionalUnit = None
    duration: OptionalUnit = None
    is_live: OptionalUnit = None
    timestamp: datetime = Field(default_factory=datetime.now)

    @field_validator("topics", mode="before")
    @classmethod
    def _clean_topics(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, (list, tuple, set, frozenset)):
            raise ValueError("topics must be a list of strings")
        out: list[str] = []
        for t in v:
            if not isinstance(t, str):
                continue
            n = normalize_topic(t)
            if n and n not in out:
                out.append(n)
        return out

    @field_validator("channel_id", mode="before")
    @classmethod
    def _clean_channel(cls, v):
        if v is None:
            return None
        s = str(v).strip()
        return s or None

    def dense(self) -> dict[str, float]:
        axes = {
            "pacing": self.pacing,
            "complexity": self.complexity,
            "duration": self.duration,
            "is_live": self.is_live,
        }
        return {k: v for k, v in axes.items() if v is not None}


class TimeBucket(str, Enum):
    MORNING = "morning"  # 06-12
    AFTERNOON = "afternoon"  # 12-18
    EVENING = "evening"  # 18-24
    NIGHT = "night"  # 00-06

    @classmethod
    def for_hour(cls, hour: int) -> "TimeBucket":
        if 6 <= hour < 12:
            return cls.MORNING
        if 12 <= hour < 18:
            return cls.AFTERNOON
        if 18 <= hour < 24:
            return cls.EVENING
        return cls.NIGHT

    @classmethod
    def for_time(cls, ts: datetime) -> "TimeBucket":
        # aware timestamps are converted to local time; naive ones are local already
        local = ts.astimezone() if ts.tzinfo is not None else ts
        return cls.for_hour(local.hour)


@dataclass
class BrainParams:
    k_topics: int = 64
    k_channels: int = 256
    alpha_scalar: float = 0.3  # EMA rate for dense axes
    alpha_topic: float = 0.12  # EMA rate for topic weights
    alpha_channel: float = 0.05  # slow moving channel affinity
    bucket_boost: float = 1.5  # time buckets learn faster than the global vector
    beta_daily: float = 0.02  # passive fade per idle day
    prune_below: float = 0.01
    channel_default: float = 0.5
    seed_weight: float = 0.5
    preferred_n: int = 10
    # discovery
    discovery_top_n: int = 5
    discovery_min_topics: int = 5
    # persona / engagement
    persona_min_interactions: int = 15
    persona_min_topics: int = 3
    binger_interactions: int = 500
    engagement_thresholds: tuple[int, int, int] = (5, 15, 25)
    # persistence
    flush_debounce_sec: float = 3.0
    flush_retry_attempts: int = 3
    flush_backoff_base: float = 0.2
    flush_backoff_cap: float = 2.0
