from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping

from neuro_core.types import clamp01

DENSE_AXES = ("pacing", "complexity", "duration", "is_live")

_EMPTY: Mapping[str, float] = MappingProxyType({})


def _frozen(m: Mapping[str, float] | None) -> Mapping[str, float]:
    if not m:
        return _EMPTY
    return MappingProxyType(dict(m))


@dataclass(frozen=True)
class ContentVector:
    """
    A point in interest space: four dense axes plus a bounded topic map.

    Never mutated; every update builds a new instance (see
    ``neuro_user.signals.reducers``).
    """

    topics: Mapping[str, float] = field(default_factory=lambda: _EMPTY)
    touched_at: Mapping[str, float] = field(default_factory=lambda: _EMPTY)  # epoch seconds
    pacing: float = 0.5
    complexity: float = 0.5
    duration: float = 0.5
    is_live: float = 0.0
    updated_at: float | None = None

    def __post_init__(self) -> None:
        # keep every instance frozen and clamped no matter how it was built
        object.__setattr__(self, "topics", _frozen({k: clamp01(v) for k, v in self.topics.items()}))
        object.__setattr__(self, "touched_at", _frozen(self.touched_at))
        for axis in DENSE_AXES:
            object.__setattr__(self, axis, clamp01(getattr(self, axis)))

    def with_changes(self, **changes: Any) -> "ContentVector":
        return replace(self, **changes)

    def top_topics(self, n: int | None = None) -> list[tuple[str, float]]:
        # weight desc, then name for determinism
        items = sorted(self.topics.items(), key=lambda kv: (-kv[1], kv[0]))
        return items if n is None else items[:n]

    def magnitude(self) -> float:
        return float(sum(self.topics.values()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "topics": dict(self.topics),
            "touched_at": dict(self.touched_at),
            "pacing": self.pacing,
            "complexity": self.complexity,
            "duration": self.duration,
            "is_live": self.is_live,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ContentVector":
        data = data or {}
        topics = {str(k): float(v) for k, v in (data.get("topics") or {}).items()}
        touched = {
            str(k): float(v)
            for k, v in (data.get("touched_at") or {}).items()
            if k in topics
        }
        return cls(
            topics=topics,
            touched_at=touched,
            pacing=data.get("pacing", 0.5),
            complexity=data.get("complexity", 0.5),
            duration=data.get("duration", 0.5),
            is_live=data.get("is_live", 0.0),
            updated_at=data.get("updated_at"),
        )


@dataclass(frozen=True)
class ItemFeatures:
    """Feature view of a single content item, produced by ``neuro_user.features``."""

    topics: Mapping[str, float] = field(default_factory=dict)
    pacing: float = 0.5
    complexity: float = 0.5
    duration: float = 0.5
    is_live: float = 0.0

    def as_vector(self) -> ContentVector:
        # raw feature weights can exceed 1 (channel words weigh 2.0); scale before clamping
        top = max(self.topics.values(), default=0.0)
        scale = 1.0 / top if top > 1.0 else 1.0
        return ContentVector(
            topics={k: v * scale for k, v in self.topics.items()},
            pacing=self.pacing,
            complexity=self.complexity,
            duration=self.duration,
            is_live=self.is_live,
        )
