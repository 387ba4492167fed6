from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class WeightedKey(BaseModel):
    key: str
    weight: float


class VectorView(BaseModel):
    pacing: float
    complexity: float
    duration: float
    is_live: float
    topics: dict[str, float] = Field(default_factory=dict)


class PersonaOut(BaseModel):
    id: str
    title: str
    description: str
    icon: str
    tier: int


class BrainSnapshotOut(BaseModel):
    """Read-only view of a UserBrain for collaborators."""

    global_vector: VectorView
    morning_vector: VectorView
    afternoon_vector: VectorView
    evening_vector: VectorView
    night_vector: VectorView
    channel_scores: dict[str, float] = Field(default_factory=dict)
    blocked_topics: list[str] = Field(default_factory=list)
    blocked_channels: list[str] = Field(default_factory=list)
    preferred_topics: list[str] = Field(default_factory=list)
    total_interactions: int = 0
    consecutive_skips: int = 0


class BrainExport(BaseModel):
    """Diagnostics export: counts, top topics, top channels. No write-back path."""

    exported_at: float
    total_interactions: int
    consecutive_skips: int
    topic_count: int
    channel_count: int
    top_topics: list[WeightedKey] = Field(default_factory=list)
    top_channels: list[WeightedKey] = Field(default_factory=list)
    blocked_topics: list[str] = Field(default_factory=list)
    blocked_channels: list[str] = Field(default_factory=list)
    persona: PersonaOut
    engagement: str
    telemetry: dict[str, Any] = Field(default_factory=dict)
