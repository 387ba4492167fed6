from __future__ import annotations

import time
from typing import Any

from neuro_persona.engagement import EngagementLevel
from neuro_persona.persona import Persona
from neuro_user.brain import UserBrain
from neuro_user.signals.selectors import top_keys
from neuro_user.vector import ContentVector

from .schemas import BrainExport, BrainSnapshotOut, PersonaOut, VectorView, WeightedKey


def vector_view(v: ContentVector) -> VectorView:
    return VectorView(
        pacing=v.pacing,
        complexity=v.complexity,
        duration=v.duration,
        is_live=v.is_live,
        topics=dict(v.topics),
    )


def persona_out(p: Persona) -> PersonaOut:
    return PersonaOut(**p.to_dict())


def snapshot_out(brain: UserBrain, *, preferred_n: int = 10) -> BrainSnapshotOut:
    return BrainSnapshotOut(
        global_vector=vector_view(brain.global_vector),
        morning_vector=vector_view(brain.morning_vector),
        afternoon_vector=vector_view(brain.afternoon_vector),
        evening_vector=vector_view(brain.evening_vector),
        night_vector=vector_view(brain.night_vector),
        channel_scores=dict(brain.channel_scores),
        blocked_topics=sorted(brain.blocked_topics),
        blocked_channels=sorted(brain.blocked_channels),
        preferred_topics=brain.preferred_topics(preferred_n),
        total_interactions=brain.total_interactions,
        consecutive_skips=brain.consecutive_skips,
    )


def build_export(
    brain: UserBrain,
    *,
    persona: Persona,
    engagement: EngagementLevel,
    telemetry: dict[str, Any] | None = None,
    top_n: int = 10,
) -> BrainExport:
    topics = brain.global_vector.topics
    channels = brain.channel_scores
    return BrainExport(
        exported_at=time.time(),
        total_interactions=brain.total_interactions,
        consecutive_skips=brain.consecutive_skips,
        topic_count=len(topics),
        channel_count=len(channels),
        top_topics=[
            WeightedKey(key=k, weight=topics[k])
            for k in top_keys(topics, top_n, exclude=brain.blocked_topics)
        ],
        top_channels=[
            WeightedKey(key=k, weight=channels[k])
            for k in top_keys(channels, top_n)
            if k not in brain.blocked_channels
        ],
        blocked_topics=sorted(brain.blocked_topics),
        blocked_channels=sorted(brain.blocked_channels),
        persona=persona_out(persona),
        engagement=engagement.value,
        telemetry=telemetry or {},
    )
