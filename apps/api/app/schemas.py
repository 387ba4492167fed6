from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, field_validator

from neuro_core.types import Interaction
from neuro_user.features import ContentItem


class InteractionRequest(Interaction):
    """Wire shape of an interaction; unknown kinds fail validation with 422."""


class CandidateIn(BaseModel):
    id: str
    title: str
    channel_id: str | None = None
    channel_name: str = ""
    duration_sec: int = Field(default=0, ge=0)
    is_live: bool = False

    def to_item(self) -> ContentItem:
        return ContentItem(**self.model_dump())


class RankRequest(BaseModel):
    candidates: List[CandidateIn] = Field(default_factory=list)
    subscriptions: List[str] = Field(default_factory=list)
    limit: int | None = Field(default=None, ge=1)
    seed: int | None = None  # fixes the jitter for reproducible feeds


class RankedItemOut(BaseModel):
    id: str
    title: str
    channel_id: str | None = None
    score: float
    primary_topic: str | None = None


class OnboardingRequest(BaseModel):
    topics: List[str] = Field(
        default_factory=list, examples=[["lofi", "chess", "space"]]
    )


class NotInterestedRequest(BaseModel):
    topics: List[str] = Field(default_factory=list)
    channel_id: str | None = None

    @field_validator("channel_id")
    def blank_channel(cls, v):
        if v is not None and not v.strip():
            return None
        return v


class ChangedOut(BaseModel):
    changed: bool
    blocked_topics: List[str] = Field(default_factory=list)
    blocked_channels: List[str] = Field(default_factory=list)
    preferred_topics: List[str] = Field(default_factory=list)
