from __future__ import annotations

from enum import Enum

from neuro_user.brain import UserBrain


class EngagementLevel(str, Enum):
    ENGAGED = "Engaged"
    DRIFTING = "Drifting"
    BORED = "Bored"
    RESTLESS = "Restless"

    @property
    def severity(self) -> int:
        return _ORDER.index(self)


_ORDER = [
    EngagementLevel.ENGAGED,
    EngagementLevel.DRIFTING,
    EngagementLevel.BORED,
    EngagementLevel.RESTLESS,
]


def engagement_for_skips(
    consecutive_skips: int, thresholds: tuple[int, int, int] = (5, 15, 25)
) -> EngagementLevel:
    """Map a skip streak onto the four levels; each threshold is inclusive."""
    level = EngagementLevel.ENGAGED
    for bound, nxt in zip(sorted(thresholds), _ORDER[1:]):
        if consecutive_skips >= bound:
            level = nxt
    return level


def get_engagement(
    brain: UserBrain, thresholds: tuple[int, int, int] = (5, 15, 25)
) -> EngagementLevel:
    return engagement_for_skips(brain.consecutive_skips, thresholds)
