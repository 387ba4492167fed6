from __future__ import annotations

from enum import Enum

from neuro_core.config import MUSIC_KEYWORDS
from neuro_core.types import BrainParams
from neuro_user.brain import UserBrain
from neuro_user.vector import ContentVector


class Persona(Enum):
    """Closed set of personas. Value = (title, description, icon, tier)."""

    INITIATE = ("The Initiate", "Just getting started. Your profile is still forming.", "🌱", 0)
    AUDIOPHILE = ("The Audiophile", "You come here mostly for music. The vibe is everything.", "🎧", 1)
    LIVEWIRE = ("The Livewire", "You love the raw energy of Livestreams and premieres.", "🔴", 1)
    NIGHT_OWL = ("The Night Owl", "You thrive in the dark. Most of your watching happens after midnight.", "🦉", 1)
    BINGER = ("The Binger", "Once you start, you can't stop. You consume content in massive waves.", "🍿", 2)
    SCHOLAR = ("The Scholar", "High-complexity content. You aren't here to be entertained, you're here to grow.", "🎓", 1)
    DEEP_DIVER = ("The Deep Diver", "You prefer long-form video essays and documentaries.", "🤿", 1)
    SKIMMER = ("The Skimmer", "Fast-paced, short content. You want the dopamine, now.", "⚡", 1)
    SPECIALIST = ("The Specialist", "Laser-focused on a few niches. You know exactly what you like.", "🎯", 1)
    EXPLORER = ("The Explorer", "Chaotic and beautiful. You watch a bit of everything.", "🧭", 1)

    @property
    def title(self) -> str:
        return self.value[0]

    @property
    def description(self) -> str:
        return self.value[1]

    @property
    def icon(self) -> str:
        return self.value[2]

    @property
    def tier(self) -> int:
        return self.value[3]

    def to_dict(self) -> dict:
        return {
            "id": self.name,
            "title": self.title,
            "description": self.description,
            "icon": self.icon,
            "tier": self.tier,
        }


def _mag(cv: ContentVector) -> float:
    return cv.magnitude()


def diversity_index(v: ContentVector) -> float:
    """Strength of the 5th topic relative to the 1st; 0 with fewer than five topics."""
    ranked = sorted(v.topics.values(), reverse=True)
    if len(ranked) < 5 or ranked[0] <= 0:
        return 0.0
    return ranked[4] / ranked[0]


def music_share(v: ContentVector) -> float:
    total = v.magnitude()
    if total <= 0:
        return 0.0
    music = sum(
        w for k, w in v.topics.items() if k in MUSIC_KEYWORDS or "feat" in k
    )
    return music / total


def is_nocturnal(brain: UserBrain) -> bool:
    night = _mag(brain.night_vector)
    return night > _mag(brain.morning_vector) * 1.5 and night > 5.0


def get_persona(brain: UserBrain, params: BrainParams | None = None) -> Persona:
    """
    Classify a brain snapshot.

    INITIATE until the profile has enough interactions and distinct topics;
    after that the first matching rule of the waterfall wins. Tier only moves
    up with more interactions or topics: INITIATE (0) is left permanently once
    both minimums hold and BINGER (2) requires more interactions than any
    other persona.
    """
    p = params or BrainParams()
    v = brain.global_vector
    if (
        brain.total_interactions < p.persona_min_interactions
        or len(v.topics) < p.persona_min_topics
    ):
        return Persona.INITIATE

    # BINGER (tier 2) depends only on volume and pacing
    if brain.total_interactions > p.binger_interactions and v.pacing > 0.6:
        return Persona.BINGER

    # content type overrides
    if music_share(v) > 0.4:
        return Persona.AUDIOPHILE
    if v.is_live > 0.6:
        return Persona.LIVEWIRE

    # behavioural
    if is_nocturnal(brain):
        return Persona.NIGHT_OWL

    # intellectual style
    if v.complexity > 0.75:
        return Persona.SCHOLAR
    if v.duration > 0.70:
        return Persona.DEEP_DIVER

    # attention style
    if v.duration < 0.35 and v.pacing > 0.65:
        return Persona.SKIMMER

    # breadth
    if diversity_index(v) < 0.25:
        return Persona.SPECIALIST
    return Persona.EXPLORER
