from __future__ import annotations

import hashlib
from datetime import datetime
from typing import Iterable

from neuro_core.config import SEED_QUERIES
from neuro_core.types import BrainParams
from neuro_persona.persona import Persona, get_persona
from neuro_user.brain import UserBrain
from neuro_user.signals.selectors import hits_blocked, top_keys

# persona -> phrasing template for one extra query built on the strongest topic
PERSONA_PHRASING: dict[Persona, str] = {
    Persona.AUDIOPHILE: "{topic} mix",
    Persona.LIVEWIRE: "{topic} live",
    Persona.NIGHT_OWL: "{topic} late night",
    Persona.BINGER: "{topic} full series",
    Persona.SCHOLAR: "{topic} explained",
    Persona.DEEP_DIVER: "{topic} documentary",
    Persona.SKIMMER: "{topic} shorts",
    Persona.SPECIALIST: "{topic} deep dive",
    Persona.EXPLORER: "new {topic}",
}


def _shuffle_key(salt: int):
    # stable per snapshot, varies as the brain evolves
    def key(topic: str) -> str:
        return hashlib.sha1(f"{salt}:{topic}".encode("utf-8")).hexdigest()

    return key


def _dedupe(queries: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for q in queries:
        q = " ".join(q.split())
        k = q.lower()
        if q and k not in seen:
            seen.add(k)
            out.append(q)
    return out


def generate_discovery_queries(
    brain: UserBrain,
    *,
    persona: Persona | None = None,
    now: datetime | None = None,
    params: BrainParams | None = None,
) -> list[str]:
    """
    Turn the interest vector into retrieval queries.

    Strategies, in order:
      A. the two strongest topics on their own
      B. a "mixer" of the top two
      C. the strongest topic of the current time bucket
      D. one persona-flavoured phrasing of the strongest topic
    Equal weights are ordered by a hash keyed on ``total_interactions`` so the
    output is deterministic per snapshot. With too few eligible topics the
    fixed seed list pads the result. Every query is checked against both
    block lists last, so nothing blocked can leak through any strategy.
    """
    p = params or BrainParams()
    now = now or datetime.now()
    persona = persona or get_persona(brain, p)
    blocked = set(brain.blocked_topics) | set(brain.blocked_channels)
    tie = _shuffle_key(brain.total_interactions)

    top = top_keys(
        brain.global_vector.topics, p.discovery_top_n, exclude=blocked, tie_key=tie
    )

    queries: list[str] = []
    queries.extend(top[:2])
    if len(top) >= 2:
        queries.append(f"{top[0]} {top[1]}")

    obsession = top_keys(brain.bucket_at(now).topics, 1, exclude=blocked, tie_key=tie)
    queries.extend(obsession)

    template = PERSONA_PHRASING.get(persona)
    if template and top:
        queries.append(template.format(topic=top[0]))

    if len(top) < p.discovery_min_topics:
        queries.extend(SEED_QUERIES)

    return [q for q in _dedupe(queries) if not hits_blocked(q, blocked)]
