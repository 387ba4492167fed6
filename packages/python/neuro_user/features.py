from __future__ import annotations

import re
from dataclasses import dataclass

from neuro_core.config import STOP_WORDS
from neuro_core.types import Interaction, SignalKind, clamp01
from neuro_user.vector import ItemFeatures

_EDGE = re.compile(r"^[\W_]+|[\W_]+$")


@dataclass
class ContentItem:
    """Minimal view of a video/track the engine can learn from or rank."""

    id: str
    title: str
    channel_id: str | None = None
    channel_name: str = ""
    duration_sec: int = 0
    is_live: bool = False


def tokenize(text: str) -> list[str]:
    words = []
    for raw in text.lower().split():
        word = _EDGE.sub("", raw)
        if len(word) > 2 and word not in STOP_WORDS:
            words.append(word)
    return words


def extract_features(item: ContentItem) -> ItemFeatures:
    """
    Title/channel → topic weights plus heuristic dense axes.

    Channel words weigh 2.0, each title word adds 1.0, adjacent title words
    also form a bigram at 1.5 ("machine learning" vs "washing machine").
    """
    topics: dict[str, float] = {}
    title_words = tokenize(item.title)

    for word in tokenize(item.channel_name):
        topics[word] = 2.0
    for word in title_words:
        topics[word] = topics.get(word, 0.0) + 1.0
    for a, b in zip(title_words, title_words[1:]):
        topics[f"{a} {b}"] = 1.5

    if item.duration_sec > 0:
        seconds = item.duration_sec
    else:
        seconds = 3600 if item.is_live else 300
    duration = clamp01(seconds / 1200.0)  # 20 min = 1.0
    return ItemFeatures(
        topics=topics,
        duration=duration,
        pacing=1.0 - duration,
        complexity=clamp01(len(item.title) / 60.0),
        is_live=1.0 if item.is_live else 0.0,
    )


def interaction_for(
    item: ContentItem,
    kind: SignalKind,
    *,
    fraction: float | None = None,
    weight: float = 1.0,
    max_topics: int = 8,
    **extra,
) -> Interaction:
    """Build an Interaction for ``item`` from its extracted features."""
    feats = extract_features(item)
    ranked = sorted(feats.topics.items(), key=lambda kv: (-kv[1], kv[0]))
    return Interaction(
        kind=kind,
        topics=[t for t, _ in ranked[:max_topics]],
        channel_id=item.channel_id,
        fraction=fraction,
        weight=weight,
        pacing=feats.pacing,
        complexity=feats.complexity,
        duration=feats.duration,
        is_live=feats.is_live,
        **extra,
    )
