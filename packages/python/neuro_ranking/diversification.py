from collections import defaultdict

from .types import ScoredItem


def diversify(
    candidates: list[ScoredItem],  # descending score order
    *,
    head_size: int = 20,
    per_channel_cap: int = 1,
    per_topic_cap: int = 3,
) -> tuple[list[ScoredItem], list[ScoredItem]]:
    """
    Two-phase re-rank.

    Phase 1 fills the first ``head_size`` slots strictly: at most
    ``per_channel_cap`` items per channel and ``per_topic_cap`` per primary
    topic. Phase 2 appends everything left in score order.
    Returns (ordered, deferred) where deferred are the items pushed out of the head.
    """
    channel_counts = defaultdict(int)
    topic_counts = defaultdict(int)

    def channel_of(c: ScoredItem) -> str:
        # Fallback bucket so unknown channels don't get grouped
        return c.item.channel_id or f"__solo__:{c.item.id}"

    head: list[ScoredItem] = []
    deferred: list[ScoredItem] = []
    for c in candidates:
        if len(head) >= head_size:
            deferred.append(c)
            continue
        ch = channel_of(c)
        topic = c.primary_topic
        if channel_counts[ch] >= per_channel_cap or (
            topic and topic_counts[topic] >= per_topic_cap
        ):
            deferred.append(c)
            continue
        head.append(c)
        channel_counts[ch] += 1
        if topic:
            topic_counts[topic] += 1

    return head + deferred, deferred
