from neuro_core.types import BrainParams, Interaction, SignalKind


def topic_target(it: Interaction) -> float:
    """
    Map a signal onto the value its topics blend toward.

    - like: the signal's own weight (default 1.0)
    - watch-complete: 0.8 x weight
    - watch-partial: 0.8 x weight x fraction (fraction defaults to 0.5)
    - skip / dislike: 0.0, i.e. pull the topics down
    """
    if it.kind == SignalKind.LIKE:
        return it.weight
    if it.kind == SignalKind.WATCH_COMPLETE:
        return it.weight * 0.8
    if it.kind == SignalKind.WATCH_PARTIAL:
        frac = 0.5 if it.fraction is None else it.fraction
        return it.weight * frac * 0.8
    return 0.0


def rate_multiplier(it: Interaction) -> float:
    # dislike is a deliberate action and corrects harder than a skip
    if it.kind == SignalKind.DISLIKE:
        return 2.0
    if it.kind == SignalKind.SKIP:
        return 0.5
    return 1.0


def dense_targets(it: Interaction) -> dict[str, float]:
    """Positive signals pull dense axes toward the item, negative ones away from it."""
    axes = it.dense()
    if it.kind.is_positive:
        return axes
    return {k: 1.0 - v for k, v in axes.items()}


def channel_target(it: Interaction) -> float:
    return 1.0 if it.kind.is_positive else 0.0


def learning_rates(
    it: Interaction, params: BrainParams, *, bucket: bool = False
) -> tuple[float, float]:
    """Return (scalar_rate, topic_rate) for the global vector or a time bucket."""
    mult = rate_multiplier(it)
    if bucket:
        mult *= params.bucket_boost
    scalar = min(1.0, max(0.0, params.alpha_scalar * mult))
    topic = min(1.0, max(0.0, params.alpha_topic * mult))
    return scalar, topic
