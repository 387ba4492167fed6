import re
from typing import Iterable, Mapping

_WORD = re.compile(r"[^\W_]+")


def hits_blocked(text: str, blocked: Iterable[str]) -> bool:
    """
    True if ``text`` contains any blocked term as whole words.

    Multi-word blocked terms match as a phrase; single-word terms match any
    word of ``text`` ("us politics" is hit by "politics").
    """
    low = " ".join(_WORD.findall(text.lower()))
    words = set(low.split())
    for term in blocked:
        parts = _WORD.findall(term.lower())
        if not parts:
            continue
        if len(parts) == 1:
            if parts[0] in words:
                return True
        elif re.search(rf"\b{re.escape(' '.join(parts))}\b", low):
            return True
    return False


def top_keys(
    weights: Mapping[str, float],
    k: int,
    *,
    exclude: Iterable[str] = (),
    tie_key=None,
) -> list[str]:
    """
    Top ``k`` keys by descending weight, skipping any key that hits ``exclude``.

    Ties break on ``tie_key(key)`` when given, otherwise on the key itself.
    """
    blocked = list(exclude)
    ranked = sorted(
        weights.items(),
        key=lambda kv: (-kv[1], tie_key(kv[0]) if tie_key else kv[0]),
    )
    out: list[str] = []
    for key, _ in ranked:
        if len(out) >= k:
            break
        if blocked and hits_blocked(key, blocked):
            continue
        out.append(key)
    return out
