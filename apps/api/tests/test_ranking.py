import random
from datetime import datetime

import pytest

from neuro_ranking.diversification import diversify
from neuro_ranking.rank import SUBSCRIPTION_BOOST, cosine, rank
from neuro_ranking.types import ScoredItem, ScoreTrace
from neuro_user.brain import UserBrain
from neuro_user.features import ContentItem
from neuro_user.vector import ContentVector

NOON = datetime(2024, 5, 15, 12, 30)


def _item(i, title, channel=None, **kw):
    return ContentItem(id=str(i), title=title, channel_id=channel, **kw)


def test_cosine_over_shared_topics():
    a = ContentVector(topics={"chess": 1.0})
    b = ContentVector(topics={"chess": 1.0})
    assert cosine(a, b) == pytest.approx(1.0)

    c = ContentVector(topics={"chess": 0.6, "space": 0.8})
    assert cosine(a, c) == pytest.approx(0.6)


def test_cosine_falls_back_to_duration():
    a = ContentVector(topics={"chess": 1.0}, duration=0.2)
    b = ContentVector(topics={"cooking": 1.0}, duration=0.7)
    assert cosine(a, b) == pytest.approx(0.3 * 0.5)


def test_rank_drops_blocked_channels_and_topics():
    brain = UserBrain(blocked_topics={"politics"}, blocked_channels={"UCbad"})
    items = [
        _item(1, "Chess openings", "UC1"),
        _item(2, "Chess endgames", "UCbad"),
        _item(3, "US Politics tonight", "UC2"),
        _item(4, "Space telescopes", "UC3"),
    ]
    ids = [s.item.id for s in rank(items, brain, now=NOON, rng=random.Random(1))]
    assert sorted(ids) == ["1", "4"]


def test_rank_prefers_matching_topics_and_subscriptions():
    brain = UserBrain(
        global_vector=ContentVector(topics={"chess": 1.0}),
        afternoon_vector=ContentVector(topics={"chess": 1.0}),
        total_interactions=100,
    )
    items = [
        _item(1, "Cooking pasta", "UC1"),
        _item(2, "Chess", "UC2"),
        _item(3, "Gardening basics", "UCsub"),
    ]
    ranked = rank(items, brain, subscriptions={"UCsub"}, now=NOON, rng=random.Random(3))
    assert ranked[0].item.id == "2"
    sub = next(s for s in ranked if s.item.id == "3")
    assert sub.trace.boosts["subscription"] == SUBSCRIPTION_BOOST


def test_boredom_penalty_for_skipped_channels():
    brain = UserBrain(channel_scores={"UCdull": 0.1}, total_interactions=100)
    ranked = rank([_item(1, "Anything", "UCdull")], brain, now=NOON, rng=random.Random(0))
    assert ranked[0].trace.penalty == 0.5


def test_rank_is_reproducible_with_seeded_rng():
    brain = UserBrain()
    items = [_item(i, f"Video number {i}", f"UC{i}") for i in range(15)]
    a = [s.item.id for s in rank(items, brain, now=NOON, rng=random.Random(42))]
    b = [s.item.id for s in rank(items, brain, now=NOON, rng=random.Random(42))]
    assert a == b


def _scored(i, channel, topic, score):
    return ScoredItem(
        item=_item(i, topic, channel),
        vector=ContentVector(topics={topic: 1.0}),
        score=score,
        trace=ScoreTrace(id=str(i)),
    )


def test_diversify_one_per_channel_in_head():
    cands = [
        _scored(1, "A", "chess", 0.9),
        _scored(2, "A", "space", 0.8),
        _scored(3, "B", "cooking", 0.7),
        _scored(4, "A", "music", 0.6),
        _scored(5, "C", "lofi", 0.5),
    ]
    ordered, deferred = diversify(cands)
    assert [c.item.id for c in ordered] == ["1", "3", "5", "2", "4"]
    assert [c.item.id for c in deferred] == ["2", "4"]


def test_diversify_caps_topics_and_head_size():
    cands = [_scored(i, f"ch{i}", "chess", 1.0 - i / 100) for i in range(5)]
    cands += [_scored(10 + i, f"x{i}", f"t{i}", 0.5 - i / 100) for i in range(30)]
    ordered, _ = diversify(cands, head_size=20)

    head = ordered[:20]
    assert sum(1 for c in head if c.primary_topic == "chess") == 3
    assert len(ordered) == len(cands)
    assert len({c.item.id for c in ordered}) == len(cands)
