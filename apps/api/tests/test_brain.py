import pytest
from conftest import NOON, make_signal

from neuro_core.types import BrainParams, SignalKind
from neuro_user.brain import BrainStore, UserBrain
from neuro_user.features import ContentItem, extract_features, interaction_for, tokenize


def test_like_updates_global_bucket_and_channel():
    s = BrainStore(BrainParams())
    brain = s.apply_signal(make_signal("like", ["lofi"], channel_id="UC1", pacing=1.0))

    assert brain.total_interactions == 1
    assert brain.global_vector.topics["lofi"] == pytest.approx(0.12)
    # NOON is an afternoon; buckets learn 1.5x faster
    assert brain.afternoon_vector.topics["lofi"] == pytest.approx(0.18)
    assert brain.morning_vector.topics == {}
    assert brain.global_vector.pacing == pytest.approx(0.65)
    assert brain.channel_scores["UC1"] == pytest.approx(0.5 * 0.95 + 0.05)


def test_skip_counter_increments_and_resets():
    s = BrainStore(BrainParams())
    for _ in range(3):
        s.apply_signal(make_signal("skip", ["x"]))
    assert s.brain.consecutive_skips == 3
    s.apply_signal(make_signal("watch-complete", ["x"]))
    assert s.brain.consecutive_skips == 0
    assert s.brain.total_interactions == 4


def test_caps_hold_for_topics_and_channels():
    p = BrainParams(k_topics=5, k_channels=3)
    s = BrainStore(p)
    for i in range(40):
        s.apply_signal(
            make_signal("like", [f"t{i}", f"u{i}"], channel_id=f"ch{i}", weight=5.0)
        )
        b = s.brain
        assert len(b.global_vector.topics) <= 5
        assert len(b.afternoon_vector.topics) <= 5
        assert len(b.channel_scores) <= 3
        assert set(b.channel_touched_at) == set(b.channel_scores)
    for w in list(s.brain.global_vector.topics.values()) + list(s.brain.channel_scores.values()):
        assert 0.0 <= w <= 1.0


def test_snapshot_is_not_affected_by_later_updates():
    s = BrainStore(BrainParams())
    s.apply_signal(make_signal("like", ["chess"]))
    snap = s.brain
    s.apply_signal(make_signal("like", ["chess", "space"]))
    assert "space" not in snap.global_vector.topics
    assert snap.total_interactions == 1


def test_block_and_unblock_are_idempotent():
    s = BrainStore(BrainParams())
    assert s.block_topic(" Politics ") is True
    assert s.block_topic("politics") is False
    assert s.brain.blocked_topics == {"politics"}
    assert s.unblock_topic("politics") is True
    assert s.unblock_topic("politics") is False

    assert s.block_channel("UC9") is True
    assert s.block_channel("UC9") is False
    assert s.unblock_channel("UC9") is True
    assert s.brain.blocked_channels == frozenset()


def test_seed_and_drop_topics():
    s = BrainStore(BrainParams())
    s.apply_signal(make_signal("like", ["chess"]))
    assert s.seed_topics(["Chess", "space"]) is True
    assert s.brain.global_vector.topics["chess"] == pytest.approx(0.5)
    assert s.brain.global_vector.topics["space"] == pytest.approx(0.5)
    assert s.brain.preferred_topics() == ["chess", "space"]

    assert s.drop_topic("chess") is True
    assert "chess" not in s.brain.global_vector.topics
    assert "chess" not in s.brain.afternoon_vector.topics
    assert s.drop_topic("chess") is False


def test_preferred_topics_skip_blocked():
    s = BrainStore(BrainParams())
    s.seed_topics(["us politics", "chess"])
    s.block_topic("politics")
    assert s.brain.preferred_topics() == ["chess"]


def test_reset_restores_defaults():
    s = BrainStore(BrainParams())
    s.apply_signal(make_signal("like", ["chess"], channel_id="UC1"))
    s.block_topic("politics")
    brain = s.reset()
    assert brain == UserBrain()
    assert brain.global_vector.pacing == 0.5
    assert brain.global_vector.is_live == 0.0


def test_brain_dict_round_trip():
    s = BrainStore(BrainParams())
    s.apply_signal(make_signal("like", ["chess"], channel_id="UC1", complexity=0.9))
    s.block_topic("politics")
    s.block_channel("UC2")
    data = s.brain.to_dict()
    assert UserBrain.from_dict(data).to_dict() == data


def test_from_dict_clamps_bad_values():
    brain = UserBrain.from_dict(
        {
            "global": {"topics": {"a": 7.0}, "pacing": -1},
            "channel_scores": {"UC1": 2.0},
            "total_interactions": -5,
        }
    )
    assert brain.global_vector.topics["a"] == 1.0
    assert brain.global_vector.pacing == 0.0
    assert brain.channel_scores["UC1"] == 1.0
    assert brain.total_interactions == 0


def test_tokenize_drops_stop_words_and_short_words():
    assert tokenize("The BEST Lofi beats, to study & relax!") == [
        "lofi",
        "beats",
        "study",
        "relax",
    ]


def test_extract_features():
    item = ContentItem(
        id="v1",
        title="Machine Learning Explained",
        channel_name="Two Minute Papers",
        duration_sec=600,
    )
    f = extract_features(item)
    assert f.topics["papers"] == 2.0
    assert f.topics["machine"] == 1.0
    assert f.topics["machine learning"] == 1.5
    assert f.duration == pytest.approx(0.5)
    assert f.pacing == pytest.approx(0.5)
    assert f.complexity == pytest.approx(len(item.title) / 60)

    v = f.as_vector()
    assert max(v.topics.values()) == 1.0


def test_extract_features_defaults_duration():
    live = extract_features(ContentItem(id="l", title="Live now", is_live=True))
    assert live.duration == 1.0
    assert live.is_live == 1.0
    short = extract_features(ContentItem(id="s", title="quick tip"))
    assert short.duration == pytest.approx(0.25)


def test_interaction_for_item():
    item = ContentItem(id="v1", title="Chess openings", channel_id="UC7", duration_sec=1200)
    it = interaction_for(item, SignalKind.WATCH_PARTIAL, fraction=0.5, timestamp=NOON)
    assert it.channel_id == "UC7"
    assert it.topics[0] == "chess openings"
    assert set(it.topics) == {"chess openings", "chess", "openings"}
    assert it.duration == 1.0
    assert it.timestamp == NOON
