import math

import pytest
from pydantic import ValidationError

from neuro_core.types import BrainParams, Interaction, SignalKind, TimeBucket, clamp01
from neuro_user.signals.decay import idle_decay
from neuro_user.signals.reducers import blend_vector, ema, evict_to_cap
from neuro_user.signals.selectors import hits_blocked, top_keys
from neuro_user.signals.weights import dense_targets, learning_rates, topic_target
from neuro_user.vector import ContentVector

DAY = 86400.0


def test_clamp01_handles_garbage():
    assert clamp01(1.7) == 1.0
    assert clamp01(-3) == 0.0
    assert clamp01(None, 0.5) == 0.5
    assert clamp01(float("nan")) == 0.0
    assert clamp01(float("inf"), 0.3) == 0.3
    assert clamp01("abc") == 0.0


def test_interaction_clamps_and_normalizes():
    it = Interaction(
        kind="watch-partial",
        topics=["  Lo  Fi ", "", "lo fi", "Chess"],
        channel_id="  ",
        fraction=3.0,
        weight=-2,
        duration=1.4,
    )
    assert it.topics == ["lo fi", "chess"]
    assert it.channel_id is None
    assert it.fraction == 1.0
    assert it.weight == 0.0
    assert it.dense() == {"duration": 1.0}


def test_interaction_rejects_unknown_kind():
    with pytest.raises(ValidationError):
        Interaction(kind="teleport", topics=["x"])


@pytest.mark.parametrize("topics", [5, 2.5, {"chess": 1}, b"chess"])
def test_interaction_rejects_non_list_topics(topics):
    with pytest.raises(ValidationError):
        Interaction(kind="like", topics=topics)


def test_interaction_topics_skip_non_strings():
    assert Interaction(kind="like", topics=[None, "Chess", 7, ["x"]]).topics == ["chess"]
    assert Interaction(kind="like", topics="Chess").topics == ["chess"]
    assert Interaction(kind="like", topics=None).topics == []


@pytest.mark.parametrize(
    "hour,bucket",
    [
        (0, TimeBucket.NIGHT),
        (5, TimeBucket.NIGHT),
        (6, TimeBucket.MORNING),
        (11, TimeBucket.MORNING),
        (12, TimeBucket.AFTERNOON),
        (18, TimeBucket.EVENING),
        (23, TimeBucket.EVENING),
    ],
)
def test_time_bucket_for_hour(hour, bucket):
    assert TimeBucket.for_hour(hour) is bucket


def test_topic_targets_per_kind():
    assert topic_target(Interaction(kind="like", weight=0.2)) == pytest.approx(0.2)
    assert topic_target(Interaction(kind="watch-complete")) == pytest.approx(0.8)
    assert topic_target(Interaction(kind="watch-partial")) == pytest.approx(0.4)
    assert topic_target(Interaction(kind="watch-partial", fraction=0.25)) == pytest.approx(0.2)
    assert topic_target(Interaction(kind="skip")) == 0.0
    assert topic_target(Interaction(kind="dislike")) == 0.0


def test_negative_signals_push_dense_axes_away():
    it = Interaction(kind="skip", pacing=0.8, duration=0.1)
    assert dense_targets(it) == pytest.approx({"pacing": 0.2, "duration": 0.9})


def test_learning_rates_bucket_boost_and_kind():
    p = BrainParams()
    scalar, topic = learning_rates(Interaction(kind="like"), p)
    assert (scalar, topic) == pytest.approx((0.3, 0.12))
    scalar, topic = learning_rates(Interaction(kind="like"), p, bucket=True)
    assert (scalar, topic) == pytest.approx((0.45, 0.18))
    _, dislike = learning_rates(Interaction(kind=SignalKind.DISLIKE), p)
    _, skip = learning_rates(Interaction(kind=SignalKind.SKIP), p)
    assert dislike == pytest.approx(0.24)
    assert skip == pytest.approx(0.06)


def test_ema_stays_in_unit_interval():
    assert ema(0.5, 1.0, 0.5) == pytest.approx(0.75)
    assert ema(2.0, 5.0, 0.9) == 1.0
    assert ema(-1.0, -1.0, 0.3) == 0.0


def test_evict_to_cap_drops_lowest_then_oldest():
    weights = {"a": 0.9, "b": 0.1, "c": 0.1, "d": 0.5}
    touched = {"a": 1.0, "b": 5.0, "c": 2.0, "d": 3.0}
    evicted = evict_to_cap(weights, touched, 2)
    assert evicted == ["c", "b"]
    assert set(weights) == {"a", "d"}
    assert set(touched) == {"a", "d"}


def test_idle_decay():
    assert idle_decay(None, 100.0, 0.02) == 1.0
    assert idle_decay(0.0, 10 * DAY, 0.02) == pytest.approx(0.98**10)
    assert idle_decay(10 * DAY, 0.0, 0.02) == 1.0


def test_blend_vector_fades_untouched_topics():
    p = BrainParams()
    v = ContentVector(topics={"old": 0.5}, touched_at={"old": 0.0}, updated_at=0.0)
    out = blend_vector(
        v,
        topics=["new"],
        topic_target=1.0,
        dense={},
        scalar_rate=0.3,
        topic_rate=0.12,
        now=10 * DAY,
        params=p,
    )
    assert out.topics["old"] == pytest.approx(0.5 * 0.98**10)
    assert out.topics["new"] == pytest.approx(0.12)
    assert out.touched_at["new"] == 10 * DAY
    assert out.updated_at == 10 * DAY
    # untouched input vector is unchanged
    assert dict(v.topics) == {"old": 0.5}


def test_blend_vector_prunes_weak_topics():
    p = BrainParams(prune_below=0.05)
    v = ContentVector(topics={"gone": 0.04, "fine": 0.6}, updated_at=0.0)
    out = blend_vector(
        v,
        topics=["fine"],
        topic_target=0.0,
        dense={"pacing": 1.0},
        scalar_rate=0.5,
        topic_rate=0.1,
        now=1.0,
        params=p,
    )
    assert "gone" not in out.topics
    assert out.topics["fine"] == pytest.approx(0.54)
    assert out.pacing == pytest.approx(0.75)


def test_blend_vector_respects_topic_cap():
    p = BrainParams(k_topics=3)
    v = ContentVector()
    for i in range(10):
        v = blend_vector(
            v,
            topics=[f"t{i}"],
            topic_target=1.0,
            dense={},
            scalar_rate=0.3,
            topic_rate=0.1 + i * 0.05,
            now=float(i),
            params=p,
        )
        assert len(v.topics) <= 3
    assert set(v.topics) == {"t7", "t8", "t9"}


def test_content_vector_is_clamped_and_frozen():
    v = ContentVector(topics={"x": 3.0}, pacing=-1, duration=math.nan)
    assert v.topics["x"] == 1.0
    assert v.pacing == 0.0
    assert v.duration == 0.0
    with pytest.raises(TypeError):
        v.topics["y"] = 0.5  # type: ignore[index]


def test_hits_blocked_whole_words():
    assert hits_blocked("US Politics tonight", ["politics"])
    assert not hits_blocked("politicsfree zone", ["politics"])
    assert hits_blocked("late night talk show", ["talk show"])
    assert not hits_blocked("show me how to talk", ["talk show"])


def test_top_keys_excludes_blocked_words():
    weights = {"us politics": 0.9, "chess": 0.8, "lofi": 0.8, "space": 0.1}
    assert top_keys(weights, 2, exclude=["politics"]) == ["chess", "lofi"]
    assert top_keys(weights, 2, exclude=["politics"], tie_key=lambda k: k[::-1]) == [
        "lofi",
        "chess",
    ]
