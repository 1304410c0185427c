"""
Tests for effectiveness feedback and learned weight modifiers.
"""

import pytest

from anticipation.intelligence.feedback_loop import (
    EffectivenessFeedback,
    FeedbackConfig,
    compute_effectiveness,
    load_feedback_config,
    target_modifier,
)
from anticipation.intelligence.models import SignalWeight
from anticipation.storage import InMemoryCollection
from tests.fixtures import build_signal


class TestFormulas:
    def test_effectiveness(self):
        weight = SignalWeight(signal_type="aging_email", domain="business_tech", total_generated=4, total_acted_on=1)
        assert compute_effectiveness(weight) == 0.25

    def test_effectiveness_with_no_generated(self):
        weight = SignalWeight(signal_type="aging_email", domain="business_tech", total_acted_on=0)
        assert compute_effectiveness(weight) == 0.0

    def test_target_modifier_range(self):
        assert target_modifier(0, 5) == pytest.approx(0.3)
        assert target_modifier(5, 0) == pytest.approx(2.0)
        assert target_modifier(1, 1) == pytest.approx(1.15)
        assert target_modifier(0, 0) == 1.0


class TestRecording:
    def test_generated_creates_row(self):
        feedback = EffectivenessFeedback()
        feedback.record_generated(build_signal())
        weight = feedback.get_weight("aging_email", "business_tech")
        assert weight.total_generated == 1
        assert weight.weight_modifier == 1.0

    def test_modifier_waits_for_min_interactions(self):
        feedback = EffectivenessFeedback()
        signal = build_signal()
        for _ in range(4):
            feedback.record_dismissed(signal)
        assert feedback.get_weight("aging_email", "business_tech").weight_modifier == 1.0

    def test_dismissals_push_modifier_down(self):
        feedback = EffectivenessFeedback()
        signal = build_signal()
        for _ in range(5):
            feedback.record_dismissed(signal)
        assert feedback.get_weight("aging_email", "business_tech").weight_modifier == pytest.approx(0.86)

    def test_actions_push_modifier_up(self):
        feedback = EffectivenessFeedback()
        signal = build_signal()
        for _ in range(5):
            feedback.record_acted_on(signal)
        assert feedback.get_weight("aging_email", "business_tech").weight_modifier == pytest.approx(1.2)

    def test_modifier_stays_within_bounds(self):
        feedback = EffectivenessFeedback()
        signal = build_signal()
        for _ in range(200):
            feedback.record_dismissed(signal)
        modifier = feedback.get_weight("aging_email", "business_tech").weight_modifier
        assert 0.3 <= modifier < 0.31

    def test_keys_are_independent(self):
        feedback = EffectivenessFeedback()
        feedback.record_generated(build_signal(domain="business_tech"))
        feedback.record_generated(build_signal(domain="finance"))
        assert len(feedback.weights()) == 2

    def test_weights_are_snapshots(self):
        feedback = EffectivenessFeedback()
        feedback.record_generated(build_signal())
        snapshot = feedback.weights()[0]
        snapshot.total_generated = 99
        assert feedback.get_weight("aging_email", "business_tech").total_generated == 1


class TestRecompute:
    def test_recompute_replaces_counters(self):
        feedback = EffectivenessFeedback()
        for _ in range(3):
            feedback.record_generated(build_signal())

        history = [build_signal(id=f"s{i}", is_acted_on=True) for i in range(5)]
        history.append(build_signal(id="d", is_dismissed=True))
        feedback.recompute_from_history(history)

        weight = feedback.get_weight("aging_email", "business_tech")
        assert weight.total_generated == 6
        assert weight.total_acted_on == 5
        assert weight.total_dismissed == 1
        assert weight.effectiveness_score == pytest.approx(5 / 6)
        assert weight.weight_modifier == pytest.approx(0.3 + 1.7 * 5 / 6)

    def test_recompute_below_floor_is_neutral(self):
        feedback = EffectivenessFeedback()
        feedback.recompute_from_history([build_signal(is_dismissed=True)])
        assert feedback.get_weight("aging_email", "business_tech").weight_modifier == 1.0


class TestPersistence:
    def test_rows_written_and_reloaded(self):
        collection = InMemoryCollection("signal_weights")
        feedback = EffectivenessFeedback(collection=collection)
        signal = build_signal()
        feedback.record_generated(signal)
        feedback.record_acted_on(signal)

        rows = collection.find()
        assert len(rows) == 1
        assert rows[0]["total_acted_on"] == 1

        reloaded = EffectivenessFeedback(collection=collection)
        assert reloaded.get_weight("aging_email", "business_tech").total_generated == 1

    def test_purged_row_is_reinserted(self):
        collection = InMemoryCollection("signal_weights")
        feedback = EffectivenessFeedback(collection=collection)
        signal = build_signal()
        weight = feedback.record_generated(signal)
        collection.remove(weight.id)

        feedback.record_dismissed(signal)

        rows = collection.find()
        assert len(rows) == 1
        assert rows[0]["id"] == weight.id
        assert rows[0]["total_generated"] == 1
        assert rows[0]["total_dismissed"] == 1


class TestFeedbackConfig:
    def test_defaults(self):
        assert load_feedback_config({}) == FeedbackConfig()

    def test_from_thresholds(self):
        cfg = load_feedback_config({"feedback": {"min_interactions": 2, "learning_rate": 0.5}})
        assert cfg.min_interactions == 2
        assert cfg.learning_rate == 0.5

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            FeedbackConfig.from_mapping({"decay": 0.1})

    def test_invalid_bounds(self):
        with pytest.raises(ValueError):
            FeedbackConfig(min_modifier=2.5, max_modifier=2.0)

    def test_custom_config_changes_floor(self):
        feedback = EffectivenessFeedback(config=FeedbackConfig(min_interactions=1, learning_rate=1.0))
        feedback.record_acted_on(build_signal())
        assert feedback.get_weight("aging_email", "business_tech").weight_modifier == pytest.approx(2.0)
