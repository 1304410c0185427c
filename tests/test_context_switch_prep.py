"""
Tests for context-switch preparation signals.
"""

import pytest

from anticipation.intelligence.detectors import detect_context_switch_signals
from anticipation.intelligence.models import LifeDomain, SignalSeverity, SignalType
from tests.fixtures import iso_ago, iso_in


def _event(start, id="ev-1", summary="Client meeting", **overrides):
    event = {"id": id, "summary": summary, "start_time": start, "end_time": None}
    event.update(overrides)
    return event


class TestProximityTiers:
    @pytest.mark.parametrize(
        "minutes, expected",
        [
            (1, SignalSeverity.URGENT),
            (5, SignalSeverity.URGENT),
            (6, SignalSeverity.ATTENTION),
            (15, SignalSeverity.ATTENTION),
            (16, SignalSeverity.INFO),
            (30, SignalSeverity.INFO),
        ],
    )
    def test_severity(self, make_context, minutes, expected):
        signals = detect_context_switch_signals(
            make_context(calendar_events=[_event(iso_in(minutes=minutes))])
        )
        assert len(signals) == 1
        assert signals[0].severity is expected
        assert signals[0].type is SignalType.CONTEXT_SWITCH_PREP

    def test_beyond_lookahead_ignored(self, make_context):
        context = make_context(calendar_events=[_event(iso_in(minutes=31))])
        assert detect_context_switch_signals(context) == []

    def test_started_events_ignored(self, make_context):
        context = make_context(
            calendar_events=[
                _event(iso_ago(minutes=10), id="a"),
                _event(iso_in(minutes=0), id="b"),
            ]
        )
        assert detect_context_switch_signals(context) == []

    def test_all_day_events_ignored(self, make_context):
        context = make_context(calendar_events=[_event(iso_in(minutes=10), all_day=True)])
        assert detect_context_switch_signals(context) == []


class TestEventKinds:
    def test_focus_block(self, make_context):
        context = make_context(
            calendar_events=[_event(iso_in(minutes=10), summary="Writing", is_focus_block=True)]
        )
        signal = detect_context_switch_signals(context)[0]
        assert signal.title == "Deep work session approaching"
        assert signal.domain is LifeDomain.PERSONAL_GROWTH
        assert "09:10" in signal.context

    def test_regular_event_domain_inferred(self, make_context):
        signal = detect_context_switch_signals(
            make_context(calendar_events=[_event(iso_in(minutes=10), summary="Property showing")])
        )[0]
        assert signal.title == "Upcoming context switch"
        assert signal.domain is LifeDomain.BUSINESS_RE
        assert signal.related_entity_ids == ("ev-1",)

    def test_ordered_by_start(self, make_context):
        context = make_context(
            calendar_events=[
                _event(iso_in(minutes=20), id="later"),
                _event(iso_in(minutes=3), id="sooner"),
            ]
        )
        ids = [s.related_entity_ids[0] for s in detect_context_switch_signals(context)]
        assert ids == ["sooner", "later"]
