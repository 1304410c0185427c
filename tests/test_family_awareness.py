"""
Tests for family calendar awareness.
"""

from anticipation.intelligence.detectors import detect_family_signals
from anticipation.intelligence.detectors.family_awareness import describe_time_until
from anticipation.intelligence.models import LifeDomain, SignalSeverity, SignalType
from tests.fixtures import iso_ago, iso_in


def _family(start_minutes, end_minutes, id="fam-1", **overrides):
    event = {
        "id": id,
        "member": "Sam",
        "summary": "Soccer practice",
        "start_time": iso_in(minutes=start_minutes),
        "end_time": iso_in(minutes=end_minutes),
    }
    event.update(overrides)
    return event


def _personal(start_minutes, end_minutes, id="ev-1", **overrides):
    event = {
        "id": id,
        "summary": "Client call",
        "start_time": iso_in(minutes=start_minutes),
        "end_time": iso_in(minutes=end_minutes),
    }
    event.update(overrides)
    return event


class TestFamilySignals:
    def test_no_family_data(self, make_context):
        assert detect_family_signals(make_context()) == []

    def test_conflict_is_critical(self, make_context):
        context = make_context(
            calendar_events=[_personal(90, 150)],
            mcp_data={"family_calendars": [_family(60, 120)]},
        )
        signals = detect_family_signals(context)
        assert len(signals) == 1
        assert signals[0].severity is SignalSeverity.CRITICAL
        assert signals[0].type is SignalType.FAMILY_AWARENESS
        assert signals[0].domain is LifeDomain.FAMILY
        assert signals[0].related_entity_ids == ("fam-1", "ev-1")

    def test_all_day_personal_event_is_not_conflict(self, make_context):
        context = make_context(
            calendar_events=[_personal(-540, 900, all_day=True)],
            mcp_data={"family_calendars": [_family(60, 120)]},
        )
        assert detect_family_signals(context)[0].severity is SignalSeverity.URGENT

    def test_starting_soon_is_urgent(self, make_context):
        context = make_context(mcp_data={"family_calendars": [_family(45, 90)]})
        signal = detect_family_signals(context)[0]
        assert signal.severity is SignalSeverity.URGENT
        assert "in 45 minutes" in signal.context

    def test_two_hour_boundary_is_urgent(self, make_context):
        context = make_context(mcp_data={"family_calendars": [_family(120, 180)]})
        assert detect_family_signals(context)[0].severity is SignalSeverity.URGENT

    def test_later_today_is_attention(self, make_context):
        context = make_context(mcp_data={"family_calendars": [_family(300, 360)]})
        signal = detect_family_signals(context)[0]
        assert signal.severity is SignalSeverity.ATTENTION
        assert signal.title == "Sam has event today"

    def test_tomorrow_ignored(self, make_context):
        context = make_context(mcp_data={"family_calendars": [_family(24 * 60, 25 * 60)]})
        assert detect_family_signals(context) == []

    def test_finished_event_ignored(self, make_context):
        event = _family(0, 0, start_time=iso_ago(hours=3), end_time=iso_ago(hours=2))
        context = make_context(mcp_data={"family_calendars": [event]})
        assert detect_family_signals(context) == []

    def test_camel_case_key(self, make_context):
        context = make_context(mcp_data={"familyCalendars": [_family(45, 90)]})
        assert len(detect_family_signals(context)) == 1


class TestDescribeTimeUntil:
    def test_formats(self):
        assert describe_time_until(30) == "in 30 minutes"
        assert describe_time_until(60) == "in 1 hour"
        assert describe_time_until(120) == "in 2 hours"
        assert describe_time_until(95) == "in 1h 35m"
