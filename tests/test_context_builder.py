"""
Tests for context assembly from cached collaborator sources.
"""

import logging

from anticipation.cache import CacheManager
from anticipation.intelligence.context_builder import ContextBuilder
from tests.fixtures import FIXED_NOW, build_signal


class CountingSource:
    def __init__(self, value):
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.value


class TickClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestContextBuilder:
    def test_routes_collections_and_snapshots(self, clock):
        builder = ContextBuilder(
            {
                "tasks": lambda: [{"id": "t1", "title": "x"}],
                "alpaca": lambda: {"equity": 100, "dayPnl": -5},
                "family_calendars": lambda: [{"id": "f1"}],
            },
            clock=clock,
        )
        context = builder.build(signals=[build_signal()])

        assert context.now == FIXED_NOW
        assert context.tasks[0]["id"] == "t1"
        assert context.mcp_data["alpaca"]["day_pnl"] == -5
        assert context.mcp_data["family_calendars"][0]["id"] == "f1"
        assert len(context.signals) == 1

    def test_sources_cached_within_ttl(self):
        tick = TickClock()
        tasks = CountingSource([{"id": "t1"}])
        builder = ContextBuilder(
            {"tasks": tasks}, cache=CacheManager(default_ttl=60, clock=tick), ttl_seconds=60
        )

        builder.build(FIXED_NOW)
        builder.build(FIXED_NOW)
        assert tasks.calls == 1

        tick.now += 61
        builder.build(FIXED_NOW)
        assert tasks.calls == 2

    def test_invalidate(self):
        tasks = CountingSource([{"id": "t1"}])
        emails = CountingSource([])
        builder = ContextBuilder({"tasks": tasks, "emails": emails})
        builder.build(FIXED_NOW)

        assert builder.invalidate("tasks") == 1
        assert builder.invalidate("tasks") == 0
        builder.build(FIXED_NOW)
        assert tasks.calls == 2
        assert emails.calls == 1

        assert builder.invalidate() == 2

    def test_failing_source_not_cached(self, caplog):
        calls = []

        def flaky():
            calls.append(1)
            raise ConnectionError("provider down")

        builder = ContextBuilder({"emails": flaky, "deals": lambda: [{"id": "d1"}]})
        with caplog.at_level(logging.ERROR):
            context = builder.build(FIXED_NOW)
        builder.build(FIXED_NOW)

        assert context.emails == ()
        assert context.deals[0]["id"] == "d1"
        assert len(calls) == 2
        assert "emails" in caplog.text

    def test_missing_snapshot_omitted(self):
        builder = ContextBuilder({"alpaca": lambda: None})
        assert "alpaca" not in builder.build(FIXED_NOW).mcp_data

    def test_weights_passed_through(self):
        builder = ContextBuilder({})
        context = builder.build(
            FIXED_NOW,
            signal_weights=[{"signal_type": "deal_update", "domain": "business_re", "weight_modifier": 1.4}],
        )
        assert context.signal_weights[0].weight_modifier == 1.4
