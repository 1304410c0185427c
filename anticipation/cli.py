"""
Anticipation engine CLI.

Usage:
    anticipation run --context snapshot.json [--json] [--db FILE]
                                            # One cycle, print ranked signals
    anticipation brief --context snapshot.json [--json]
                                            # Morning brief for the snapshot
    anticipation retention [--db FILE]      # Purge expired/old/stale rows
    anticipation serve [--db FILE] [--host H] [--port P]
                                            # HTTP API over the signal store

The snapshot is a JSON object with the context collections (tasks,
projects, categories, emails, calendarEvents, deals, mcpData, ...) and an
optional "now" timestamp.
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from . import config, paths
from .data_retention import load_retention_config, run_retention_cycle
from .intelligence.engine import run_anticipation_cycle_sync
from .intelligence.feedback_loop import EffectivenessFeedback, load_feedback_config
from .intelligence.models import AnticipationContext, Signal
from .intelligence.morning_brief import generate_morning_brief
from .intelligence.registry import default_registry
from .intelligence.signal_store import SignalStore
from .observability import configure_logging
from .storage import SIGNAL_WEIGHTS, SIGNALS, open_sqlite_collections

logger = logging.getLogger(__name__)

_SEVERITY_ICONS = {"critical": "🔴", "urgent": "🟠", "attention": "🟡", "info": "🔵"}


def _load_context(path: str) -> AnticipationContext:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Context file must contain a JSON object: {path}")
    return AnticipationContext.from_dict(data)


def _resolve_db(db: str | None) -> Path:
    path = Path(db) if db else paths.db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _open_store(db: Path) -> SignalStore:
    collections = open_sqlite_collections(db)
    feedback = EffectivenessFeedback(collections[SIGNAL_WEIGHTS], load_feedback_config())
    return SignalStore(collections[SIGNALS], feedback=feedback)


def _print_signals(signals: list[Signal]) -> None:
    if not signals:
        print("No signals 🎉")
        return
    for i, signal in enumerate(signals, 1):
        icon = _SEVERITY_ICONS.get(signal.severity.value, "•")
        print(f"{i:>3}. {icon} [{signal.severity.value}] {signal.title}")
        print(f"       {signal.context}")
        if signal.suggested_action:
            print(f"       → {signal.suggested_action}")


def cmd_run(args):
    """One anticipation cycle over a snapshot."""
    context = _load_context(args.context)

    store = None
    if args.db:
        store = _open_store(_resolve_db(args.db))
        context = replace(
            context,
            signals=tuple(store.active_signals()),
            signal_weights=store.feedback.weights(),
        )

    result = run_anticipation_cycle_sync(context, default_registry())

    if store is not None:
        fresh = [s for s in result.signals if store.get(s.id) is None]
        store.add_signals(fresh)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(
            f"## Anticipation cycle ({len(result.services_run)} detectors, "
            f"{result.run_duration:.1f}ms)\n"
        )
        _print_signals(result.prioritized_signals)
    return 0


def cmd_brief(args):
    """Morning brief for a snapshot."""
    context = _load_context(args.context)
    result = run_anticipation_cycle_sync(context, default_registry())
    brief = generate_morning_brief(context, result.prioritized_signals)

    if args.json:
        print(json.dumps(brief.to_dict(), indent=2))
        return 0

    print(f"## Morning Brief: {brief.date}\n")
    print(brief.ai_insight)
    if brief.urgent_signals:
        print("\n### Urgent")
        _print_signals(brief.urgent_signals)
    if brief.attention_signals:
        print("\n### Attention")
        _print_signals(brief.attention_signals)
    if brief.calendar_summary:
        print("\n### Calendar")
        for line in brief.calendar_summary:
            print(f"  {line}")
    if brief.family_summary:
        print("\n### Family")
        for line in brief.family_summary:
            print(f"  {line}")
    if brief.portfolio_pulse:
        p = brief.portfolio_pulse
        print("\n### Portfolio")
        print(f"  Equity: ${p.equity:,.2f}  Day P&L: ${p.day_pnl:,.2f} ({p.day_pnl_pct:+.2f}%)")
        print(f"  Positions: {p.positions_count}  Active deals: {p.active_deals_count}")
    return 0


def cmd_retention(args):
    """Run the retention sweep."""
    db = _resolve_db(args.db)
    report = run_retention_cycle(open_sqlite_collections(db), retention=load_retention_config())

    print(
        f"Removed {report.expired_signals} expired signals, {report.old_analytics} old "
        f"analytics events, {report.stale_weights} stale weights"
    )
    for task, error in report.errors.items():
        print(f"❌ {task}: {error}")
    return 1 if report.errors else 0


def cmd_serve(args):
    """Serve the HTTP API."""
    from .api.server import serve

    db = _resolve_db(args.db)
    serve(_open_store(db), host=args.host, port=args.port)
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(prog="anticipation", description="Anticipation engine CLI")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Log level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # run
    p = subparsers.add_parser("run", help="Run one anticipation cycle")
    p.add_argument("--context", required=True, help="JSON context snapshot")
    p.add_argument("--json", action="store_true", help="Print the full result as JSON")
    p.add_argument("--db", help="Commit new signals to this SQLite store")

    # brief
    p = subparsers.add_parser("brief", help="Morning brief")
    p.add_argument("--context", required=True, help="JSON context snapshot")
    p.add_argument("--json", action="store_true", help="Print the brief as JSON")

    # retention
    p = subparsers.add_parser("retention", help="Run retention sweep")
    p.add_argument("--db", help="SQLite store (default: ANTICIPATION_DB or app home)")

    # serve
    p = subparsers.add_parser("serve", help="Serve the HTTP API")
    p.add_argument("--db", help="SQLite store (default: ANTICIPATION_DB or app home)")
    p.add_argument("--host", default="127.0.0.1", help="Bind address")
    p.add_argument("--port", type=int, default=8420, help="Port")

    args = parser.parse_args(argv)
    configure_logging(args.log_level, config.LOG_JSON)

    commands = {
        "run": cmd_run,
        "brief": cmd_brief,
        "retention": cmd_retention,
        "serve": cmd_serve,
    }

    try:
        return commands[args.command](args)
    except (OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"❌ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
