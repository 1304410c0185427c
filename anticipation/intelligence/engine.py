"""
Anticipation Engine: one detection cycle over a context snapshot.

    context ──► every enabled detector, concurrently ──► raw signals
                                                    └──► synthesizer ──► ranked signals

A failing detector (one that raises, or returns anything but Signals) is
logged and left out of services_run; the other
detectors' signals are kept. The cycle itself never raises on detector
failure.

AnticipationWorker runs cycles on an interval and commits their output to a
SignalStore, one cycle at a time.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from .. import config
from ..observability import CycleContext
from .models import AnticipationContext, Signal
from .priority_synthesizer import synthesize_priorities
from .registry import Detector, DetectorRegistry, default_registry
from .signal_store import SignalStore
from .temporal import to_iso, utc_now

logger = logging.getLogger(__name__)


@dataclass
class AnticipationResult:
    """Output of one anticipation cycle."""

    signals: list[Signal] = field(default_factory=list)
    prioritized_signals: list[Signal] = field(default_factory=list)
    run_duration: float = 0.0  # milliseconds
    timestamp: str = ""
    services_run: list[str] = field(default_factory=list)
    cycle_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "signals": [s.to_dict() for s in self.signals],
            "prioritizedSignals": [s.to_dict() for s in self.prioritized_signals],
            "runDuration": self.run_duration,
            "timestamp": self.timestamp,
            "servicesRun": list(self.services_run),
        }


async def _invoke(detector: Detector, context: AnticipationContext) -> list[Signal]:
    result = detector.detect(context)
    if inspect.isawaitable(result):
        result = await result
    signals = list(result or [])
    for item in signals:
        if not isinstance(item, Signal):
            raise TypeError(f"{detector.name} returned {type(item).__name__}, expected Signal")
    return signals


async def run_anticipation_cycle(
    context: AnticipationContext, registry: DetectorRegistry | None = None
) -> AnticipationResult:
    """Run every enabled detector against the context and rank the output."""
    registry = registry if registry is not None else default_registry()
    detectors = registry.enabled()

    with CycleContext() as cycle:
        start = time.perf_counter()
        timestamp = to_iso(utc_now())
        logger.info(f"Starting anticipation cycle with {len(detectors)} detectors")

        outcomes = await asyncio.gather(
            *(_invoke(d, context) for d in detectors), return_exceptions=True
        )

        all_signals: list[Signal] = []
        services_run: list[str] = []
        for detector, outcome in zip(detectors, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.error(
                    f"Detector {detector.name} failed: {outcome}",
                    exc_info=(type(outcome), outcome, outcome.__traceback__),
                    extra={"detector": detector.name},
                )
                continue
            all_signals.extend(outcome)
            services_run.append(detector.name)
            logger.debug(f"{detector.name} completed: {len(outcome)} signals")

        prioritized = synthesize_priorities(all_signals, context, context.signal_weights)
        run_duration = (time.perf_counter() - start) * 1000

        logger.info(
            f"Cycle complete in {run_duration:.2f}ms: {len(all_signals)} total signals, "
            f"{len(services_run)}/{len(detectors)} detectors succeeded"
        )

        return AnticipationResult(
            signals=all_signals,
            prioritized_signals=prioritized,
            run_duration=run_duration,
            timestamp=timestamp,
            services_run=services_run,
            cycle_id=cycle.cycle_id,
        )


def run_anticipation_cycle_sync(
    context: AnticipationContext, registry: DetectorRegistry | None = None
) -> AnticipationResult:
    """Blocking wrapper for callers outside an event loop."""
    return asyncio.run(run_anticipation_cycle(context, registry))


# =============================================================================
# WORKER
# =============================================================================

ContextProvider = Callable[[], AnticipationContext | Awaitable[AnticipationContext]]


class AnticipationWorker:
    """
    Periodic anticipation cycles feeding a SignalStore.

    Cycles never overlap: run_cycle() returns None immediately while a
    previous cycle is still in flight.
    """

    def __init__(
        self,
        store: SignalStore,
        context_provider: ContextProvider | None = None,
        registry: DetectorRegistry | None = None,
        interval_seconds: float | None = None,
    ):
        self.store = store
        self.context_provider = context_provider
        self.registry = registry if registry is not None else default_registry()
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else config.WORKER_INTERVAL_SECONDS
        )
        self.is_running = False
        self.last_run_at: str | None = None
        self._stopping: asyncio.Event | None = None

    async def _build_context(self) -> AnticipationContext:
        if self.context_provider is None:
            return AnticipationContext.build(signals=self.store.active_signals())
        context = self.context_provider()
        if inspect.isawaitable(context):
            context = await context
        return context

    async def run_cycle(self) -> AnticipationResult | None:
        if self.is_running:
            logger.warning("Skipping anticipation cycle: previous cycle still running")
            return None

        self.is_running = True
        try:
            context = await self._build_context()
            result = await run_anticipation_cycle(context, self.registry)

            fresh = [s for s in result.signals if self.store.get(s.id) is None]
            if fresh:
                self.store.add_signals(fresh)
            removed = self.store.clear_expired()

            self.last_run_at = result.timestamp
            logger.info(
                f"Worker cycle complete: {len(fresh)} new signals, {removed} expired removed, "
                f"{len(result.services_run)} detectors ran in {result.run_duration:.0f}ms"
            )
            return result
        finally:
            self.is_running = False

    async def run_forever(self, max_cycles: int | None = None) -> int:
        """Run cycles every interval until stop() is called. Returns cycles run."""
        self._stopping = asyncio.Event()
        cycles = 0
        logger.info(f"Anticipation worker starting (interval {self.interval_seconds}s)")

        while not self._stopping.is_set():
            try:
                await self.run_cycle()
            except Exception as e:
                logger.error(f"Anticipation worker cycle failed: {e}", exc_info=True)
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
            except TimeoutError:
                pass

        logger.info(f"Anticipation worker stopped after {cycles} cycles")
        return cycles

    def stop(self) -> None:
        if self._stopping is not None:
            self._stopping.set()

    def status(self) -> dict[str, Any]:
        return {
            "is_running": self.is_running,
            "last_run_at": self.last_run_at,
            "interval_seconds": self.interval_seconds,
            "detectors": [d.name for d in self.registry.enabled()],
        }
