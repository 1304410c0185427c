"""
Signal Store: the live set of signals and their lifecycle.

States:
    active ──dismiss──► dismissed ─┐
      │                            ├──(expires_at passed)──► removed by clear_expired()
      └──act_on──► acted_on ───────┘   (only once dismissed)

Dismissed and acted-on are independent flags. Severity never changes.
Repeating a transition is a no-op and does not re-notify the feedback loop.

Synchronous. Mutations are serialized by a lock so concurrent callers (API
threadpool, worker) cannot double-apply a transition. When a collection is
attached every mutation is written through to it; a row purged underneath
the store is re-inserted on its next transition.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import datetime

from ..storage import Collection, RecordNotFoundError
from .feedback_loop import EffectivenessFeedback
from .models import LifeDomain, Signal, SignalSeverity, SignalType
from .temporal import utc_now

logger = logging.getLogger(__name__)

_URGENT_SEVERITIES = {SignalSeverity.URGENT, SignalSeverity.CRITICAL}


class SignalStoreError(Exception):
    """Base class for signal store misuse."""


class DuplicateSignalError(SignalStoreError):
    """A signal with this id is already in the store (or repeated in a batch)."""

    def __init__(self, signal_id: str):
        super().__init__(f"Duplicate signal id: {signal_id}")
        self.signal_id = signal_id


class SignalNotFoundError(SignalStoreError):
    """No signal with this id."""

    def __init__(self, signal_id: str):
        super().__init__(f"Signal not found: {signal_id}")
        self.signal_id = signal_id


class SignalStore:
    def __init__(
        self,
        collection: Collection | None = None,
        feedback: EffectivenessFeedback | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.collection = collection
        self.feedback = feedback
        self.clock = clock or utc_now
        self._signals: dict[str, Signal] = {}
        self._lock = threading.RLock()
        if collection is not None:
            self.load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> int:
        """Replace in-memory state with the collection's contents."""
        if self.collection is None:
            return 0
        loaded: dict[str, Signal] = {}
        for record in self.collection.find():
            try:
                signal = Signal.from_dict(record)
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed signal row {record.get('id')}: {e}")
                continue
            loaded[signal.id] = signal
        with self._lock:
            self._signals = loaded
        logger.debug(f"Loaded {len(self._signals)} signals")
        return len(self._signals)

    def _write_lifecycle(self, signal: Signal) -> None:
        if self.collection is None:
            return
        try:
            self.collection.patch(
                signal.id,
                {
                    "is_dismissed": signal.is_dismissed,
                    "is_acted_on": signal.is_acted_on,
                    "updated_at": signal.updated_at,
                },
            )
        except RecordNotFoundError:
            logger.info(f"Signal {signal.id} missing from {self.collection.name}, re-inserting")
            self.collection.insert(signal.to_dict())

    def _remove_persisted(self, signal_id: str) -> None:
        if self.collection is None:
            return
        try:
            self.collection.remove(signal_id)
        except RecordNotFoundError:
            logger.debug(f"Signal {signal_id} already absent from {self.collection.name}")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_signals(self, signals: Iterable[Signal]) -> list[Signal]:
        """
        Add a batch of new signals.

        The whole batch is validated before anything is stored.

        Raises:
            DuplicateSignalError: An id already exists or repeats within the batch.
        """
        batch = list(signals)
        with self._lock:
            seen: set[str] = set()
            for signal in batch:
                if signal.id in self._signals or signal.id in seen:
                    raise DuplicateSignalError(signal.id)
                seen.add(signal.id)

            for signal in batch:
                if self.collection is not None:
                    self.collection.insert(signal.to_dict())
                self._signals[signal.id] = signal
                if self.feedback is not None:
                    self.feedback.record_generated(signal)

            if batch:
                logger.info(f"Added {len(batch)} signals ({len(self._signals)} in store)")
        return batch

    def add_signal(self, signal: Signal) -> Signal:
        self.add_signals([signal])
        return signal

    def _require(self, signal_id: str) -> Signal:
        signal = self._signals.get(signal_id)
        if signal is None:
            raise SignalNotFoundError(signal_id)
        return signal

    def dismiss_signal(self, signal_id: str) -> Signal:
        with self._lock:
            signal = self._require(signal_id)
            if signal.is_dismissed:
                return signal

            updated = signal.with_lifecycle(dismissed=True, at=self.clock())
            self._write_lifecycle(updated)
            self._signals[signal_id] = updated
            if self.feedback is not None:
                self.feedback.record_dismissed(updated)
        logger.info(f"Dismissed signal {signal_id} ({updated.type.value})")
        return updated

    def act_on_signal(self, signal_id: str) -> Signal:
        with self._lock:
            signal = self._require(signal_id)
            if signal.is_acted_on:
                return signal

            updated = signal.with_lifecycle(acted_on=True, at=self.clock())
            self._write_lifecycle(updated)
            self._signals[signal_id] = updated
            if self.feedback is not None:
                self.feedback.record_acted_on(updated)
        logger.info(f"Acted on signal {signal_id} ({updated.type.value})")
        return updated

    def clear_expired(self) -> int:
        """Remove dismissed signals whose expiry has passed. Returns count removed."""
        with self._lock:
            now = self.clock()
            expired = [s.id for s in self._signals.values() if s.is_dismissed and s.is_expired(now)]
            for signal_id in expired:
                del self._signals[signal_id]
                self._remove_persisted(signal_id)
        if expired:
            logger.info(f"Cleared {len(expired)} expired signals")
        return len(expired)

    def clear_all(self) -> None:
        with self._lock:
            for signal_id in list(self._signals):
                self._remove_persisted(signal_id)
            self._signals.clear()

    def replace_all(self, signals: Iterable[Signal]) -> None:
        """Replace the in-memory set wholesale (sync from storage). Not written through."""
        replacement = {s.id: s for s in signals}
        with self._lock:
            self._signals = replacement

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, signal_id: str) -> Signal | None:
        return self._signals.get(signal_id)

    def all_signals(self) -> list[Signal]:
        with self._lock:
            return list(self._signals.values())

    def active_signals(self) -> list[Signal]:
        now = self.clock()
        return [s for s in self.all_signals() if s.is_active(now)]

    def urgent_signals(self) -> list[Signal]:
        return [s for s in self.active_signals() if s.severity in _URGENT_SEVERITIES]

    def signals_by_domain(self, domain: LifeDomain | str) -> list[Signal]:
        domain = LifeDomain(domain)
        return [s for s in self.active_signals() if s.domain == domain]

    def signals_by_type(self, signal_type: SignalType | str) -> list[Signal]:
        signal_type = SignalType(signal_type)
        return [s for s in self.active_signals() if s.type == signal_type]

    def signal_count(self) -> dict[str, int]:
        active = self.active_signals()
        return {
            "total": len(active),
            "urgent": sum(1 for s in active if s.severity in _URGENT_SEVERITIES),
            "attention": sum(1 for s in active if s.severity == SignalSeverity.ATTENTION),
            "info": sum(1 for s in active if s.severity == SignalSeverity.INFO),
        }

    def __len__(self) -> int:
        return len(self._signals)

    def __contains__(self, signal_id: object) -> bool:
        return signal_id in self._signals
